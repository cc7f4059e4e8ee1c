# backend/billboard_rental/api/shared_billboards.py
from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Billboard, SharedTransaction
from ..services.partnership import capital_status, compute_split, ledger_entries
from ..services.records import BillboardRecord, billboard_from_row
from .deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shared-billboards", tags=["shared-billboards"])


class RentIn(BaseModel):
    rent_amount: Decimal = Field(..., ge=0)


def _ensure_shared(db: Session, billboard_id: int) -> Billboard:
    b = db.get(Billboard, billboard_id)
    if not b or not b.is_partnership:
        raise HTTPException(status_code=404, detail="Shared billboard not found")
    return b


def _split_out(rec: BillboardRecord, split, entries) -> dict:
    return {
        "billboard_id": rec.id,
        "split": split.as_dict(),
        "entries": [e.as_dict() for e in entries],
    }


@router.get("")
def list_shared(db: Session = Depends(get_db)):
    out = []
    rows = db.query(Billboard).filter(Billboard.is_partnership.is_(True)).order_by(Billboard.updated_at.desc()).all()
    for b in rows:
        rec = billboard_from_row(b.as_row())
        st = capital_status(rec.capital, rec.capital_remaining)
        out.append(
            {
                "id": b.id,
                "name": rec.name,
                "partner_companies": list(rec.partner_companies),
                "capital": str(st.capital),
                "capital_remaining": str(st.capital_remaining),
                "recovered": str(st.recovered),
                "recovered_pct": st.recovered_pct,
                "phase": st.phase,
            }
        )
    return out


@router.post("/{billboard_id}/split-preview")
def split_preview(billboard_id: int, body: RentIn, db: Session = Depends(get_db)):
    rec = billboard_from_row(_ensure_shared(db, billboard_id).as_row())
    split = compute_split(rec.capital_remaining, body.rent_amount)
    return _split_out(rec, split, ledger_entries(rec.id, split, rec.partner_companies))


@router.post("/{billboard_id}/apply-rent")
def apply_rent(billboard_id: int, body: RentIn, db: Session = Depends(get_db)):
    """Move capital_remaining forward and append the split to the shared ledger."""
    if body.rent_amount <= 0:
        raise HTTPException(status_code=400, detail="rent_amount must be greater than 0")

    b = _ensure_shared(db, billboard_id)
    rec = billboard_from_row(b.as_row())
    split = compute_split(rec.capital_remaining, body.rent_amount)
    entries = ledger_entries(rec.id, split, rec.partner_companies)

    try:
        b.capital_remaining = split.new_capital_remaining
        for e in entries:
            db.add(
                SharedTransaction(
                    billboard_id=b.id,
                    beneficiary=e.beneficiary,
                    amount=e.amount,
                    type=e.type,
                )
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("apply rent on billboard %s failed: %s", billboard_id, e)
        raise HTTPException(status_code=500, detail=f"DB error on apply_rent: {e}")

    logger.info("rent %s applied to billboard %s (%s)", body.rent_amount, billboard_id, split.phase)
    return _split_out(rec, split, entries)
