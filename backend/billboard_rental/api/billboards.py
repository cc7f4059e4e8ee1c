# backend/billboard_rental/api/billboards.py
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..models import Billboard
from ..services.contract_status import (
    days_until_expiry,
    is_billboard_available,
    should_show_contract_info,
)
from ..services.deletion import REASON_IN_USE, REASON_NOT_FOUND, billboard_delete_strategies, run_strategies
from ..services.records import billboard_from_row
from ..services.units import canonical_level, canonical_size
from .deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/billboards", tags=["billboards"])


def _billboard_out(b: Billboard, today: date) -> dict:
    rec = billboard_from_row(b.as_row())
    show_contract = should_show_contract_info(rec, today)
    return {
        "id": b.id,
        "name": rec.name,
        "size": canonical_size(rec.size),
        "level": canonical_level(rec.level),
        "faces": rec.faces,
        "status": rec.status,
        "available": is_billboard_available(rec, today),
        "contract_number": rec.contract_number if show_contract else None,
        "customer_name": rec.customer_name if show_contract else None,
        "rent_end_date": rec.rent_end_date.isoformat() if rec.rent_end_date else None,
        "days_until_expiry": days_until_expiry(rec.rent_end_date, today) if show_contract else None,
    }


@router.get("")
def list_billboards(
    available: Optional[bool] = Query(None),
    today: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    db: Session = Depends(get_db),
):
    ref = today or date.today()
    rows = [_billboard_out(b, ref) for b in db.query(Billboard).order_by(Billboard.id.asc()).all()]
    if available is not None:
        rows = [r for r in rows if r["available"] == available]
    return rows


@router.delete("/{billboard_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_billboard(billboard_id: int, db: Session = Depends(get_db)):
    report = run_strategies(billboard_delete_strategies(db, Billboard), billboard_id)
    if report.succeeded:
        return None
    if report.reason == REASON_NOT_FOUND:
        raise HTTPException(status_code=404, detail="Billboard not found")
    if report.reason == REASON_IN_USE:
        raise HTTPException(status_code=409, detail="Billboard is referenced by contracts or ledger entries")
    raise HTTPException(status_code=500, detail=report.as_dict())
