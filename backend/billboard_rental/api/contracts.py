# backend/billboard_rental/api/contracts.py
from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Billboard, Contract, SizePrice
from ..services.contract_financials import (
    build_installation_details,
    compute_financials,
    compute_print_cost,
    estimate_rental_total,
    resolve_base_total,
)
from ..services.installments import (
    ContractDueDatePolicy,
    Installment,
    PaymentType,
    check_installments,
    contract_end_date,
    distribute_evenly,
)
from ..services.price_resolver import PriceResolver
from ..services.records import billboard_from_row, contract_from_row
from .deps import get_db, get_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


# =========================
# Schemas
# =========================
class InstallmentIn(BaseModel):
    amount: Decimal = Field(..., ge=0)
    payment_type: PaymentType = PaymentType.MONTHLY
    description: str = ""
    due_date: Optional[date] = None

    def to_installment(self) -> Installment:
        return Installment(
            amount=self.amount,
            payment_type=self.payment_type.value,
            description=self.description,
            due_date=self.due_date,
        )


class ContractTermsIn(BaseModel):
    billboard_ids: List[int] = Field(default_factory=list)
    customer_category: str = "عادي"
    pricing_mode: Literal["months", "days"] = "months"
    duration_months: int = Field(0, ge=0)
    duration_days: int = Field(0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    rent_cost: Decimal = Field(Decimal("0"), ge=0)  # > 0 overrides the estimate
    discount_type: Literal["percent", "amount"] = "percent"
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    operating_fee_rate: Optional[Decimal] = Field(None, ge=0)
    include_installation: bool = True
    print_price_per_meter: Decimal = Field(Decimal("0"), ge=0)


class PreviewIn(ContractTermsIn):
    installments_count: Optional[int] = Field(None, ge=1)


class ContractIn(ContractTermsIn):
    customer_name: str = Field(..., min_length=1)
    ad_type: Optional[str] = None
    installments: List[InstallmentIn] = Field(default_factory=list)


class DistributeIn(BaseModel):
    total: Decimal = Field(..., ge=0)
    count: int = Field(..., ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CheckIn(BaseModel):
    installments: List[InstallmentIn] = Field(default_factory=list)
    final_total: Decimal = Field(..., ge=0)
    tolerance: Optional[Decimal] = Field(None, ge=0)


# =========================
# Internal helpers
# =========================
def _load_billboards(db: Session, ids: List[int]) -> List[Billboard]:
    if not ids:
        return []
    rows = db.query(Billboard).filter(Billboard.id.in_(ids)).all()
    found = {r.id for r in rows}
    missing = [i for i in ids if i not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Billboards not found: {missing}")
    by_id = {r.id: r for r in rows}
    return [by_id[i] for i in ids]


def _installation_prices(db: Session) -> Dict[str, Any]:
    return {s.name: s.installation_price for s in db.query(SizePrice).all()}


def _end_date(body: ContractTermsIn) -> Optional[date]:
    if body.end_date is not None:
        return body.end_date
    return contract_end_date(body.start_date, body.pricing_mode, body.duration_months, body.duration_days)


def _calculate(db: Session, resolver: PriceResolver, body: ContractTermsIn) -> Dict[str, Any]:
    """estimate -> base total -> installation / print -> financials"""
    boards = [billboard_from_row(b.as_row()) for b in _load_billboards(db, body.billboard_ids)]
    duration = body.duration_months if body.pricing_mode == "months" else body.duration_days

    try:
        estimated = estimate_rental_total(boards, resolver, body.customer_category, body.pricing_mode, duration)
        base_total = resolve_base_total(body.rent_cost, estimated)
        details = build_installation_details(boards, _installation_prices(db)) if body.include_installation else []
        print_cost = compute_print_cost(boards, body.print_price_per_meter)
        fin = compute_financials(
            base_total,
            discount_type=body.discount_type,
            discount_value=body.discount_value,
            installation_details=details,
            operating_fee_rate=body.operating_fee_rate,
            print_cost=print_cost,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "boards": boards,
        "estimated_total": estimated,
        "installation_details": details,
        "financials": fin,
        "end_date": _end_date(body),
    }


def _stored_financials(c: Contract) -> Dict[str, Any]:
    rate = c.operating_fee_rate
    return {
        "base_total": str(c.rent_cost),
        "discount_type": c.discount_type,
        "discount_value": str(c.discount_value),
        "discount_amount": str(c.discount_amount),
        "final_total": str(c.total_cost),
        "installation_cost": str(c.installation_cost),
        "print_cost": str(c.print_cost),
        "operating_fee_rate": str(rate) if rate is not None else None,
        "operating_fee": str(c.operating_fee),
        "rental_cost_only": str(c.rental_cost_only),
        "is_over_allocated": Decimal(c.rental_cost_only or 0) < 0,
    }


def _contract_out(c: Contract) -> Dict[str, Any]:
    rec = contract_from_row(
        {
            "contract_number": c.contract_number,
            "customer_name": c.customer_name,
            "customer_category": c.customer_category,
            "ad_type": c.ad_type,
            "start_date": c.start_date,
            "end_date": c.end_date,
            "total_cost": c.total_cost,
            "operating_fee_rate": c.operating_fee_rate,
            "billboard_ids": c.billboard_ids,
            "installments_data": c.installments_data,
        }
    )
    installments = [
        Installment(
            amount=Decimal(str(i.get("amount", 0))),
            payment_type=str(i.get("paymentType") or i.get("payment_type") or ""),
            description=str(i.get("description") or ""),
            due_date=date.fromisoformat(i["dueDate"]) if i.get("dueDate") else None,
        )
        for i in rec.installments
    ]
    return {
        "contract_number": rec.contract_number,
        "customer_name": rec.customer_name,
        "customer_category": rec.customer_category,
        "ad_type": rec.ad_type,
        "start_date": rec.start_date.isoformat() if rec.start_date else None,
        "end_date": rec.end_date.isoformat() if rec.end_date else None,
        "billboard_ids": list(rec.billboard_ids),
        "financials": _stored_financials(c),
        "installments": [i.as_dict() for i in installments],
        "installment_check": check_installments(installments, rec.total).as_dict(),
    }


def _release_billboards(db: Session, contract_number: str, keep_ids: Optional[set] = None) -> None:
    q = db.query(Billboard).filter(Billboard.contract_number == contract_number)
    for b in q.all():
        if keep_ids and b.id in keep_ids:
            continue
        b.contract_number = None
        b.customer_name = None
        b.rent_start_date = None
        b.rent_end_date = None


# =========================
# Calculations
# =========================
@router.post("/preview")
def preview(
    body: PreviewIn,
    db: Session = Depends(get_db),
    resolver: PriceResolver = Depends(get_resolver),
):
    calc = _calculate(db, resolver, body)
    fin = calc["financials"]
    out: Dict[str, Any] = {
        "estimated_total": str(calc["estimated_total"]),
        "financials": fin.as_dict(),
        "installation_details": [d.as_dict() for d in calc["installation_details"]],
        "end_date": calc["end_date"].isoformat() if calc["end_date"] else None,
    }
    if body.installments_count:
        policy = ContractDueDatePolicy(body.start_date, calc["end_date"])
        installments = distribute_evenly(fin.final_total, body.installments_count, policy)
        out["installments"] = [i.as_dict() for i in installments]
        out["installment_check"] = check_installments(installments, fin.final_total).as_dict()
    return out


@router.post("/installments/distribute")
def distribute(body: DistributeIn):
    try:
        installments = distribute_evenly(body.total, body.count, ContractDueDatePolicy(body.start_date, body.end_date))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"installments": [i.as_dict() for i in installments]}


@router.post("/installments/check")
def check(body: CheckIn):
    result = check_installments([i.to_installment() for i in body.installments], body.final_total, body.tolerance)
    return result.as_dict()


# =========================
# Persistence
# =========================
@router.put("/{contract_number}")
def upsert_contract(
    body: ContractIn,
    contract_number: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
    resolver: PriceResolver = Depends(get_resolver),
):
    """Whole-record save keyed by contract number; booked billboards follow the contract."""
    calc = _calculate(db, resolver, body)
    fin = calc["financials"]
    installments = [i.to_installment() for i in body.installments]

    try:
        c = db.query(Contract).filter(Contract.contract_number == contract_number).first()
        if c is None:
            c = Contract(contract_number=contract_number)
            db.add(c)

        c.customer_name = body.customer_name
        c.customer_category = body.customer_category
        c.ad_type = body.ad_type
        c.start_date = body.start_date
        c.end_date = calc["end_date"]
        c.rent_cost = fin.base_total
        c.discount_type = fin.discount_type
        c.discount_value = fin.discount_value
        c.discount_amount = fin.discount_amount
        c.installation_cost = fin.installation_cost
        c.print_cost = fin.print_cost
        c.total_cost = fin.final_total
        c.rental_cost_only = fin.rental_cost_only
        c.operating_fee_rate = fin.operating_fee_rate
        c.operating_fee = fin.operating_fee
        c.billboard_ids = ",".join(str(i) for i in body.billboard_ids)
        c.installments_data = json.dumps([i.as_dict() for i in installments], ensure_ascii=False)

        keep = set(body.billboard_ids)
        _release_billboards(db, contract_number, keep)
        for b in _load_billboards(db, body.billboard_ids):
            b.contract_number = contract_number
            b.customer_name = body.customer_name
            b.rent_start_date = body.start_date
            b.rent_end_date = calc["end_date"]

        db.commit()
        db.refresh(c)
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("saving contract %s failed: %s", contract_number, e)
        raise HTTPException(status_code=500, detail=f"DB error on upsert_contract: {e}")

    check_result = check_installments(installments, fin.final_total)
    if installments and not check_result.is_valid:
        logger.warning("contract %s saved with unbalanced installments (diff=%s)", contract_number, check_result.difference)
    return _contract_out(c)


@router.get("/{contract_number}")
def get_contract(contract_number: str, db: Session = Depends(get_db)):
    c = db.query(Contract).filter(Contract.contract_number == contract_number).first()
    if not c:
        raise HTTPException(status_code=404, detail="Contract not found")
    return _contract_out(c)


@router.delete("/{contract_number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract(contract_number: str, db: Session = Depends(get_db)):
    c = db.query(Contract).filter(Contract.contract_number == contract_number).first()
    if not c:
        raise HTTPException(status_code=404, detail="Contract not found")
    try:
        _release_billboards(db, contract_number)
        db.delete(c)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("deleting contract %s failed: %s", contract_number, e)
        raise HTTPException(status_code=500, detail=f"DB error on delete_contract: {e}")
    return None
