# backend/billboard_rental/api/pricing.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import PricingEntry
from ..services.price_resolver import PriceResolver
from ..services.pricing_cache import PricingCache, PricingSourceError
from ..services.units import canonical_level, canonical_size
from .deps import get_db, get_pricing_cache, get_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


# =========================
# Schemas
# =========================
class PricingRowIn(BaseModel):
    size: str = Field(..., min_length=1)
    level: str = Field(..., min_length=1)
    customer_category: str = Field(..., min_length=1)
    one_month: Optional[Decimal] = Field(None, ge=0)
    two_months: Optional[Decimal] = Field(None, ge=0)
    three_months: Optional[Decimal] = Field(None, ge=0)
    six_months: Optional[Decimal] = Field(None, ge=0)
    full_year: Optional[Decimal] = Field(None, ge=0)
    one_day: Optional[Decimal] = Field(None, ge=0)


class PricingRowOut(PricingRowIn):
    id: int

    class Config:
        from_attributes = True


class PriceOut(BaseModel):
    size: str
    level: str
    customer: str
    months: Optional[int] = None
    price: Optional[Decimal] = None
    resolved: bool


# =========================
# Lookups
# =========================
@router.get("/monthly", response_model=PriceOut)
def monthly_price(
    size: str = Query(...),
    level: str = Query("عادي"),
    customer: str = Query("عادي"),
    months: int = Query(1),
    resolver: PriceResolver = Depends(get_resolver),
):
    price = resolver.resolve_monthly_price(size, level, customer, months)
    return PriceOut(
        size=canonical_size(size),
        level=canonical_level(level),
        customer=customer,
        months=months,
        price=price,
        resolved=price is not None,
    )


@router.get("/daily", response_model=PriceOut)
def daily_price(
    size: str = Query(...),
    level: str = Query("عادي"),
    customer: str = Query("عادي"),
    resolver: PriceResolver = Depends(get_resolver),
):
    price = resolver.resolve_daily_price(size, level, customer)
    return PriceOut(
        size=canonical_size(size),
        level=canonical_level(level),
        customer=customer,
        price=price,
        resolved=price is not None,
    )


@router.get("/categories")
def categories(resolver: PriceResolver = Depends(get_resolver)):
    return {"categories": resolver.customer_categories()}


# =========================
# Table maintenance
# =========================
def _entry_out(e: PricingEntry) -> PricingRowOut:
    return PricingRowOut(
        id=e.id,
        size=e.size,
        level=e.billboard_level,
        customer_category=e.customer_category,
        one_month=e.one_month,
        two_months=e.two_months,
        three_months=e.three_months,
        six_months=e.six_months,
        full_year=e.full_year,
        one_day=e.one_day,
    )


@router.get("/rows", response_model=List[PricingRowOut])
def list_rows(db: Session = Depends(get_db)):
    rows = db.query(PricingEntry).order_by(PricingEntry.id.asc()).all()
    return [_entry_out(r) for r in rows]


@router.post("/rows", response_model=PricingRowOut)
def upsert_row(
    body: PricingRowIn,
    db: Session = Depends(get_db),
    cache: PricingCache = Depends(get_pricing_cache),
):
    """Insert or update the row for (size, level, customer_category), then refresh the cache."""
    size, level = canonical_size(body.size), canonical_level(body.level)
    category = body.customer_category.strip()
    try:
        entry = (
            db.query(PricingEntry)
            .filter(
                PricingEntry.size == size,
                PricingEntry.billboard_level == level,
                PricingEntry.customer_category == category,
            )
            .first()
        )
        if entry is None:
            entry = PricingEntry(size=size, billboard_level=level, customer_category=category)
            db.add(entry)
        for col in ("one_month", "two_months", "three_months", "six_months", "full_year", "one_day"):
            setattr(entry, col, getattr(body, col))
        db.commit()
        db.refresh(entry)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("pricing upsert failed: %s", e)
        raise HTTPException(status_code=500, detail=f"DB error on upsert_row: {e}")

    try:
        cache.refresh()
    except PricingSourceError as e:
        # row is saved; the cache catches up on the next refresh
        logger.warning("pricing cache refresh after upsert failed: %s", e)
    return _entry_out(entry)


def _refresh_in_background(cache: PricingCache) -> None:
    try:
        cache.refresh()
    except PricingSourceError as e:
        logger.warning("background pricing refresh failed: %s", e)


@router.post("/refresh")
def refresh(
    background_tasks: BackgroundTasks,
    background: bool = Query(False),
    cache: PricingCache = Depends(get_pricing_cache),
):
    if background:
        background_tasks.add_task(_refresh_in_background, cache)
        return {"scheduled": True}
    try:
        snap = cache.refresh()
    except PricingSourceError as e:
        raise HTTPException(status_code=503, detail=f"Pricing source unavailable: {e}")
    return {
        "scheduled": False,
        "rows": len(snap.rows),
        "categories": list(snap.categories),
        "loaded_at": snap.loaded_at.isoformat() if snap.loaded_at else None,
    }
