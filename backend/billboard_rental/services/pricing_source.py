# backend/billboard_rental/services/pricing_source.py
from __future__ import annotations

import logging
from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import PricingCategory, PricingEntry
from .pricing_cache import PricingSourceError
from .records import PricingRow, pricing_row_from_row

logger = logging.getLogger(__name__)


class SqlPricingSource:
    """Reads ``pricing`` / ``pricing_categories`` with a short-lived session per fetch."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def fetch_pricing_rows(self) -> List[PricingRow]:
        db = self._session_factory()
        try:
            entries = db.query(PricingEntry).order_by(PricingEntry.id.asc()).all()
            return [pricing_row_from_row(e.as_row()) for e in entries]
        except SQLAlchemyError as e:
            raise PricingSourceError(str(e)) from e
        finally:
            db.close()

    def fetch_customer_categories(self) -> List[str]:
        db = self._session_factory()
        try:
            rows = db.query(PricingCategory.name).order_by(PricingCategory.id.asc()).all()
            return [r[0] for r in rows if r[0]]
        except SQLAlchemyError as e:
            raise PricingSourceError(str(e)) from e
        finally:
            db.close()
