# backend/billboard_rental/services/pricing_cache.py
"""
In-memory copy of the live pricing table.

The cache never mutates a snapshot in place. ``refresh`` builds a brand new
:class:`PricingSnapshot` and swaps the reference, so a reader holding the old
snapshot keeps a consistent view until it asks again.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Protocol, Tuple

from .records import PricingRow
from .units import BASE_CUSTOMER_CATEGORIES, merge_customer_categories

logger = logging.getLogger(__name__)

PricingKey = Tuple[str, str, str]  # (size, level, customer_category)


class PricingSourceError(RuntimeError):
    """The pricing data source could not be read."""


class PricingSource(Protocol):
    def fetch_pricing_rows(self) -> List[PricingRow]: ...

    def fetch_customer_categories(self) -> List[str]: ...


@dataclass(frozen=True)
class PricingSnapshot:
    rows: Tuple[PricingRow, ...] = ()
    index: Mapping[PricingKey, PricingRow] = field(default_factory=lambda: MappingProxyType({}))
    categories: Tuple[str, ...] = BASE_CUSTOMER_CATEGORIES
    loaded_at: Optional[datetime] = None
    initialized: bool = False

    def find(self, size: str, level: str, customer: str) -> Optional[PricingRow]:
        return self.index.get((size, level, customer))


EMPTY_SNAPSHOT = PricingSnapshot()


def _index_rows(rows: Iterable[PricingRow]) -> Tuple[Tuple[PricingRow, ...], Mapping[PricingKey, PricingRow]]:
    ordered: List[PricingRow] = []
    idx = {}
    for r in rows:
        ordered.append(r)
        if r.key in idx:
            # authoritative table has one row per triple; keep the first
            logger.warning("duplicate pricing row for %s; keeping the first one", r.key)
            continue
        idx[r.key] = r
    return tuple(ordered), MappingProxyType(idx)


class PricingCache:
    """
    Lifecycle: ``init()`` once (non-fatal), ``get()`` anywhere,
    ``refresh()`` whenever the table changes.
    """

    def __init__(self, source: Optional[PricingSource] = None):
        self._source = source
        self._snapshot: PricingSnapshot = EMPTY_SNAPSHOT
        # serializes writers only; readers never take the lock
        self._refresh_lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._snapshot.initialized

    def get(self) -> PricingSnapshot:
        return self._snapshot

    def init(self) -> PricingSnapshot:
        """Load once. A failing source leaves the static-fallback-only state."""
        if self._snapshot.initialized:
            return self._snapshot
        try:
            return self.refresh()
        except PricingSourceError as e:
            logger.warning("pricing cache init failed, using static fallback prices: %s", e)
            return self._snapshot

    def refresh(self) -> PricingSnapshot:
        """
        Re-read rows and categories. Each half is replaced independently; if
        either fetch failed the new snapshot is still published (with the old
        half kept) and PricingSourceError is raised afterwards.
        """
        if self._source is None:
            raise PricingSourceError("no pricing source configured")

        with self._refresh_lock:
            current = self._snapshot
            errors: List[str] = []

            rows, index = current.rows, current.index
            rows_ok = False
            try:
                rows, index = _index_rows(self._source.fetch_pricing_rows())
                rows_ok = True
            except Exception as e:
                logger.warning("fetching pricing rows failed: %s", e)
                errors.append(f"pricing rows: {e}")

            categories = current.categories
            try:
                categories = tuple(merge_customer_categories(self._source.fetch_customer_categories()))
            except Exception as e:
                logger.warning("fetching customer categories failed: %s", e)
                errors.append(f"customer categories: {e}")

            self._snapshot = PricingSnapshot(
                rows=rows,
                index=index,
                categories=categories,
                loaded_at=datetime.now(timezone.utc) if rows_ok else current.loaded_at,
                initialized=current.initialized or rows_ok,
            )
            logger.info("pricing cache refreshed: %d rows, %d categories", len(rows), len(categories))

        if errors:
            raise PricingSourceError("; ".join(errors))
        return self._snapshot

    def seed(self, rows: Iterable[PricingRow], categories: Optional[Iterable[str]] = None) -> PricingSnapshot:
        """Publish a fixed snapshot (fixtures, offline use)."""
        ordered, index = _index_rows(rows)
        with self._refresh_lock:
            self._snapshot = PricingSnapshot(
                rows=ordered,
                index=index,
                categories=tuple(merge_customer_categories(categories)),
                loaded_at=datetime.now(timezone.utc),
                initialized=True,
            )
        return self._snapshot
