# backend/billboard_rental/services/price_resolver.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from .pricing_cache import EMPTY_SNAPSHOT, PricingCache, PricingSnapshot
from .records import MONTH_COLUMNS
from .units import canonical_level, canonical_size

# Durations the live table prices directly
MONTH_BUCKETS = tuple(sorted(MONTH_COLUMNS))  # (1, 2, 3, 6, 12)

# Static 1-month prices: size -> level -> customer category -> price
FALLBACK_PRICES: Dict[str, Dict[str, Dict[str, int]]] = {
    "4x12": {
        "عادي": {"عادي": 800, "المدينة": 600, "مسوق": 700, "شركات": 750},
        "ممتاز": {"عادي": 1200, "المدينة": 900, "مسوق": 1050, "شركات": 1125},
        "VIP": {"عادي": 1600, "المدينة": 1200, "مسوق": 1400, "شركات": 1500},
    },
    "6x18": {
        "عادي": {"عادي": 1500, "المدينة": 1125, "مسوق": 1312, "شركات": 1406},
        "ممتاز": {"عادي": 2250, "المدينة": 1687, "مسوق": 1968, "شركات": 2109},
        "VIP": {"عادي": 3000, "المدينة": 2250, "مسوق": 2625, "شركات": 2812},
    },
    "8x24": {
        "عادي": {"عادي": 2400, "المدينة": 1800, "مسوق": 2100, "شركات": 2250},
        "ممتاز": {"عادي": 3600, "المدينة": 2700, "مسوق": 3150, "شركات": 3375},
        "VIP": {"عادي": 4800, "المدينة": 3600, "مسوق": 4200, "شركات": 4500},
    },
}

# Multi-month discount curve applied to the static 1-month price
MONTH_MULTIPLIERS: Dict[int, Decimal] = {
    1: Decimal("1"),
    2: Decimal("1.8"),
    3: Decimal("2.5"),
    6: Decimal("4.5"),
    12: Decimal("8"),
}

DAYS_PER_MONTH = Decimal("30")


def _round_int(x: Decimal) -> Decimal:
    return x.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _round_cents(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def fallback_base_price(size: str, level: str, customer: str) -> Optional[Decimal]:
    """Static 1-month price for a canonical triple, or None."""
    price = FALLBACK_PRICES.get(size, {}).get(level, {}).get(customer)
    return Decimal(price) if price is not None else None


class PriceResolver:
    """
    Price lookup: live table -> static multiplier table -> None.

    ``None`` means "no price could be resolved" and must not be read as free.
    """

    def __init__(self, cache: Optional[PricingCache] = None):
        self._cache = cache

    def _snapshot(self) -> PricingSnapshot:
        # no cache / not loaded yet -> static table only
        return self._cache.get() if self._cache is not None else EMPTY_SNAPSHOT

    def resolve_monthly_price(self, size: Any, level: Any, customer: str, months: int) -> Optional[Decimal]:
        try:
            months = int(months)
        except (TypeError, ValueError):
            return None
        if months < 1:
            return None

        c_size, c_level = canonical_size(size), canonical_level(level)
        snap = self._snapshot()

        if months in MONTH_BUCKETS:
            row = snap.find(c_size, c_level, customer)
            if row is not None:
                live = row.price_for_months(months)
                if live is not None:
                    return live

        base = fallback_base_price(c_size, c_level, customer)
        if base is None:
            return None
        multiplier = MONTH_MULTIPLIERS.get(months, Decimal(months))
        return _round_int(base * multiplier)

    def resolve_daily_price(self, size: Any, level: Any, customer: str) -> Optional[Decimal]:
        row = self._snapshot().find(canonical_size(size), canonical_level(level), customer)
        if row is not None and row.daily is not None:
            return row.daily

        monthly = self.resolve_monthly_price(size, level, customer, 1)
        if monthly is None:
            return None
        return _round_cents(monthly / DAYS_PER_MONTH)

    def customer_categories(self):
        return list(self._snapshot().categories)
