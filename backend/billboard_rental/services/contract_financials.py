# backend/billboard_rental/services/contract_financials.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, List, Literal, Mapping, Optional, Sequence

from ..core.config import settings
from .price_resolver import PriceResolver
from .records import BillboardRecord
from .units import canonical_size, size_dimensions

logger = logging.getLogger(__name__)

DiscountType = Literal["percent", "amount"]
PricingMode = Literal["months", "days"]

DISCOUNT_TYPES = {"percent", "amount"}
MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")


def _d(value: Any, field_name: str = "value") -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"invalid {field_name}: {value!r}")
    if not d.is_finite():
        raise ValueError(f"invalid {field_name}: {value!r}")
    return d


def _q(amount: Decimal) -> Decimal:
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


# ----------------- Installation -----------------
@dataclass(frozen=True)
class InstallationDetail:
    billboard_id: str
    billboard_name: str
    size: str
    installation_price: Decimal  # stored price = full two-face job
    faces: Optional[int] = None

    @property
    def effective_price(self) -> Decimal:
        # two-faced boards are billed per face
        # TODO: confirm faces > 2 with operations; currently billed like 2 faces
        if self.faces is not None and self.faces >= 2:
            return self.installation_price / 2
        return self.installation_price

    @property
    def doubled_display_price(self) -> Decimal:
        """UI "what it would have been" figure; never part of a total."""
        return self.installation_price * 2

    def as_dict(self) -> dict:
        return {
            "billboard_id": self.billboard_id,
            "billboard_name": self.billboard_name,
            "size": self.size,
            "installation_price": str(self.installation_price),
            "faces": self.faces,
            "effective_price": str(_q(self.effective_price)),
            "doubled_display_price": str(self.doubled_display_price),
        }


def installation_cost(details: Iterable[InstallationDetail]) -> Decimal:
    return _q(sum((d.effective_price for d in details), ZERO))


def build_installation_details(
    billboards: Iterable[BillboardRecord],
    size_prices: Mapping[str, Any],
) -> List[InstallationDetail]:
    """
    Match each board against the per-size installation price list.
    Keys of ``size_prices`` may use any spelling ("12x4", "4*12").
    """
    by_size = {canonical_size(k): _d(v, "installation_price") for k, v in size_prices.items() if v is not None}
    out: List[InstallationDetail] = []
    for b in billboards:
        price = by_size.get(canonical_size(b.size))
        if price is None:
            logger.warning("no installation price for billboard %s (size=%r)", b.id, b.size)
            price = ZERO
        out.append(
            InstallationDetail(
                billboard_id=b.id,
                billboard_name=b.name or f"لوحة {b.id}",
                size=b.size,
                installation_price=price,
                faces=b.faces,
            )
        )
    return out


# ----------------- Print cost -----------------
def compute_print_cost(billboards: Iterable[BillboardRecord], price_per_meter: Any) -> Decimal:
    """Σ width × height × faces × price/m². Unparseable sizes add nothing."""
    ppm = _d(price_per_meter, "price_per_meter")
    if ppm <= 0:
        return ZERO
    total = ZERO
    for b in billboards:
        dims = size_dimensions(b.size)
        if dims is None:
            continue
        w, h = dims
        total += w * h * Decimal(b.faces or 1) * ppm
    return _q(total)


# ----------------- Rental estimate -----------------
def estimate_rental_total(
    billboards: Sequence[BillboardRecord],
    resolver: PriceResolver,
    customer: str,
    mode: PricingMode = "months",
    duration: int = 0,
) -> Decimal:
    """
    Sum of the rent of every selected board for the chosen duration.
    Months: resolved price, else the board's own monthly price × months.
    Days: daily price × days; boards without any price add 0.
    """
    try:
        duration = int(duration or 0)
    except (TypeError, ValueError):
        raise ValueError(f"invalid duration: {duration!r}")
    if duration <= 0:
        return ZERO

    total = ZERO
    for b in billboards:
        if mode == "months":
            price = resolver.resolve_monthly_price(b.size, b.level, customer, duration)
            total += price if price is not None else b.price * duration
        elif mode == "days":
            daily = resolver.resolve_daily_price(b.size, b.level, customer)
            total += (daily or ZERO) * duration
        else:
            raise ValueError(f"unknown pricing mode: {mode!r}")
    return _q(total)


def resolve_base_total(rent_cost: Any, estimated: Any) -> Decimal:
    """A positive rent cost typed by the user wins over the estimate."""
    rc = _d(rent_cost, "rent_cost")
    return rc if rc > 0 else _d(estimated, "estimated")


# ----------------- Financials -----------------
@dataclass(frozen=True)
class ContractFinancials:
    base_total: Decimal
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    final_total: Decimal
    installation_cost: Decimal
    print_cost: Decimal
    operating_fee_rate: Decimal
    operating_fee: Decimal
    rental_cost_only: Decimal

    @property
    def is_over_allocated(self) -> bool:
        """Installation/print exceed the discounted total (negative net rental)."""
        return self.rental_cost_only < 0

    def as_dict(self) -> dict:
        return {
            "base_total": str(self.base_total),
            "discount_type": self.discount_type,
            "discount_value": str(self.discount_value),
            "discount_amount": str(self.discount_amount),
            "final_total": str(self.final_total),
            "installation_cost": str(self.installation_cost),
            "print_cost": str(self.print_cost),
            "operating_fee_rate": str(self.operating_fee_rate),
            "operating_fee": str(self.operating_fee),
            "rental_cost_only": str(self.rental_cost_only),
            "is_over_allocated": self.is_over_allocated,
        }


def compute_discount(base_total: Decimal, discount_type: str, discount_value: Decimal) -> Decimal:
    if discount_type not in DISCOUNT_TYPES:
        raise ValueError(f"discount_type must be one of {sorted(DISCOUNT_TYPES)}")
    if discount_type == "percent":
        amount = base_total * discount_value / Decimal("100")
    else:
        amount = discount_value
    # clamp to [0, base_total]
    return _q(min(max(amount, ZERO), max(base_total, ZERO)))


def compute_financials(
    base_total: Any,
    discount_type: str = "percent",
    discount_value: Any = 0,
    installation_details: Optional[Iterable[InstallationDetail]] = None,
    operating_fee_rate: Optional[Any] = None,
    print_cost: Any = 0,
) -> ContractFinancials:
    """
    final_total      = base_total - discount (clamped, never negative)
    rental_cost_only = final_total - installation - print   (not clamped)
    operating_fee    = rental_cost_only × rate / 100

    ``operating_fee_rate=None`` means "not set" and takes the configured
    default; an explicit 0 stays 0.
    """
    base = _d(base_total, "base_total")
    if base < 0:
        raise ValueError("base_total cannot be negative")
    dval = _d(discount_value, "discount_value")

    discount_amount = compute_discount(base, discount_type, dval)
    final_total = _q(base - discount_amount)

    inst = installation_cost(installation_details or [])
    prt = _q(_d(print_cost, "print_cost"))
    rental_only = _q(final_total - inst - prt)

    rate = settings.DEFAULT_OPERATING_FEE_RATE if operating_fee_rate is None else _d(operating_fee_rate, "operating_fee_rate")
    if rate < 0:
        raise ValueError("operating_fee_rate cannot be negative")
    fee = _q(rental_only * rate / Decimal("100"))

    return ContractFinancials(
        base_total=_q(base),
        discount_type=discount_type,
        discount_value=dval,
        discount_amount=discount_amount,
        final_total=final_total,
        installation_cost=inst,
        print_cost=prt,
        operating_fee_rate=rate,
        operating_fee=fee,
        rental_cost_only=rental_only,
    )
