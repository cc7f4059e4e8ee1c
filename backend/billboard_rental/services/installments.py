# backend/billboard_rental/services/installments.py
"""
Payment schedule for a contract.

All editing helpers return a new list; the caller owns the list and decides
when to persist it. Bad indexes and malformed edits are ignored (the editing
UI can fire an update for a row that was just removed).
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal, ROUND_DOWN, InvalidOperation
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from ..core.config import settings

MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")


class PaymentType(str, Enum):
    ON_SIGNING = "عند التوقيع"
    ON_INSTALLATION = "عند التركيب"
    MONTHLY = "شهري"
    BIMONTHLY = "شهرين"
    QUARTERLY = "ثلاثة أشهر"
    END_OF_CONTRACT = "نهاية العقد"


PAYMENT_TYPES = {p.value for p in PaymentType}

# Default trigger for generated installments: first label for the first row,
# the last label repeats for every row after it.
DEFAULT_PAYMENT_CYCLE = (PaymentType.ON_SIGNING.value, PaymentType.MONTHLY.value)

# (payment_type, index) -> due date
DueDatePolicy = Callable[[str, int], Optional[date]]


@dataclass(frozen=True)
class Installment:
    amount: Decimal
    payment_type: str = PaymentType.MONTHLY.value
    description: str = ""
    due_date: Optional[date] = None

    def as_dict(self) -> dict:
        return {
            "amount": str(self.amount),
            "paymentType": self.payment_type,
            "description": self.description,
            "dueDate": self.due_date.isoformat() if self.due_date else "",
        }


# ----------------- Dates -----------------
def add_months(d: date, k: int) -> date:
    """Calendar month arithmetic; day is clamped to the end of the target month."""
    base = d.year * 12 + (d.month - 1) + k
    y, m = base // 12, base % 12 + 1
    last = calendar.monthrange(y, m)[1]
    return date(y, m, min(d.day, last))


def contract_end_date(start: Optional[date], mode: str = "months", months: int = 0, days: int = 0) -> Optional[date]:
    """Months are counted as 30 days, as on the printed contract."""
    if start is None:
        return None
    if mode == "months":
        return start + timedelta(days=max(0, int(months or 0)) * 30)
    return start + timedelta(days=max(0, int(days or 0)))


class ContractDueDatePolicy:
    """
    Due dates relative to the contract:
      عند التوقيع -> start
      شهري / شهرين / ثلاثة أشهر -> start + index × (1 | 2 | 3) months
      عند التركيب -> start + INSTALLATION_DUE_DAYS
      نهاية العقد -> end
    """

    def __init__(self, start: Optional[date], end: Optional[date] = None, installation_days: Optional[int] = None):
        self.start = start
        self.end = end
        self.installation_days = settings.INSTALLATION_DUE_DAYS if installation_days is None else installation_days

    def __call__(self, payment_type: str, index: int) -> Optional[date]:
        if payment_type == PaymentType.END_OF_CONTRACT.value:
            return self.end
        if self.start is None:
            return None
        if payment_type == PaymentType.ON_SIGNING.value:
            return self.start
        if payment_type == PaymentType.MONTHLY.value:
            return add_months(self.start, index)
        if payment_type == PaymentType.BIMONTHLY.value:
            return add_months(self.start, index * 2)
        if payment_type == PaymentType.QUARTERLY.value:
            return add_months(self.start, index * 3)
        if payment_type == PaymentType.ON_INSTALLATION.value:
            return self.start + timedelta(days=self.installation_days)
        return None


def _no_due_date(payment_type: str, index: int) -> Optional[date]:
    return None


# ----------------- Helpers -----------------
def _money(value: Any) -> Optional[Decimal]:
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return d if d.is_finite() else None


def _default_type(index: int) -> str:
    return DEFAULT_PAYMENT_CYCLE[min(index, len(DEFAULT_PAYMENT_CYCLE) - 1)]


def _default_description(index: int) -> str:
    return "دفعة أولى عند التوقيع" if index == 0 else f"الدفعة {index + 1}"


def installments_total(installments: Sequence[Installment]) -> Decimal:
    return sum((i.amount for i in installments), ZERO)


# ----------------- Operations -----------------
def distribute_evenly(total: Any, count: int, due_date_policy: Optional[DueDatePolicy] = None) -> List[Installment]:
    """
    Split ``total`` into ``count`` shares truncated to cents; the last share
    absorbs the remainder so the schedule always sums to ``total``.

    distribute_evenly(100, 3) -> 33.33, 33.33, 33.34
    """
    t = _money(total)
    if t is None or t < 0:
        raise ValueError(f"total must be a non-negative amount, got {total!r}")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer, got {count!r}")

    policy = due_date_policy or _no_due_date
    share = (t / count).quantize(MONEY_QUANT, rounding=ROUND_DOWN)
    last = t - share * (count - 1)

    out: List[Installment] = []
    for i in range(count):
        ptype = _default_type(i)
        out.append(
            Installment(
                amount=last if i == count - 1 else share,
                payment_type=ptype,
                description=_default_description(i),
                due_date=policy(ptype, i),
            )
        )
    return out


def add_installment(
    installments: Sequence[Installment],
    final_total: Any = 0,
    due_date_policy: Optional[DueDatePolicy] = None,
) -> List[Installment]:
    """Append a monthly installment for whatever is still unallocated (≥ 0)."""
    policy = due_date_policy or _no_due_date
    total = _money(final_total) or ZERO
    remaining = max(ZERO, total - installments_total(installments))
    n = len(installments)
    ptype = PaymentType.MONTHLY.value
    return [
        *installments,
        Installment(amount=remaining, payment_type=ptype, description=f"الدفعة {n + 1}", due_date=policy(ptype, n)),
    ]


def remove_installment(installments: Sequence[Installment], index: int) -> List[Installment]:
    if not isinstance(index, int) or not (0 <= index < len(installments)):
        return list(installments)
    return [inst for i, inst in enumerate(installments) if i != index]


_FIELD_ALIASES = {
    "amount": "amount",
    "payment_type": "payment_type",
    "paymentType": "payment_type",
    "description": "description",
    "due_date": "due_date",
    "dueDate": "due_date",
}


def update_installment(
    installments: Sequence[Installment],
    index: int,
    field: str,
    value: Any,
    due_date_policy: Optional[DueDatePolicy] = None,
) -> List[Installment]:
    """
    Set one field of one installment. Changing the payment type recomputes the
    due date from the policy. Anything invalid leaves the list as it was.
    """
    out = list(installments)
    if not isinstance(index, int) or not (0 <= index < len(out)):
        return out
    attr = _FIELD_ALIASES.get(field)
    if attr is None:
        return out

    current = out[index]
    if attr == "amount":
        amount = _money(value)
        if amount is None or amount < 0:
            return out
        out[index] = replace(current, amount=amount)
    elif attr == "payment_type":
        if value not in PAYMENT_TYPES:
            return out
        policy = due_date_policy or _no_due_date
        out[index] = replace(current, payment_type=value, due_date=policy(value, index))
    elif attr == "description":
        out[index] = replace(current, description="" if value is None else str(value))
    elif attr == "due_date":
        if value is None or value == "":
            out[index] = replace(current, due_date=None)
        elif isinstance(value, date):
            out[index] = replace(current, due_date=value)
        else:
            try:
                out[index] = replace(current, due_date=date.fromisoformat(str(value)[:10]))
            except ValueError:
                return out
    return out


def clear_installments() -> List[Installment]:
    return []


@dataclass(frozen=True)
class InstallmentCheck:
    is_valid: bool
    installments_total: Decimal
    final_total: Decimal
    difference: Decimal  # installments_total - final_total
    message: str = ""

    def as_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "installments_total": str(self.installments_total),
            "final_total": str(self.final_total),
            "difference": str(self.difference),
            "message": self.message,
        }


def check_installments(
    installments: Sequence[Installment],
    final_total: Any,
    tolerance: Optional[Any] = None,
) -> InstallmentCheck:
    """Report (never fix) a schedule that does not add up to the contract total."""
    tol = _money(tolerance) if tolerance is not None else settings.INSTALLMENT_TOLERANCE
    total = _money(final_total) or ZERO
    s = installments_total(installments)
    diff = s - total
    if not installments:
        return InstallmentCheck(False, s, total, diff, "يرجى إضافة دفعات للعقد")
    if abs(diff) > tol:
        return InstallmentCheck(False, s, total, diff, "مجموع الدفعات لا يساوي إجمالي العقد")
    return InstallmentCheck(True, s, total, diff, "")
