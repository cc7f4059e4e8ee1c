# backend/billboard_rental/services/partnership.py
"""
Rent split for boards co-owned with partner companies.

recovery        (capital_remaining > 0): 35% company, 35% partners, 30% paid back into capital
profit_sharing  (capital_remaining <= 0): 50% company, 50% partners

Partner and capital shares are rounded to cents; the company share is whatever
is left, so the parts always add up to the rent.

Once capital_remaining reaches 0 it stays there, so a board never goes back
to the recovery phase.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, InvalidOperation
from typing import Any, List, Sequence

MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")

PHASE_RECOVERY = "recovery"
PHASE_PROFIT_SHARING = "profit_sharing"

RECOVERY_SPLIT = (Decimal("0.35"), Decimal("0.35"), Decimal("0.30"))
PROFIT_SPLIT = (Decimal("0.5"), Decimal("0.5"), ZERO)

COMPANY_BENEFICIARY = "الفارس"
CAPITAL_BENEFICIARY = "رأس المال"
PARTNER_PLACEHOLDER = "partner"

TYPE_RENTAL_INCOME = "rental_income"
TYPE_CAPITAL_DEDUCTION = "capital_deduction"


def _d(value: Any, field_name: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"invalid {field_name}: {value!r}")
    if not d.is_finite():
        raise ValueError(f"invalid {field_name}: {value!r}")
    return d


def _q(x: Decimal) -> Decimal:
    return x.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PartnershipSplit:
    rent_amount: Decimal
    company: Decimal
    partner: Decimal
    deduct: Decimal
    new_capital_remaining: Decimal
    phase: str

    def as_dict(self) -> dict:
        return {
            "rent_amount": str(self.rent_amount),
            "company": str(self.company),
            "partner": str(self.partner),
            "deduct": str(self.deduct),
            "new_capital_remaining": str(self.new_capital_remaining),
            "phase": self.phase,
        }


def compute_split(capital_remaining: Any, rent_amount: Any) -> PartnershipSplit:
    rent = _d(rent_amount, "rent_amount")
    if rent < 0:
        raise ValueError("rent_amount cannot be negative")
    remaining = _d(capital_remaining, "capital_remaining")

    if remaining > 0:
        _, p, k = RECOVERY_SPLIT
        deduct = _q(rent * k)
        partner = _q(rent * p)
        return PartnershipSplit(
            rent_amount=rent,
            company=rent - partner - deduct,
            partner=partner,
            deduct=deduct,
            new_capital_remaining=max(ZERO, remaining - deduct),
            phase=PHASE_RECOVERY,
        )

    _, p, _ = PROFIT_SPLIT
    partner = _q(rent * p)
    return PartnershipSplit(
        rent_amount=rent,
        company=rent - partner,
        partner=partner,
        deduct=ZERO,
        new_capital_remaining=ZERO,
        phase=PHASE_PROFIT_SHARING,
    )


@dataclass(frozen=True)
class LedgerEntry:
    billboard_id: str
    beneficiary: str
    amount: Decimal
    type: str

    def as_dict(self) -> dict:
        return {
            "billboard_id": self.billboard_id,
            "beneficiary": self.beneficiary,
            "amount": str(self.amount),
            "type": self.type,
        }


def _partner_shares(total: Decimal, count: int) -> List[Decimal]:
    share = (total / count).quantize(MONEY_QUANT, rounding=ROUND_DOWN)
    return [share] * (count - 1) + [total - share * (count - 1)]


def ledger_entries(billboard_id: Any, split: PartnershipSplit, partners: Sequence[str]) -> List[LedgerEntry]:
    """Transactions to append to the shared ledger for one rent application."""
    bid = str(billboard_id)
    out = [LedgerEntry(bid, COMPANY_BENEFICIARY, split.company, TYPE_RENTAL_INCOME)]

    names = [p for p in (str(x).strip() for x in partners or ()) if p]
    if names:
        for name, amount in zip(names, _partner_shares(split.partner, len(names))):
            out.append(LedgerEntry(bid, name, amount, TYPE_RENTAL_INCOME))
    else:
        out.append(LedgerEntry(bid, PARTNER_PLACEHOLDER, split.partner, TYPE_RENTAL_INCOME))

    if split.deduct > 0:
        out.append(LedgerEntry(bid, CAPITAL_BENEFICIARY, split.deduct, TYPE_CAPITAL_DEDUCTION))
    return out


@dataclass(frozen=True)
class CapitalStatus:
    capital: Decimal
    capital_remaining: Decimal
    recovered: Decimal
    recovered_pct: int
    phase: str


def capital_status(capital: Any, capital_remaining: Any) -> CapitalStatus:
    cap = _d(capital, "capital")
    rem = max(ZERO, _d(capital_remaining, "capital_remaining"))
    recovered = max(ZERO, cap - rem)
    pct = int((recovered / cap * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)) if cap > 0 else 0
    return CapitalStatus(
        capital=cap,
        capital_remaining=rem,
        recovered=recovered,
        recovered_pct=pct,
        phase=PHASE_RECOVERY if rem > 0 else PHASE_PROFIT_SHARING,
    )
