# backend/billboard_rental/services/records.py
"""
Canonical records + the ingestion adapters that build them.

Rows coming from the hosted tables, spreadsheet imports and older frontends
spell the same field several ways (``Contract_Number`` / ``contractNumber`` /
``contract_number`` ...). Every variant is resolved here, once; the
calculators only ever see the dataclasses below.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .units import canonical_level, canonical_size

logger = logging.getLogger(__name__)

# live pricing columns (hosted table names)
MONTH_COLUMNS: Dict[int, str] = {
    1: "one_month",
    2: "2_months",
    3: "3_months",
    6: "6_months",
    12: "full_year",
}
DAY_COLUMN = "one_day"


# ----------------- Domain records -----------------
@dataclass(frozen=True)
class PricingRow:
    size: str
    level: str
    customer_category: str
    monthly: Mapping[int, Optional[Decimal]] = field(default_factory=dict)
    daily: Optional[Decimal] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.size, self.level, self.customer_category)

    def price_for_months(self, months: int) -> Optional[Decimal]:
        return self.monthly.get(months)


@dataclass(frozen=True)
class BillboardRecord:
    id: str
    name: str = ""
    size: str = ""
    level: str = ""
    faces: Optional[int] = None
    price: Decimal = Decimal("0")  # billboard's own monthly price (last-resort estimate)
    status: str = ""
    contract_number: Optional[str] = None
    customer_name: Optional[str] = None
    rent_start_date: Optional[date] = None
    rent_end_date: Optional[date] = None
    is_partnership: bool = False
    partner_companies: Tuple[str, ...] = ()
    capital: Decimal = Decimal("0")
    capital_remaining: Decimal = Decimal("0")


@dataclass(frozen=True)
class ContractRecord:
    contract_number: str
    customer_name: str = ""
    customer_category: str = "عادي"
    ad_type: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total: Decimal = Decimal("0")
    operating_fee_rate: Optional[Decimal] = None
    billboard_ids: Tuple[str, ...] = ()
    installments: Tuple[Dict[str, Any], ...] = ()


# ----------------- Coercion helpers -----------------
def _pick(row: Mapping[str, Any], *names: str) -> Any:
    """First present, non-None value (0 / "" are valid values)."""
    for n in names:
        if n in row and row[n] is not None:
            return row[n]
    return None


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default


def to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    # DD-MM-YYYY or DD/MM/YYYY (spreadsheet exports)
    for sep in ("-", "/"):
        parts = s.split(sep)
        if len(parts) == 3 and len(parts[2]) == 4:
            try:
                return date(int(parts[2]), int(parts[1]), int(parts[0]))
            except ValueError:
                return None
    return None


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_partner_companies(value: Any) -> Tuple[str, ...]:
    """List or "a, b, c" -> ("a", "b", "c"); blanks dropped."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return tuple(s for s in (str(x).strip() for x in items if x is not None) if s)


def _parse_installments(value: Any) -> Tuple[Dict[str, Any], ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("installments_data is not valid JSON; ignoring")
            return ()
    if not isinstance(value, list):
        return ()
    return tuple(dict(x) for x in value if isinstance(x, Mapping))


# ----------------- Adapters -----------------
def pricing_row_from_row(row: Mapping[str, Any]) -> PricingRow:
    monthly: Dict[int, Optional[Decimal]] = {}
    for months, col in MONTH_COLUMNS.items():
        # ORM attribute names (two_months ...) are accepted too
        alt = {2: "two_months", 3: "three_months", 6: "six_months"}.get(months, col)
        monthly[months] = to_decimal(_pick(row, col, alt))
    return PricingRow(
        size=canonical_size(_pick(row, "size", "Size") or ""),
        level=canonical_level(_pick(row, "billboard_level", "level", "Level")),
        customer_category=str(_pick(row, "customer_category", "category") or "").strip(),
        monthly=monthly,
        daily=to_decimal(_pick(row, DAY_COLUMN, "daily")),
    )


def billboard_from_row(row: Mapping[str, Any]) -> BillboardRecord:
    contract = row.get("contract") if isinstance(row.get("contract"), Mapping) else {}
    capital = to_decimal(_pick(row, "capital", "Capital"), Decimal("0"))
    # capital_remaining missing -> nothing recovered yet
    remaining = to_decimal(_pick(row, "capital_remaining", "Capital_Remaining"), capital)
    return BillboardRecord(
        id=str(_pick(row, "ID", "id") or ""),
        name=str(_pick(row, "Billboard_Name", "name", "billboard_name") or ""),
        size=str(_pick(row, "Size", "size") or ""),
        level=str(_pick(row, "Level", "level") or ""),
        faces=_to_int(_pick(row, "Faces_Count", "faces_count", "Faces", "faces")),
        price=to_decimal(_pick(row, "price", "Price"), Decimal("0")),
        status=str(_pick(row, "Status", "status") or ""),
        contract_number=_to_str(_pick(row, "Contract_Number", "contractNumber", "contract_number")),
        customer_name=_to_str(_pick(row, "Customer_Name", "customer_name", "customerName")),
        rent_start_date=to_date(_pick(row, "Rent_Start_Date", "rent_start_date")),
        rent_end_date=to_date(
            _pick(row, "Rent_End_Date", "rent_end_date") or contract.get("end_date")
        ),
        is_partnership=bool(_pick(row, "is_partnership", "Is_Partnership") or False),
        partner_companies=parse_partner_companies(_pick(row, "partner_companies", "Partner_Companies")),
        capital=capital,
        capital_remaining=remaining,
    )


def contract_from_row(row: Mapping[str, Any]) -> ContractRecord:
    ids_raw = _pick(row, "billboard_ids", "Billboard_Ids")
    if isinstance(ids_raw, (list, tuple)):
        ids = tuple(str(x).strip() for x in ids_raw if str(x).strip())
    else:
        ids = tuple(s.strip() for s in str(ids_raw or "").split(",") if s.strip())
    return ContractRecord(
        contract_number=str(_pick(row, "Contract_Number", "contract_number", "contractNumber", "id") or ""),
        customer_name=str(_pick(row, "Customer Name", "customer_name", "Customer_Name") or ""),
        customer_category=str(_pick(row, "customer_category", "pricing_category", "Customer Category") or "عادي"),
        ad_type=str(_pick(row, "Ad Type", "ad_type") or ""),
        start_date=to_date(_pick(row, "Contract Date", "start_date", "Start Date")),
        end_date=to_date(_pick(row, "End Date", "end_date")),
        total=to_decimal(_pick(row, "total_cost", "Total", "Total Rent", "final_total"), Decimal("0")),
        operating_fee_rate=to_decimal(_pick(row, "operating_fee_rate")),
        billboard_ids=ids,
        installments=_parse_installments(_pick(row, "installments_data", "installments")),
    )
