# backend/billboard_rental/services/contract_status.py
from __future__ import annotations

from datetime import date
from typing import Optional

from .records import BillboardRecord

MAINTENANCE_STATUSES = {"صيانة", "maintenance"}


def _today(today: Optional[date]) -> date:
    return today or date.today()


def is_contract_expired(end_date: Optional[date], today: Optional[date] = None) -> bool:
    """A missing end date counts as expired (nothing is running)."""
    if end_date is None:
        return True
    return end_date < _today(today)


def is_contract_active(start_date: Optional[date], end_date: Optional[date], today: Optional[date] = None) -> bool:
    if start_date is None or end_date is None:
        return False
    return start_date <= _today(today) <= end_date


def days_until_expiry(end_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Negative once expired; None without an end date."""
    if end_date is None:
        return None
    return (end_date - _today(today)).days


def is_under_maintenance(record: BillboardRecord) -> bool:
    return (record.status or "").strip().lower() in MAINTENANCE_STATUSES


def is_billboard_available(record: BillboardRecord, today: Optional[date] = None) -> bool:
    if is_under_maintenance(record):
        return False
    if not record.contract_number:
        return True
    # contract with no end date: treat as still booked
    if record.rent_end_date is None:
        return False
    return is_contract_expired(record.rent_end_date, today)


def should_show_contract_info(record: BillboardRecord, today: Optional[date] = None) -> bool:
    """Contract badge/customer shown only while the contract is running."""
    if not record.contract_number:
        return False
    return not is_contract_expired(record.rent_end_date, today)
