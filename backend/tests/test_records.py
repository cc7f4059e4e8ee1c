# backend/tests/test_records.py
from datetime import date
from decimal import Decimal

from billboard_rental.services.contract_status import (
    days_until_expiry,
    is_billboard_available,
    is_contract_active,
    is_contract_expired,
    should_show_contract_info,
)
from billboard_rental.services.records import (
    BillboardRecord,
    billboard_from_row,
    contract_from_row,
    pricing_row_from_row,
    to_date,
)

TODAY = date(2025, 6, 15)


def test_billboard_from_hosted_row():
    rec = billboard_from_row(
        {
            "ID": 12,
            "Billboard_Name": "طرابلس 12",
            "Size": "12x4",
            "Level": "VIP",
            "Faces_Count": "2",
            "Contract_Number": 1050,
            "Rent_End_Date": "2025-07-01",
            "partner_companies": "شركة أ, شركة ب ,",
            "capital": "10000",
        }
    )
    assert rec.id == "12"
    assert rec.name == "طرابلس 12"
    assert rec.faces == 2
    assert rec.contract_number == "1050"
    assert rec.rent_end_date == date(2025, 7, 1)
    assert rec.partner_companies == ("شركة أ", "شركة ب")
    # nothing recovered yet
    assert rec.capital_remaining == Decimal("10000")


def test_billboard_from_frontend_row():
    rec = billboard_from_row(
        {
            "id": "5",
            "name": "B5",
            "faces": 1,
            "contractNumber": "C-9",
            "contract": {"end_date": "30/06/2025"},
            "partner_companies": ["X", "", "Y"],
            "capital": 500,
            "capital_remaining": 0,
        }
    )
    assert (rec.id, rec.name, rec.faces, rec.contract_number) == ("5", "B5", 1, "C-9")
    assert rec.rent_end_date == date(2025, 6, 30)
    assert rec.partner_companies == ("X", "Y")
    assert rec.capital_remaining == Decimal("0")


def test_contract_from_row_variants():
    rec = contract_from_row(
        {
            "Contract_Number": 1050,
            "Customer Name": "شركة النور",
            "Contract Date": "2025-01-01",
            "End Date": "2025-04-01",
            "Total Rent": "4500",
            "billboard_ids": "1, 2,3",
            "installments_data": '[{"amount": 1500, "paymentType": "عند التوقيع"}]',
        }
    )
    assert rec.contract_number == "1050"
    assert rec.customer_name == "شركة النور"
    assert rec.start_date == date(2025, 1, 1)
    assert rec.total == Decimal("4500")
    assert rec.billboard_ids == ("1", "2", "3")
    assert rec.installments[0]["amount"] == 1500

    broken = contract_from_row({"contract_number": "X", "installments_data": "not json"})
    assert broken.installments == ()


def test_pricing_row_from_row():
    row = pricing_row_from_row(
        {"size": "12x4", "billboard_level": "premium", "customer_category": "شركات", "one_month": "1125", "2_months": None}
    )
    assert row.key == ("4x12", "ممتاز", "شركات")
    assert row.price_for_months(1) == Decimal("1125")
    assert row.price_for_months(2) is None


def test_to_date_formats():
    assert to_date("2025-03-04T10:00:00") == date(2025, 3, 4)
    assert to_date("04-03-2025") == date(2025, 3, 4)
    assert to_date("garbage") is None


def test_contract_dates():
    assert is_contract_expired(date(2025, 6, 14), TODAY)
    assert not is_contract_expired(date(2025, 6, 15), TODAY)
    assert is_contract_expired(None, TODAY)
    assert is_contract_active(date(2025, 6, 1), date(2025, 6, 15), TODAY)
    assert not is_contract_active(date(2025, 6, 16), date(2025, 7, 1), TODAY)
    assert days_until_expiry(date(2025, 6, 25), TODAY) == 10
    assert days_until_expiry(None, TODAY) is None


def test_billboard_availability():
    free = BillboardRecord(id="1")
    booked = BillboardRecord(id="2", contract_number="C1", rent_end_date=date(2025, 7, 1))
    expired = BillboardRecord(id="3", contract_number="C0", rent_end_date=date(2025, 1, 1))
    open_ended = BillboardRecord(id="4", contract_number="C2")
    broken = BillboardRecord(id="5", status="صيانة")

    assert is_billboard_available(free, TODAY)
    assert not is_billboard_available(booked, TODAY)
    assert is_billboard_available(expired, TODAY)
    assert not is_billboard_available(open_ended, TODAY)
    assert not is_billboard_available(broken, TODAY)

    assert should_show_contract_info(booked, TODAY)
    assert not should_show_contract_info(expired, TODAY)
    assert not should_show_contract_info(free, TODAY)
