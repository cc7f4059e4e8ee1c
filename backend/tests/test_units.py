# backend/tests/test_units.py
from decimal import Decimal

import pytest

from billboard_rental.services.units import (
    BASE_CUSTOMER_CATEGORIES,
    canonical_level,
    canonical_size,
    is_known_size,
    merge_customer_categories,
    size_dimensions,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("4x12", "4x12"),
        ("12x4", "4x12"),
        ("12×4", "4x12"),
        ("4 * 12", "4x12"),
        (" 18X6 ", "6x18"),
        ("24x8", "8x24"),
        ("9x3", "3x9"),
        ("6x2", "2x6"),
    ],
)
def test_canonical_size_spellings(raw, expected):
    assert canonical_size(raw) == expected


def test_canonical_size_commutative_and_idempotent():
    for a, b in [("4", "12"), ("6", "18"), ("3", "9"), ("5", "7")]:
        one = canonical_size(f"{a}x{b}")
        assert one == canonical_size(f"{b}x{a}")
        assert canonical_size(one) == one


def test_canonical_size_unknown_passthrough():
    assert canonical_size("كبير") == "كبير"
    assert canonical_size("") == ""
    assert canonical_size(None) == ""
    # number pairs outside the price list still normalize
    assert canonical_size("10x5") == "5x10"
    assert not is_known_size("10x5")
    assert is_known_size("12x4")


def test_size_dimensions():
    assert size_dimensions("3x4.5") == (Decimal("3"), Decimal("4.5"))
    assert size_dimensions("big") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("عادي", "عادي"),
        ("ممتاز", "ممتاز"),
        ("premium", "ممتاز"),
        ("vip", "VIP"),
        ("VIP", "VIP"),
        ("", "عادي"),
        (None, "عادي"),
        ("something else", "عادي"),
    ],
)
def test_canonical_level(raw, expected):
    assert canonical_level(raw) == expected


def test_merge_customer_categories_keeps_baseline_first():
    merged = merge_customer_categories(["شركات", "جهات حكومية", "", None, "جهات حكومية"])
    assert merged[: len(BASE_CUSTOMER_CATEGORIES)] == list(BASE_CUSTOMER_CATEGORIES)
    assert merged[len(BASE_CUSTOMER_CATEGORIES):] == ["جهات حكومية"]
