# backend/billboard_rental/services/units.py
"""
Size / level / customer-category vocabulary.

Sizes arrive as free text from the billboard sheet ("4x12", "12 * 4",
"12×4" ...). Pricing keys use one spelling per size: the two dimensions
joined by "x", smaller number first.
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Tuple

# Canonical size tags known to the price list
CANONICAL_SIZES: Tuple[str, ...] = ("4x12", "6x18", "8x24", "3x9", "2x6")

# Canonical levels
LEVEL_STANDARD = "عادي"
LEVEL_PREMIUM = "ممتاز"
LEVEL_VIP = "VIP"
CANONICAL_LEVELS: Tuple[str, ...] = (LEVEL_STANDARD, LEVEL_PREMIUM, LEVEL_VIP)

_LEVEL_SYNONYMS = {
    "عادي": LEVEL_STANDARD,
    "normal": LEVEL_STANDARD,
    "standard": LEVEL_STANDARD,
    "regular": LEVEL_STANDARD,
    "ممتاز": LEVEL_PREMIUM,
    "premium": LEVEL_PREMIUM,
    "excellent": LEVEL_PREMIUM,
    "vip": LEVEL_VIP,
}

# Customer categories (pricing tiers)
CUSTOMER_STANDARD = "عادي"
CUSTOMER_CITY = "المدينة"
CUSTOMER_MARKETER = "مسوق"
CUSTOMER_CORPORATE = "شركات"
BASE_CUSTOMER_CATEGORIES: Tuple[str, ...] = (
    CUSTOMER_STANDARD,
    CUSTOMER_CITY,
    CUSTOMER_MARKETER,
    CUSTOMER_CORPORATE,
)

_SEPARATORS = re.compile(r"[x*×]")
_PAIR = re.compile(r"^(\d+(?:\.\d+)?)x(\d+(?:\.\d+)?)$")


def _fmt_dim(d: Decimal) -> str:
    # 12 -> "12", 4.50 -> "4.5"
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def _parse_pair(raw: Any) -> Optional[Tuple[Decimal, Decimal]]:
    if raw is None:
        return None
    s = str(raw).strip().lower()
    s = "".join(s.split())
    s = _SEPARATORS.sub("x", s)
    m = _PAIR.match(s)
    if not m:
        return None
    try:
        return Decimal(m.group(1)), Decimal(m.group(2))
    except InvalidOperation:
        return None


def canonical_size(raw: Any) -> str:
    """
    "12×4", "4 * 12", "12X4" -> "4x12".

    Anything that is not a pair of numbers is returned verbatim so the price
    lookup can still try it as a key.
    """
    pair = _parse_pair(raw)
    if pair is None:
        return "" if raw is None else str(raw)
    a, b = sorted(pair)
    return f"{_fmt_dim(a)}x{_fmt_dim(b)}"


def is_known_size(raw: Any) -> bool:
    return canonical_size(raw) in CANONICAL_SIZES


def size_dimensions(raw: Any) -> Optional[Tuple[Decimal, Decimal]]:
    """(width, height) as written, or None when the size is not a number pair."""
    return _parse_pair(raw)


def canonical_level(raw: Any) -> str:
    """Map level labels onto عادي / ممتاز / VIP. Unknown or empty -> عادي."""
    if raw is None:
        return LEVEL_STANDARD
    s = str(raw).strip()
    if not s:
        return LEVEL_STANDARD
    return _LEVEL_SYNONYMS.get(s.lower(), LEVEL_STANDARD)


def merge_customer_categories(extra: Optional[Iterable[Any]] = None) -> List[str]:
    """Static baseline first, then extra names in order, no duplicates."""
    out: List[str] = list(BASE_CUSTOMER_CATEGORIES)
    seen = set(out)
    for name in extra or []:
        if name is None:
            continue
        n = str(name).strip()
        if n and n not in seen:
            out.append(n)
            seen.add(n)
    return out
