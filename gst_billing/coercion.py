from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_CENT = Decimal("0.01")
# Currency symbols, thousands separators and whitespace; anything else must parse as-is.
_DECORATION = re.compile(r"[\s,₹$]")


def parse_number_or_zero(value: Any) -> Decimal:
    """Coerce loosely typed input into a finite Decimal, falling back to zero."""
    if value is None or value == "" or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        number = Decimal(repr(value)) if value == value else ZERO
        return number if number.is_finite() else ZERO
    if not isinstance(value, str):
        return ZERO
    text = _DECORATION.sub("", value)
    if not text or "_" in text:
        return ZERO
    try:
        number = Decimal(text)
    except InvalidOperation:
        return ZERO
    return number if number.is_finite() else ZERO


def non_negative(value: Any) -> Decimal:
    number = parse_number_or_zero(value)
    return number if number > 0 else ZERO


def clamp_percent(value: Any) -> Decimal:
    return min(non_negative(value), HUNDRED)


def money(value: Any) -> Decimal:
    """Round to 2 decimals consistently for money values."""
    return parse_number_or_zero(value).quantize(_CENT, rounding=ROUND_HALF_UP)
