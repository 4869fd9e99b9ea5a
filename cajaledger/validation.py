from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .exceptions import InvalidArgumentError
from .time_utils import parse_business_date


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Register amounts share the price ceiling (either sign)
MAX_AMOUNT_CENTS = 999_999_999

# Quantities and resulting stock levels stay inside a 32-bit INTEGER column
MAX_QUANTITY = 999_999_999

_CENT = Decimal("1")
_MAX_AMOUNT_UNITS = Decimal(MAX_AMOUNT_CENTS) / 100


def parse_amount_cents(value: Any) -> int | None:
    """
    Parse a currency amount (units, e.g. 12.50) into integer cents.

    Returns None when the value is absent or not numeric: booleans, empty
    strings, NaN/Infinity, free text and magnitudes beyond MAX_AMOUNT_CENTS
    all count as "not a number". Rounds half-up to the nearest cent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        amount = Decimal(str(value))
        if not amount.is_finite() or abs(amount) > _MAX_AMOUNT_UNITS:
            return None
        return int((amount * 100).quantize(_CENT, rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return None


def coerce_amount_cents(value: Any, fallback: int | None) -> int | None:
    """Merge semantics: unparsable input keeps the fallback value."""
    parsed = parse_amount_cents(value)
    return fallback if parsed is None else parsed


def parse_price_cents(value: Any) -> int:
    """Product prices: absent -> 0, otherwise a non-negative amount."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    cents = parse_amount_cents(value)
    if cents is None:
        raise InvalidArgumentError(f"price must be a number no greater than {MAX_PRICE_CENTS / 100:.2f}")
    if cents < 0:
        raise InvalidArgumentError("price cannot be negative")
    if cents > MAX_PRICE_CENTS:
        raise InvalidArgumentError(f"price cannot exceed {MAX_PRICE_CENTS / 100:.2f}")
    return cents


def parse_quantity(value: Any, field: str = "quantity", *, allow_zero: bool = False) -> int:
    """
    Strict integer parsing for stock quantities.

    Accepts ints, integral floats and plain digit strings. Rejects booleans,
    decimals with a fractional part, scientific notation and negatives.
    """
    if value is None or isinstance(value, bool):
        raise InvalidArgumentError(f"{field} is required and must be an integer")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidArgumentError(f"{field} must be an integer, not a decimal")
        qty = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidArgumentError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e3") and decimals (e.g., "12.5")
        if "e" in stripped.lower() or "." in stripped:
            raise InvalidArgumentError(f"{field} must be a plain integer")
        try:
            qty = int(stripped)
        except ValueError:
            raise InvalidArgumentError(f"{field} must be an integer")
    else:
        raise InvalidArgumentError(f"{field} must be an integer")

    if qty < 0 or (qty == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise InvalidArgumentError(f"{field} must be a {bound} integer")
    if qty > MAX_QUANTITY:
        raise InvalidArgumentError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def clean_text(value: Any, max_length: int | None = None) -> str | None:
    """Strip strings; empty -> None; optionally truncate to the column length."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None:
        text = text[:max_length]
    return text


def require_text(value: Any, field: str, max_length: int | None = None) -> str:
    text = clean_text(value)
    if text is None:
        raise InvalidArgumentError(f"{field} is required")
    if max_length is not None and len(text) > max_length:
        raise InvalidArgumentError(f"{field} must be at most {max_length} characters")
    return text


def parse_day(value: Any, field: str = "date"):
    """Business date from a request value; malformed input is an argument error."""
    try:
        return parse_business_date(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{field} must be an ISO date (YYYY-MM-DD)")


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def parse_flag(value: Any, field: str) -> bool | None:
    """
    Strict boolean parsing for one-way switches such as ``closed``.

    None and "" mean "not given". Anything that is not a recognisable
    boolean is rejected instead of falling back to truthiness.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return None
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidArgumentError(f"{field} must be a boolean")
