"""Number parsing utilities for form input and session round-trips."""
import re
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal('0')

# Largest amount a sale field may carry; validation reports anything above it
MAX_AMOUNT = Decimal('10') ** 15

# Values beyond this order of magnitude are treated as unparsable
MAX_MAGNITUDE = 100

# 1,234.56 style grouping; plain 1234.56 is matched by Decimal directly
GROUPED_NUMBER_PATTERN = re.compile(r"^-?\d{1,3}(?:,\d{3})+(?:\.\d+)?$")


def parse_amount(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Parse a numeric form value leniently.

    Rules:
    - Decimal/int/float are converted as-is (floats through ``str``)
    - Strings are stripped; ``1,234.50`` grouping is accepted
    - Empty, unparsable, NaN or infinite values yield ``default``
    - So do magnitudes above 10**MAX_MAGNITUDE
    - Negative values are returned unchanged (callers decide whether to clamp)

    Examples:
        parse_amount("12.5") -> Decimal("12.5")
        parse_amount("1,200") -> Decimal("1200")
        parse_amount("abc") -> Decimal("0")
        parse_amount(None) -> Decimal("0")
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return default
        if GROUPED_NUMBER_PATTERN.match(cleaned):
            cleaned = cleaned.replace(',', '')
        try:
            number = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            return default

    if not number.is_finite() or (number and number.adjusted() > MAX_MAGNITUDE):
        return default
    return number


def parse_non_negative(value: Any) -> Decimal:
    """Parse like ``parse_amount`` and clamp negatives to zero."""
    return max(ZERO, parse_amount(value))


def to_json_number(value: Decimal):
    """Render a Decimal as a JSON number (int when integral)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
