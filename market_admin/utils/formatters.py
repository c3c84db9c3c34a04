"""
Formatting helpers for templates and printable documents.
Money is shown with a currency label, comma thousands and two decimals.
"""
from decimal import Decimal, InvalidOperation, localcontext
from datetime import date, datetime
from typing import Union, Optional

Number = Union[int, float, Decimal, str, None]


def _to_decimal(value: Number) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return num if num.is_finite() else None


def _quantize(num: Decimal, exp: Decimal) -> Decimal:
    # Enough precision for every integer digit plus the requested places
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, num.adjusted() - exp.as_tuple().exponent + 2)
        return num.quantize(exp)


def format_amount(value: Number) -> str:
    """
    Two-decimal amount with comma thousands separator.

    Examples:
        format_amount(1500) -> "1,500.00"
        format_amount("12.5") -> "12.50"
        format_amount(None) -> "-"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"
    try:
        return f"{_quantize(num, Decimal('0.01')):,.2f}"
    except InvalidOperation:
        return "-"


def format_money(value: Number, currency: str = 'CFA') -> str:
    """
    Amount prefixed with the currency label.

    Examples:
        format_money(26) -> "CFA 26.00"
        format_money(1234.5, 'XOF') -> "XOF 1,234.50"
    """
    amount = format_amount(value)
    if amount == "-":
        return amount
    return f"{currency} {amount}"


def format_quantity(value: Number) -> str:
    """Quantities without trailing zeros: 2 -> "2", 1.50 -> "1.5"."""
    num = _to_decimal(value)
    if num is None:
        return "-"
    if num == num.to_integral_value():
        try:
            return str(_quantize(num, Decimal('1')))
        except InvalidOperation:
            return "-"
    return format(num.normalize(), 'f')


def format_datetime(value: Union[datetime, date, None], with_time: bool = True) -> str:
    """
    Examples:
        format_datetime(datetime(2026, 1, 12, 15, 30)) -> "12/01/2026 15:30"
        format_datetime(datetime(2026, 1, 12, 15, 30), with_time=False) -> "12/01/2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y %H:%M" if with_time else "%d/%m/%Y")

    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")

    return "-"
