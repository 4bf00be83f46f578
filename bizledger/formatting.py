"""
Currency formatting.

Amounts are always shown in Vietnamese dong: no fractional digits,
"." as the thousands separator and the "₫" sign after the number,
e.g. 50.000.000 ₫.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, float]

CURRENCY_SYMBOL = "₫"


def format_currency(amount: Number) -> str:
    """Render an amount as a VND currency string."""
    value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.0f}".replace(",", ".")
    return f"{sign}{digits} {CURRENCY_SYMBOL}"


def display_amount(amount: Number) -> Decimal:
    """Clamp negative values to zero for charts and badges."""
    value = Decimal(str(amount))
    return max(value, Decimal("0"))
