"""
Numeric coercion shared by the TWR engine and the portfolio aggregator.

Every caller decides what absence means: the compounding loop treats
None as a zero monthly yield, point-in-time metrics keep it as unavailable.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

TWO_PLACES = Decimal("0.01")


def parse_optional_number(value, strip_thousands: bool = False) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if strip_thousands:
            text = text.replace(",", "")
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not number.is_finite():
        return None
    return number


def round_percentage(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
