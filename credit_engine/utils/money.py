"""Fixed-point money helpers"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """Coerce to Decimal; floats go through str() to avoid binary noise"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value: Decimal | int | str | float) -> Decimal:
    """Round half-up to the currency's minor unit (2 decimals)"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)
