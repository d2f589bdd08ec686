"""
Half-up rounding for money, percentages and ratings.

Python's built-in ``round`` uses banker's rounding (12.5 -> 12); every
figure this service reports rounds halves away from zero instead.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]


def round_half_up(value: Number, places: int = 2) -> float:
    """Round ``value`` to ``places`` decimals, halves away from zero."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def round_to_int(value: Number) -> int:
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
