"""
Fixed-Point Arithmetic

Helpers for integer monetary values stored in their smallest unit
(value = real amount × 10^exponent). Computation goes through Decimal so no
precision is lost to binary floats.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Iterable, Union

Number = Union[int, Decimal]


def scale_up(value: Number, exponent: int) -> Decimal:
    """Multiply value by 10^exponent"""
    return Decimal(value).scaleb(exponent)


def scale_down(value: Number, exponent: int) -> int:
    """Divide value by 10^exponent, truncating toward zero"""
    return int(Decimal(value).scaleb(-exponent).to_integral_value(rounding=ROUND_DOWN))


def divide_half_up(numerator: Number, denominator: Number) -> int:
    """
    Integer quotient rounded half up.

    A zero denominator yields 0 instead of raising, so a bucket whose trades
    carry no amount or volume still aggregates.
    """
    if denominator == 0:
        return 0
    quotient = Decimal(numerator) / Decimal(denominator)
    return int(quotient.to_integral_value(rounding=ROUND_HALF_UP))


def median(values: Iterable[int]) -> int:
    """
    Median of integer values.

    Even-sized inputs average the two middle values, rounded half up.
    Empty input yields 0.
    """
    ordered = sorted(values)
    if not ordered:
        return 0
    middle = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[middle]
    return divide_half_up(ordered[middle - 1] + ordered[middle], 2)
