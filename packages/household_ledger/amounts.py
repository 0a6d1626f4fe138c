"""Integer money arithmetic.

Percentages and averages round half-up (``2.5 -> 3``, ``-2.5 -> -2``), the
same way a JavaScript ``Math.round`` client would display them. Everything is
computed on exact fractions so large minor-unit totals never pick up float
error.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from fractions import Fraction

_HALF = Fraction(1, 2)


def round_half_up(numerator: int, denominator: int = 1) -> int:
    """Round ``numerator / denominator`` to the nearest int, ties toward +inf."""

    if denominator == 0:
        raise ZeroDivisionError("denominator must be non-zero")
    return math.floor(Fraction(numerator, denominator) + _HALF)


def percent_of(part: int, whole: int) -> int:
    """``round(part / whole * 100)``; ``0`` when ``whole`` is zero."""

    if whole == 0:
        return 0
    return round_half_up(part * 100, whole)


def mean_rounded(values: Iterable[int]) -> int:
    items = list(values)
    if not items:
        return 0
    return round_half_up(sum(items), len(items))


__all__ = ["mean_rounded", "percent_of", "round_half_up"]
