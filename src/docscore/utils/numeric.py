"""Rounding helpers shared by evaluators and the aggregation engine."""

from __future__ import annotations

import math
from typing import Iterable, Optional


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round half away from zero for non-negative scores.

    The builtin ``round`` uses banker's rounding (``round(2.5) == 2``); scores
    use conventional rounding so 7.25 becomes 7.3 and 8.5 becomes 9.
    """
    factor = 10**digits
    rounded = math.floor(value * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded


def round1(value: float) -> float:
    return round_half_up(value, 1)


def round2(value: float) -> float:
    return round_half_up(value, 2)


def mean(values: Iterable[float]) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def format_score(value: float) -> str:
    """Render a score without a trailing ``.0``: 7.0 -> "7", 6.5 -> "6.5"."""
    if value == int(value):
        return str(int(value))
    return str(value)
