"""
Numeric helpers shared by the score calculators.
"""

from __future__ import annotations

import math

SECONDS_PER_DAY = 86_400
MIN_SCORE = 0
MAX_SCORE = 10_000


def round_half_up(value: float) -> int:
    """Round .5 toward +inf (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


def sigmoid(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


def days_between(earlier: float, later: float) -> float:
    """Elapsed days between two Unix timestamps (seconds); may be negative."""
    return (later - earlier) / SECONDS_PER_DAY
