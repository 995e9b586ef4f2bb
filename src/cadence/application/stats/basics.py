"""
Statistical primitives shared by every engine.

This is a pure computation module with no I/O. All functions accept empty
input and return neutral values instead of dividing by zero.
"""

import math
from collections.abc import Sequence

from cadence.domain import constants as c
from cadence.domain.session.models import TrendAnalysis


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def variance(values: Sequence[float], center: float | None = None) -> float:
    """Population variance."""
    if not values:
        return 0.0
    avg = mean(values) if center is None else center
    return sum((v - avg) ** 2 for v in values) / len(values)


def standard_deviation(values: Sequence[float], center: float | None = None) -> float:
    return math.sqrt(variance(values, center))


def slope(values: Sequence[float]) -> float:
    """
    Least-squares slope of values against their index (0, 1, 2, ...).
    """
    n = len(values)
    if n < 2:
        return 0.0

    x_sum = n * (n - 1) / 2
    y_sum = sum(values)
    xy_sum = sum(i * v for i, v in enumerate(values))
    x_squared_sum = n * (n - 1) * (2 * n - 1) / 6

    denominator = n * x_squared_sum - x_sum * x_sum
    if denominator == 0:
        return 0.0
    return (n * xy_sum - x_sum * y_sum) / denominator


def trend(values: Sequence[float], higher_is_worse: bool = True) -> TrendAnalysis:
    """
    Classify the direction of a series by simple linear regression.

    Args:
        values: The series, oldest first.
        higher_is_worse: True for response and hesitation times, False for
            ratings. Decides which slope sign counts as "declining".

    Returns:
        TrendAnalysis where strength = min(100, |slope| * 50) and
        confidence = min(100, |slope| / (range + epsilon) * 100).
    """
    n = len(values)
    if n < 2:
        return TrendAnalysis.flat(n)

    s = slope(values)
    spread = max(values) - min(values)
    correlation = abs(s) / (spread + c.TREND_EPSILON)

    if abs(s) < c.TREND_STABLE_SLOPE:
        direction = "stable"
    elif (s > 0) == higher_is_worse:
        direction = "declining"
    else:
        direction = "improving"

    return TrendAnalysis(
        direction=direction,
        strength=min(100.0, abs(s) * c.TREND_STRENGTH_SCALE),
        confidence=min(100.0, correlation * 100),
        data_points=n,
        slope=s,
    )


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
