"""Pure math / metric helpers (no network access)."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import TypeVar

from fmp_mcp.exceptions import UndefinedMetricError
from fmp_mcp.schemas.analysis import Recommendation

T = TypeVar("T")

BUY_UPSIDE_THRESHOLD = 20.0
SHARES_OUTSTANDING_APPROXIMATION = 1_000_000_000


def round_half_up(value: float, places: int = 2) -> float:
    """Round to *places* decimals with halves going toward +infinity.

    ``round_half_up(24.505) == 24.51``, ``round_half_up(-2.5, 0) == -2.0``.
    Idempotent for values already on the grid.
    """
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor


def ratio(numerator: float, denominator: float, metric: str) -> float:
    """``numerator / denominator``, raising ``UndefinedMetricError`` on a zero denominator."""
    if denominator == 0:
        raise UndefinedMetricError(metric, f"Cannot compute {metric}: denominator is zero")
    return numerator / denominator


def percent_change(previous: float, current: float, metric: str) -> float:
    """Change from *previous* to *current* in percent."""
    return ratio(current - previous, previous, metric) * 100


def leftmost_max(items: Sequence[T], key: Callable[[T], float]) -> T:
    """Item with the strictly greatest key; earlier items win ties.

    A later item replaces the current leader only when its key is strictly
    greater, so the result depends on input order alone.
    """
    if not items:
        raise ValueError("leftmost_max() arg is an empty sequence")
    leader = items[0]
    for item in items[1:]:
        if key(item) > key(leader):
            leader = item
    return leader


def mean(values: Sequence[float], metric: str) -> float:
    if not values:
        raise UndefinedMetricError(metric, f"Cannot compute {metric} over an empty set")
    return sum(values) / len(values)


def classify_upside(upside: float) -> tuple[Recommendation, str]:
    """Map DCF upside (percent) to a recommendation and its explanation.

    BUY above 20%, HOLD above 0% up to 20%, SELL at or below 0%.
    """
    shown = round_half_up(abs(upside), 1)
    if upside > BUY_UPSIDE_THRESHOLD:
        return (
            Recommendation.BUY,
            f"Strong buy recommendation. DCF suggests {shown:.1f}% upside potential.",
        )
    if upside > 0:
        return (
            Recommendation.HOLD,
            f"Hold recommendation. DCF suggests modest {shown:.1f}% upside potential.",
        )
    return (
        Recommendation.SELL,
        f"Sell recommendation. Stock appears overvalued by {shown:.1f}%.",
    )
