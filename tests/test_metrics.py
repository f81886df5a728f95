"""Tests for the pure metric helpers."""

from __future__ import annotations

import pytest

from fmp_mcp.exceptions import UndefinedMetricError
from fmp_mcp.schemas.analysis import Recommendation
from fmp_mcp.services.metrics import (
    classify_upside,
    leftmost_max,
    mean,
    percent_change,
    ratio,
    round_half_up,
)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


def test_round_half_up_two_decimals():
    assert round_half_up(24.51060359) == 24.51
    assert round_half_up(155.64523894) == 155.65
    assert round_half_up(-3.16139767) == -3.16


def test_round_half_up_ties_go_up():
    """Exact binary halves round toward +infinity, unlike round()."""
    assert round_half_up(0.125) == 0.13
    assert round_half_up(-0.125) == -0.12
    assert round_half_up(2.5, 0) == 3.0
    assert round_half_up(-2.5, 0) == -2.0


def test_round_half_up_whole_units():
    assert round_half_up(2_500_000_000_000.4, 0) == 2_500_000_000_000
    assert round_half_up(1_234.5, 0) == 1_235


@pytest.mark.parametrize("value", [24.51, -3.16, 155.65, 0.07, 0.0, 23.13, 1_000_000.01])
def test_round_half_up_is_idempotent(value):
    once = round_half_up(value)
    assert once == value
    assert round_half_up(once) == once


def test_round_half_up_one_decimal():
    assert round_half_up(3.16139767, 1) == 3.2
    assert round_half_up(23.1281198, 1) == 23.1


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------


def test_ratio():
    assert ratio(150.25, 6.13, "pe_ratio") == pytest.approx(24.5106, rel=1e-4)


def test_ratio_zero_denominator():
    with pytest.raises(UndefinedMetricError) as exc_info:
        ratio(150.25, 0, "pe_ratio")
    assert exc_info.value.metric == "pe_ratio"
    assert "pe_ratio" in str(exc_info.value)


def test_percent_change():
    assert percent_change(150.25, 185.0, "upside") == pytest.approx(23.1281, rel=1e-4)
    assert percent_change(100.0, 100.0, "upside") == 0.0


def test_percent_change_from_zero():
    with pytest.raises(UndefinedMetricError):
        percent_change(0.0, 10.0, "revenue_growth")


def test_mean_empty():
    with pytest.raises(UndefinedMetricError):
        mean([], "average_change")


# ---------------------------------------------------------------------------
# Leaders
# ---------------------------------------------------------------------------


def test_leftmost_max_strict_maximum():
    items = [("A", 1.0), ("B", 3.0), ("C", 2.0)]
    assert leftmost_max(items, key=lambda i: i[1]) == ("B", 3.0)


def test_leftmost_max_ties_keep_first():
    items = [("A", 1.0), ("B", 3.0), ("C", 3.0)]
    assert leftmost_max(items, key=lambda i: i[1])[0] == "B"


def test_leftmost_max_single_item():
    assert leftmost_max([("A", -5.0)], key=lambda i: i[1])[0] == "A"


def test_leftmost_max_empty():
    with pytest.raises(ValueError):
        leftmost_max([], key=lambda i: i)


# ---------------------------------------------------------------------------
# DCF classification
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "upside, expected",
    [
        (23.13, Recommendation.BUY),
        (20.0001, Recommendation.BUY),
        (20.0, Recommendation.HOLD),
        (6.49, Recommendation.HOLD),
        (0.0001, Recommendation.HOLD),
        (0.0, Recommendation.SELL),
        (-3.16, Recommendation.SELL),
        (-100.0, Recommendation.SELL),
    ],
)
def test_classify_upside_thresholds(upside, expected):
    recommendation, _ = classify_upside(upside)
    assert recommendation is expected


def test_classify_upside_buy_text():
    _, text = classify_upside(23.1281198)
    assert text == "Strong buy recommendation. DCF suggests 23.1% upside potential."


def test_classify_upside_hold_text():
    _, text = classify_upside(6.48918469)
    assert text == "Hold recommendation. DCF suggests modest 6.5% upside potential."


def test_classify_upside_sell_text_uses_absolute_value():
    _, text = classify_upside(-3.16139767)
    assert text == "Sell recommendation. Stock appears overvalued by 3.2%."
