"""Tests for the hedge ratio regression and the spread model."""

import numpy as np
import pytest

from pairtrading.models import PricePoint, SpreadMode
from pairtrading.pair_trading import (
    SpreadModel,
    cointegration_pvalue,
    compute_spread,
    ols_hedge_ratio,
)


def make_points(closes, start_day=1):
    return [PricePoint(date=f"2024-01-{start_day + i:02d}", close=float(c)) for i, c in enumerate(closes)]


class TestOlsHedgeRatio:

    def test_exact_linear_relation(self):
        assert ols_hedge_ratio([2.0, 4.0, 6.0, 8.0], [1.0, 2.0, 3.0, 4.0]) == pytest.approx(2.0)

    @pytest.mark.parametrize("value", [5.0, 0.1, 48.3, 33.33, 101.7])
    @pytest.mark.parametrize("n", [2, 3, 5, 7, 10, 50])
    def test_constant_b_falls_back_to_one(self, value, n):
        a = [10.0 + i for i in range(n)]
        assert ols_hedge_ratio(a, [value] * n) == 1.0

    def test_empty_window_falls_back_to_one(self):
        assert ols_hedge_ratio([], []) == 1.0

    def test_single_point_falls_back_to_one(self):
        assert ols_hedge_ratio([3.0], [7.0]) == 1.0


class TestHedgeRatioMode:

    def test_rolling_regression_and_spread(self):
        records = compute_spread(
            make_points([2, 4, 6, 8]), make_points([1, 2, 3, 4]),
            mode=SpreadMode.HEDGE_RATIO, lookback=4,
        )
        assert [r.hedge_ratio for r in records] == pytest.approx([1.0, 2.0, 2.0, 2.0])
        assert records[0].spread == pytest.approx(1.0)
        assert [r.spread for r in records[1:]] == pytest.approx([0.0, 0.0, 0.0])

    def test_spread_invariant(self):
        a = make_points([100, 101, 99, 104, 103, 107])
        b = make_points([50, 50.2, 49.1, 52.5, 51.0, 53.3])
        for r in compute_spread(a, b, SpreadMode.HEDGE_RATIO, lookback=3):
            assert r.spread == pytest.approx(r.stock_a_close - r.hedge_ratio * r.stock_b_close)

    def test_inexact_constant_b_keeps_unit_ratio(self):
        model = SpreadModel(SpreadMode.HEDGE_RATIO, lookback=5)
        records = model.compute(make_points(range(10, 20)), make_points([48.3] * 10))
        assert [r.hedge_ratio for r in records] == [1.0] * 10
        assert model.hedge_ratio_fallbacks == 10

    def test_constant_b_counts_fallbacks(self):
        model = SpreadModel(SpreadMode.HEDGE_RATIO, lookback=3)
        records = model.compute(make_points([10, 11, 12, 13]), make_points([5, 5, 5, 5]))
        assert [r.hedge_ratio for r in records] == [1.0] * 4
        assert [r.spread for r in records] == [5.0, 6.0, 7.0, 8.0]
        assert model.hedge_ratio_fallbacks == 4

    def test_truncates_to_shorter_series(self):
        records = compute_spread(make_points([1, 2, 3, 4, 5]), make_points([1, 2, 3]), lookback=2)
        assert len(records) == 3
        assert [r.date for r in records] == ["2024-01-01", "2024-01-02", "2024-01-03"]


class TestRatioMode:

    def test_ratio_values(self):
        records = compute_spread(make_points([100, 102, 96]), make_points([50, 51, 48]), SpreadMode.RATIO, 3)
        assert [r.spread for r in records] == [2.0, 2.0, 2.0]
        assert all(r.hedge_ratio is None for r in records)

    def test_zero_divisor_is_skipped(self):
        model = SpreadModel(SpreadMode.RATIO, lookback=3)
        records = model.compute(make_points([10, 20, 30]), make_points([5, 0, 10]))
        assert [r.date for r in records] == ["2024-01-01", "2024-01-03"]
        assert [r.spread for r in records] == [2.0, 3.0]
        assert model.skipped_points == 1

    def test_rejects_bad_lookback(self):
        with pytest.raises(ValueError):
            SpreadModel(SpreadMode.RATIO, lookback=0)


class TestCointegration:

    def test_too_short_returns_none(self):
        assert cointegration_pvalue([1.0] * 10, [2.0] * 10) is None

    def test_mismatched_lengths_return_none(self):
        assert cointegration_pvalue([1.0] * 40, [2.0] * 39) is None

    def test_constant_leg_is_skipped(self, recwarn):
        a = [100.0 + (i % 7) for i in range(40)]
        assert cointegration_pvalue(a, [33.33] * 40) is None
        assert cointegration_pvalue([33.33] * 40, a) is None
        assert len(recwarn) == 0

    def test_cointegrated_pair_gives_pvalue(self):
        rng = np.random.RandomState(0)
        b = 50 + np.cumsum(rng.normal(0, 1, 200))
        a = 2.0 * b + rng.normal(0, 0.5, 200)
        p = cointegration_pvalue(a.tolist(), b.tolist())
        assert p is not None
        assert 0.0 <= p < 0.05
