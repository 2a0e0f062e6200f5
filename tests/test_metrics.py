"""Tests for trade-list summary statistics."""

import pytest

from pairtrading.metrics import TradeMetrics
from pairtrading.models import Trade, TradeType


def make_trade(profit, kind=TradeType.LONG, days=3, drawdown=0.0, reason="signal"):
    return Trade(
        entry_date="2024-01-01",
        exit_date="2024-01-04",
        type=kind,
        entry_index=1,
        exit_index=4,
        entry_spread=0.0,
        exit_spread=profit,
        entry_hedge_ratio=1.0,
        exit_hedge_ratio=1.0,
        holding_period_days=days,
        profit=profit,
        max_drawdown=drawdown,
        exit_reason=reason,
    )


class TestTradeMetrics:

    def test_empty(self):
        stats = TradeMetrics([]).to_dict()
        assert stats["total_trades"] == 0
        assert stats["win_rate"] == 0.0
        assert stats["average_profit"] == 0.0
        assert stats["max_drawdown"] == 0.0
        assert stats["exits_by_reason"] == {}

    def test_wins_are_strictly_positive_profit(self):
        trades = [make_trade(1.0), make_trade(0.0), make_trade(-2.0, kind=TradeType.SHORT)]
        stats = TradeMetrics(trades).to_dict()
        assert stats["wins"] == 1
        assert stats["losses"] == 2
        assert stats["win_rate"] == pytest.approx(1 / 3)
        assert stats["long_trades"] == 2
        assert stats["short_trades"] == 1

    def test_aggregates(self):
        trades = [
            make_trade(2.0, days=2, drawdown=0.5),
            make_trade(-1.0, days=4, drawdown=1.5, reason="max_hold"),
        ]
        stats = TradeMetrics(trades).to_dict()
        assert stats["total_profit"] == pytest.approx(1.0)
        assert stats["average_profit"] == pytest.approx(0.5)
        assert stats["best_trade"] == 2.0
        assert stats["worst_trade"] == -1.0
        assert stats["average_holding_days"] == pytest.approx(3.0)
        assert stats["max_drawdown"] == 1.5
        assert stats["exits_by_reason"] == {"max_hold": 1, "signal": 1}


def test_hedge_ratio_change_undefined_without_ratio():
    trade = make_trade(1.0)
    assert trade.hedge_ratio_change_pct == pytest.approx(0.0)
    ratio_trade = Trade(
        "2024-01-01", "2024-01-02", TradeType.LONG, 1, 2, 2.0, 2.1,
        None, None, 1, 0.1, 0.0, "signal",
    )
    assert ratio_trade.hedge_ratio_change_pct is None
