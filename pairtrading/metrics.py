# pairtrading/metrics.py
from collections import Counter
from typing import Sequence

from .models import Trade, TradeType


class TradeMetrics:
    """Summary statistics over a list of completed trades. Wins are profit > 0."""

    def __init__(self, trades: Sequence[Trade]):
        self.trades = list(trades)

    def total_profit(self) -> float:
        return float(sum(t.profit for t in self.trades))

    def wins(self) -> int:
        return sum(1 for t in self.trades if t.is_win)

    def losses(self) -> int:
        return len(self.trades) - self.wins()

    def win_rate(self) -> float:
        if not self.trades:
            return 0.0
        return self.wins() / len(self.trades)

    def average_profit(self) -> float:
        if not self.trades:
            return 0.0
        return self.total_profit() / len(self.trades)

    def average_holding_days(self) -> float:
        if not self.trades:
            return 0.0
        return sum(t.holding_period_days for t in self.trades) / len(self.trades)

    def max_drawdown(self) -> float:
        return max((t.max_drawdown for t in self.trades), default=0.0)

    def to_dict(self):
        profits = [t.profit for t in self.trades]
        return {
            "total_trades": len(self.trades),
            "long_trades": sum(1 for t in self.trades if t.type is TradeType.LONG),
            "short_trades": sum(1 for t in self.trades if t.type is TradeType.SHORT),
            "wins": self.wins(),
            "losses": self.losses(),
            "win_rate": self.win_rate(),
            "total_profit": self.total_profit(),
            "average_profit": self.average_profit(),
            "best_trade": max(profits, default=0.0),
            "worst_trade": min(profits, default=0.0),
            "average_holding_days": self.average_holding_days(),
            "max_drawdown": self.max_drawdown(),
            "exits_by_reason": dict(sorted(Counter(t.exit_reason for t in self.trades).items())),
        }
