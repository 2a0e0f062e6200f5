# pairtrading/trades.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from .models import SpreadRecord, Trade, TradeType

logger = logging.getLogger(__name__)


class PositionState(str, Enum):
    FLAT = "FLAT"
    OPEN = "OPEN"


@dataclass
class OpenPosition:
    """Trade that has been entered but not yet exited."""
    type: TradeType
    entry_index: int
    entry_date: str
    entry_spread: float
    entry_hedge_ratio: Optional[float]

    def directional_pnl(self, spread: float) -> float:
        if self.type is TradeType.LONG:
            return spread - self.entry_spread
        return self.entry_spread - spread


def days_between(start: str, end: str) -> int:
    return (date.fromisoformat(end) - date.fromisoformat(start)).days


class TradeStateMachine:
    """
    FLAT/OPEN state machine over a z-scored spread series.

    Signals are crossings between consecutive records, not raw levels:
      FLAT -> OPEN LONG   when z crosses down through -entry_z
      FLAT -> OPEN SHORT  when z crosses up through +entry_z
      OPEN LONG  -> FLAT  when z crosses up through -exit_z
      OPEN SHORT -> FLAT  when z crosses down through +exit_z
      OPEN -> FLAT        when the holding period reaches max_holding_days
    At most one position is open; entry signals while OPEN are ignored.
    """

    def __init__(self, entry_z: float = 2.5, exit_z: float = 1.5, max_holding_days: int = 15):
        self.entry_z = float(entry_z)
        self.exit_z = float(exit_z)
        self.max_holding_days = max_holding_days
        self.state = PositionState.FLAT
        self.open_position: Optional[OpenPosition] = None

    def reset(self):
        self.state = PositionState.FLAT
        self.open_position = None

    # ---------- transitions ----------
    def _entry_signal(self, prev_z: float, curr_z: float) -> Optional[TradeType]:
        if prev_z > -self.entry_z and curr_z <= -self.entry_z:
            return TradeType.LONG
        if prev_z < self.entry_z and curr_z >= self.entry_z:
            return TradeType.SHORT
        return None

    def _exit_reason(self, prev_z: float, curr_z: float, holding_days: int) -> Optional[str]:
        pos = self.open_position
        if pos.type is TradeType.LONG and prev_z < -self.exit_z and curr_z >= -self.exit_z:
            return "signal"
        if pos.type is TradeType.SHORT and prev_z > self.exit_z and curr_z <= self.exit_z:
            return "signal"
        if holding_days >= self.max_holding_days:
            return "max_hold"
        return None

    def _open(self, kind: TradeType, i: int, rec: SpreadRecord):
        self.open_position = OpenPosition(
            type=kind,
            entry_index=i,
            entry_date=rec.date,
            entry_spread=rec.spread,
            entry_hedge_ratio=rec.hedge_ratio,
        )
        self.state = PositionState.OPEN
        logger.debug("Open %s at %s (z=%.4f, spread=%.6f)", kind.value, rec.date, rec.z_score, rec.spread)

    def _close(self, records: Sequence[SpreadRecord], i: int, holding_days: int, reason: str) -> Trade:
        pos = self.open_position
        rec = records[i]
        pnl_path = [pos.directional_pnl(r.spread) for r in records[pos.entry_index:i + 1]]
        # entry point has pnl 0, so drawdown is never negative
        max_drawdown = max(0.0, max(-p for p in pnl_path))
        trade = Trade(
            entry_date=pos.entry_date,
            exit_date=rec.date,
            type=pos.type,
            entry_index=pos.entry_index,
            exit_index=i,
            entry_spread=pos.entry_spread,
            exit_spread=rec.spread,
            entry_hedge_ratio=pos.entry_hedge_ratio,
            exit_hedge_ratio=rec.hedge_ratio,
            holding_period_days=holding_days,
            profit=pos.directional_pnl(rec.spread),
            max_drawdown=max_drawdown,
            exit_reason=reason,
        )
        self.open_position = None
        self.state = PositionState.FLAT
        logger.debug("Close %s at %s (%s), profit=%.6f", trade.type.value, rec.date, reason, trade.profit)
        return trade

    # ---------- API ----------
    def run(self, records: Sequence[SpreadRecord]) -> List[Trade]:
        """
        Replay the whole series from a flat book and return completed trades.
        A position still open at the end is left in `open_position`.
        """
        self.reset()
        trades: List[Trade] = []
        for i in range(1, len(records)):
            prev_z = records[i - 1].z_score
            curr_z = records[i].z_score
            if self.state is PositionState.FLAT:
                kind = self._entry_signal(prev_z, curr_z)
                if kind is not None:
                    self._open(kind, i, records[i])
                continue
            holding_days = days_between(self.open_position.entry_date, records[i].date)
            reason = self._exit_reason(prev_z, curr_z, holding_days)
            if reason is not None:
                trades.append(self._close(records, i, holding_days, reason))
        return trades


def simulate_trades(
    records: Sequence[SpreadRecord],
    entry_z: float = 2.5,
    exit_z: float = 1.5,
    max_holding_days: int = 15,
) -> List[Trade]:
    return TradeStateMachine(entry_z, exit_z, max_holding_days).run(records)
