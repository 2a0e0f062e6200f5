# pairtrading/models.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .errors import InvalidSeriesError


class SpreadMode(str, Enum):
    RATIO = "ratio"
    HEDGE_RATIO = "hedge_ratio"


class TradeType(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


def _iso(value) -> str:
    # datetime and pd.Timestamp subclass date; keep only the calendar day
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _opt_float(value) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class PricePoint:
    date: str  # ISO YYYY-MM-DD
    close: float
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PricePoint":
        """Build from a stored quote dict; keys other than OHLC and date are ignored."""
        return cls(
            date=_iso(raw["date"]),
            close=float(raw["close"]),
            open=_opt_float(raw.get("open")),
            high=_opt_float(raw.get("high")),
            low=_opt_float(raw.get("low")),
        )


def as_price_points(points) -> List[PricePoint]:
    """Accept PricePoints or stored quote dicts."""
    return [p if isinstance(p, PricePoint) else PricePoint.from_dict(p) for p in points]


def validate_series(points: Sequence[PricePoint], name: str = "series") -> None:
    """Raise InvalidSeriesError unless dates are strictly ascending."""
    for prev, curr in zip(points, points[1:]):
        if curr.date == prev.date:
            raise InvalidSeriesError(f"{name}: duplicate date {curr.date}")
        if curr.date < prev.date:
            raise InvalidSeriesError(
                f"{name}: dates not ascending ({prev.date} before {curr.date})"
            )


@dataclass(frozen=True)
class DateRange:
    """Inclusive date filter. A bound left as None is open."""
    from_date: Optional[str] = None
    to_date: Optional[str] = None

    def __post_init__(self):
        # ISO dates compare correctly as strings
        if self.from_date is not None:
            object.__setattr__(self, "from_date", _iso(self.from_date))
        if self.to_date is not None:
            object.__setattr__(self, "to_date", _iso(self.to_date))

    def contains(self, day: str) -> bool:
        if self.from_date is not None and day < self.from_date:
            return False
        if self.to_date is not None and day > self.to_date:
            return False
        return True

    def filter(self, points: Sequence[PricePoint]) -> List[PricePoint]:
        return [p for p in points if self.contains(p.date)]


@dataclass(frozen=True)
class SpreadRecord:
    date: str
    stock_a_close: float
    stock_b_close: float
    hedge_ratio: Optional[float]  # None in ratio mode
    spread: float
    z_score: float = 0.0

    def with_z_score(self, z: float) -> "SpreadRecord":
        return replace(self, z_score=float(z))

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "stock_a_close": self.stock_a_close,
            "stock_b_close": self.stock_b_close,
            "hedge_ratio": self.hedge_ratio,
            "spread": self.spread,
            "z_score": self.z_score,
        }


@dataclass(frozen=True)
class Trade:
    """
    Completed spread trade.

    exit_reason is one of:
        "signal"    -- z-score reverted through the exit threshold
        "max_hold"  -- holding period reached max_holding_days
    """
    entry_date: str
    exit_date: str
    type: TradeType
    entry_index: int
    exit_index: int
    entry_spread: float
    exit_spread: float
    entry_hedge_ratio: Optional[float]
    exit_hedge_ratio: Optional[float]
    holding_period_days: int
    profit: float
    max_drawdown: float
    exit_reason: str

    @property
    def is_win(self) -> bool:
        return self.profit > 0

    @property
    def hedge_ratio_change_pct(self) -> Optional[float]:
        if self.entry_hedge_ratio is None or self.exit_hedge_ratio is None:
            return None
        if self.entry_hedge_ratio == 0:
            return None
        return (self.exit_hedge_ratio - self.entry_hedge_ratio) / self.entry_hedge_ratio * 100.0

    def to_dict(self) -> dict:
        """Flat dict for JSON / DataFrame export."""
        return {
            "entry_date": self.entry_date,
            "exit_date": self.exit_date,
            "type": self.type.value,
            "entry_index": self.entry_index,
            "exit_index": self.exit_index,
            "entry_spread": self.entry_spread,
            "exit_spread": self.exit_spread,
            "entry_hedge_ratio": self.entry_hedge_ratio,
            "exit_hedge_ratio": self.exit_hedge_ratio,
            "hedge_ratio_change_pct": self.hedge_ratio_change_pct,
            "holding_period_days": self.holding_period_days,
            "profit": self.profit,
            "max_drawdown": self.max_drawdown,
            "exit_reason": self.exit_reason,
            "win": self.is_win,
        }


TRADE_COLUMNS = [
    "entry_date", "exit_date", "type", "entry_index", "exit_index",
    "entry_spread", "exit_spread", "entry_hedge_ratio", "exit_hedge_ratio",
    "hedge_ratio_change_pct", "holding_period_days", "profit", "max_drawdown",
    "exit_reason", "win",
]

RECORD_COLUMNS = ["stock_a_close", "stock_b_close", "hedge_ratio", "spread", "z_score"]


@dataclass
class BacktestReport:
    symbol_a: str
    symbol_b: str
    config: Dict[str, Any]
    records: List[SpreadRecord]
    trades: List[Trade]
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "symbol_a": self.symbol_a,
            "symbol_b": self.symbol_b,
            "config": dict(self.config),
            "records": [r.to_dict() for r in self.records],
            "trades": [t.to_dict() for t in self.trades],
            "summary": dict(self.summary),
        }

    def to_frame(self) -> pd.DataFrame:
        """Time-indexed table of closes, hedge ratio, spread and z-score."""
        if not self.records:
            return pd.DataFrame(columns=RECORD_COLUMNS, index=pd.DatetimeIndex([], name="date"))
        df = pd.DataFrame([r.to_dict() for r in self.records])
        df["date"] = pd.to_datetime(df["date"])
        return df.set_index("date")[RECORD_COLUMNS]

    def trade_log(self) -> pd.DataFrame:
        return pd.DataFrame([t.to_dict() for t in self.trades], columns=TRADE_COLUMNS)
