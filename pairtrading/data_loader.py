# pairtrading/data_loader.py
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from .errors import InvalidSeriesError, MissingInputError
from .models import PricePoint, as_price_points, validate_series

PointLike = Union[PricePoint, dict]


class PriceStore:
    """Abstract base class for symbol-keyed price storage."""
    def get_prices(self, symbol: str) -> List[PricePoint]:
        raise NotImplementedError

    def symbols(self) -> List[str]:
        raise NotImplementedError

    def get_pair(self, symbol_a: str, symbol_b: str):
        """Return (prices for symbol_a, prices for symbol_b)."""
        if not symbol_a or not symbol_b:
            raise MissingInputError("Please select two stocks.")
        return self.get_prices(symbol_a), self.get_prices(symbol_b)


class InMemoryPriceStore(PriceStore):
    """Price series held in a dict, sorted by date on insert."""

    def __init__(self, data: Optional[Dict[str, Iterable[PointLike]]] = None):
        self._series: Dict[str, List[PricePoint]] = {}
        for symbol, points in (data or {}).items():
            self.put(symbol, points)

    def put(self, symbol: str, points: Iterable[PointLike]) -> None:
        """Store (replacing) a series; duplicate dates are rejected."""
        parsed = as_price_points(points)
        parsed.sort(key=lambda p: p.date)
        validate_series(parsed, name=symbol)
        self._series[symbol] = parsed

    def get_prices(self, symbol: str) -> List[PricePoint]:
        points = self._series.get(symbol)
        if not points:
            raise MissingInputError(f"Stock data not found for {symbol!r}.")
        return list(points)

    def symbols(self) -> List[str]:
        return sorted(self._series)

    def __contains__(self, symbol: str) -> bool:
        return bool(self._series.get(symbol))


_CLOSE_COLUMNS = ("close", "Close", "price", "Adj Close")


def price_points_from_frame(df: pd.DataFrame) -> List[PricePoint]:
    """
    Convert a date-indexed OHLC DataFrame (yfinance-style 'Close' or the
    lowercase 'close'/'price' columns) into PricePoints. Rows without a close
    are dropped.
    """
    close_col = next((c for c in _CLOSE_COLUMNS if c in df.columns), None)
    if close_col is None:
        raise InvalidSeriesError(f"no close column in {list(df.columns)}")

    def col(name):
        for cand in (name, name.capitalize()):
            if cand in df.columns:
                return df[cand]
        return None

    frame = pd.DataFrame({"close": df[close_col].astype(float)}, index=df.index)
    for name in ("open", "high", "low"):
        series = col(name)
        if series is not None:
            frame[name] = series.astype(float)
    frame = frame.dropna(subset=["close"])

    idx = pd.DatetimeIndex(pd.to_datetime(frame.index))
    if idx.tz is not None:
        idx = idx.tz_convert(None)
    dates = idx.strftime("%Y-%m-%d")

    points = []
    for day, (_, row) in zip(dates, frame.iterrows()):
        points.append(PricePoint(
            date=day,
            close=float(row["close"]),
            open=_value(row, "open"),
            high=_value(row, "high"),
            low=_value(row, "low"),
        ))
    return points


def _value(row: pd.Series, name: str) -> Optional[float]:
    if name not in row.index or pd.isna(row[name]):
        return None
    return float(row[name])
