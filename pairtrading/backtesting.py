# pairtrading/backtesting.py
from __future__ import annotations

import logging
from typing import Optional, Sequence

from .config import BacktestConfig
from .data_loader import PriceStore
from .errors import EmptySeriesError, MissingInputError
from .metrics import TradeMetrics
from .models import BacktestReport, DateRange, PricePoint, as_price_points, validate_series
from .pair_trading import SpreadModel, cointegration_pvalue
from .statistics import rolling_zscore_counted
from .trades import TradeStateMachine

logger = logging.getLogger(__name__)


class Backtester:
    """
    Pair-trading backtest over two stored price series.

    Conventions:
      • Both series are filtered to the date range independently, then
        truncated to the shorter length and aligned BY POSITION, not by date.
      • The same lookback window drives the hedge ratio and the z-score.
      • Trades are simulated on the spread itself (profit in spread units).
    """

    def __init__(self, store: Optional[PriceStore] = None):
        self.store = store

    # ------------------------------------------------------------------
    # Symbols -> series
    # ------------------------------------------------------------------
    def run_pair(
        self,
        symbol_a: str,
        symbol_b: str,
        date_range: Optional[DateRange] = None,
        config: Optional[BacktestConfig] = None,
    ) -> BacktestReport:
        if self.store is None:
            raise MissingInputError("No price store configured.")
        prices_a, prices_b = self.store.get_pair(symbol_a, symbol_b)
        return self.run(prices_a, prices_b, date_range, config, symbol_a=symbol_a, symbol_b=symbol_b)

    # ------------------------------------------------------------------
    # Core pipeline
    # ------------------------------------------------------------------
    def run(
        self,
        prices_a: Sequence[PricePoint],
        prices_b: Sequence[PricePoint],
        date_range: Optional[DateRange] = None,
        config: Optional[BacktestConfig] = None,
        symbol_a: str = "A",
        symbol_b: str = "B",
    ) -> BacktestReport:
        config = (config or BacktestConfig()).validate()
        date_range = date_range or DateRange()

        # --- 1) Validate inputs
        if not prices_a:
            raise MissingInputError(f"No price data for {symbol_a}.")
        if not prices_b:
            raise MissingInputError(f"No price data for {symbol_b}.")
        prices_a = as_price_points(prices_a)
        prices_b = as_price_points(prices_b)
        validate_series(prices_a, name=symbol_a)
        validate_series(prices_b, name=symbol_b)

        # --- 2) Date filter & position alignment
        filtered_a = date_range.filter(prices_a)
        filtered_b = date_range.filter(prices_b)
        if not filtered_a or not filtered_b:
            empty = symbol_a if not filtered_a else symbol_b
            raise EmptySeriesError(
                f"No data for {empty} between {date_range.from_date or 'start'} "
                f"and {date_range.to_date or 'end'}."
            )
        n = min(len(filtered_a), len(filtered_b))
        if len(filtered_a) != len(filtered_b):
            logger.info(
                "Truncating %s/%s to %d points (%d vs %d after date filter)",
                symbol_a, symbol_b, n, len(filtered_a), len(filtered_b),
            )
        aligned_a, aligned_b = filtered_a[:n], filtered_b[:n]

        # --- 3) Spread, z-score
        model = SpreadModel(mode=config.mode, lookback=config.lookback)
        spread_records = model.compute(aligned_a, aligned_b)
        z_scores, degenerate = rolling_zscore_counted([r.spread for r in spread_records], config.lookback)
        records = [r.with_z_score(z) for r, z in zip(spread_records, z_scores)]

        # --- 4) Trades
        machine = TradeStateMachine(
            entry_z=config.entry_z,
            exit_z=config.exit_z,
            max_holding_days=config.max_holding_days,
        )
        trades = machine.run(records)

        # --- 5) Summary
        summary = TradeMetrics(trades).to_dict()
        summary.update({
            "points": len(records),
            "skipped_points": model.skipped_points,
            "hedge_ratio_fallbacks": model.hedge_ratio_fallbacks,
            "degenerate_zscores": degenerate,
            "open_position": machine.open_position is not None,
            "coint_pvalue": None,
        })
        if config.test_cointegration:
            summary["coint_pvalue"] = cointegration_pvalue(
                [r.stock_a_close for r in records],
                [r.stock_b_close for r in records],
            )

        logger.info(
            "Backtest %s/%s (%s, lookback=%d): %d points, %d trades, total profit %.4f",
            symbol_a, symbol_b, config.mode.value, config.lookback,
            len(records), len(trades), summary["total_profit"],
        )
        return BacktestReport(
            symbol_a=symbol_a,
            symbol_b=symbol_b,
            config=config.to_dict(),
            records=records,
            trades=trades,
            summary=summary,
        )


def run_backtest(
    prices_a: Sequence[PricePoint],
    prices_b: Sequence[PricePoint],
    date_range: Optional[DateRange] = None,
    config: Optional[BacktestConfig] = None,
    symbol_a: str = "A",
    symbol_b: str = "B",
) -> BacktestReport:
    return Backtester().run(prices_a, prices_b, date_range, config, symbol_a=symbol_a, symbol_b=symbol_b)
