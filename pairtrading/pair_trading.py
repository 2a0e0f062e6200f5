# pairtrading/pair_trading.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
from statsmodels.tsa.stattools import coint

from .models import PricePoint, SpreadMode, SpreadRecord
from .statistics import window_bounds

logger = logging.getLogger(__name__)

MIN_COINT_POINTS = 30


def _ols_slope(a: Sequence[float], b: Sequence[float]) -> Optional[float]:
    """
    OLS slope of a on b:

        beta = (n*sum(ab) - sum(a)*sum(b)) / (n*sum(b^2) - sum(b)^2)

    None when the window is empty, b is constant or the denominator is zero.
    """
    n = len(a)
    if n == 0:
        return None
    x = np.asarray(b, dtype=float)
    y = np.asarray(a, dtype=float)
    # constant b: rounding can leave a non-zero denominator
    if x.max() == x.min():
        return None
    sum_a = y.sum()
    sum_b = x.sum()
    sum_ab = (y * x).sum()
    sum_b2 = (x * x).sum()
    denom = n * sum_b2 - sum_b * sum_b
    if denom == 0:
        return None
    return float((n * sum_ab - sum_a * sum_b) / denom)


def ols_hedge_ratio(a: Sequence[float], b: Sequence[float], fallback: float = 1.0) -> float:
    beta = _ols_slope(a, b)
    return fallback if beta is None else beta


def cointegration_pvalue(a: Sequence[float], b: Sequence[float]) -> Optional[float]:
    """Engle-Granger p-value of a against b, or None if it cannot be computed."""
    if len(a) < MIN_COINT_POINTS or len(a) != len(b):
        return None
    x = np.asarray(b, dtype=float)
    y = np.asarray(a, dtype=float)
    if x.max() == x.min() or y.max() == y.min():
        logger.debug("Skipping cointegration test: a leg has zero variance")
        return None
    try:
        _, p_value, _ = coint(y, x)
    except (ValueError, np.linalg.LinAlgError) as exc:
        logger.warning("Cointegration test failed: %s", exc)
        return None
    if not np.isfinite(p_value):
        return None
    return float(p_value)


class SpreadModel:
    """
    Spread (or price ratio) between two position-aligned price series.

    Modes:
      - RATIO:       spread[i] = a[i] / b[i]; indices with b[i] == 0 are skipped
      - HEDGE_RATIO: spread[i] = a[i] - beta[i] * b[i], beta from a rolling OLS
                     of a on b over the trailing `lookback` window
                     (beta = 1.0 when the regression is degenerate)
    """

    FALLBACK_HEDGE_RATIO = 1.0

    def __init__(self, mode: SpreadMode = SpreadMode.HEDGE_RATIO, lookback: int = 50):
        self.mode = SpreadMode(mode)
        self.lookback = int(lookback)
        if self.lookback < 1:
            raise ValueError(f"lookback must be >= 1, got {lookback}")
        self.hedge_ratio_fallbacks = 0
        self.skipped_points = 0

    # ---------- helpers ----------
    def rolling_hedge_ratios(self, a: Sequence[float], b: Sequence[float]) -> List[float]:
        betas = []
        for i in range(len(a)):
            start, stop = window_bounds(i, self.lookback)
            beta = _ols_slope(a[start:stop], b[start:stop])
            if beta is None:
                logger.debug("Degenerate hedge regression at index %d, using beta=1", i)
                self.hedge_ratio_fallbacks += 1
                beta = self.FALLBACK_HEDGE_RATIO
            betas.append(beta)
        return betas

    def _ratio_records(self, pa: Sequence[PricePoint], pb: Sequence[PricePoint]) -> List[SpreadRecord]:
        out = []
        for p, q in zip(pa, pb):
            if q.close == 0:
                logger.warning("Skipping %s: stock B close is zero, ratio undefined", p.date)
                self.skipped_points += 1
                continue
            out.append(SpreadRecord(
                date=p.date,
                stock_a_close=p.close,
                stock_b_close=q.close,
                hedge_ratio=None,
                spread=p.close / q.close,
            ))
        return out

    def _hedged_records(self, pa: Sequence[PricePoint], pb: Sequence[PricePoint]) -> List[SpreadRecord]:
        a = [p.close for p in pa]
        b = [q.close for q in pb]
        betas = self.rolling_hedge_ratios(a, b)
        return [
            SpreadRecord(
                date=p.date,
                stock_a_close=p.close,
                stock_b_close=q.close,
                hedge_ratio=beta,
                spread=p.close - beta * q.close,
            )
            for p, q, beta in zip(pa, pb, betas)
        ]

    # ---------- API ----------
    def compute(self, prices_a: Sequence[PricePoint], prices_b: Sequence[PricePoint]) -> List[SpreadRecord]:
        """
        Spread records for the position-aligned prefix of both series.
        z_score is left at 0.0; the orchestrator attaches rolling z-scores.
        """
        n = min(len(prices_a), len(prices_b))
        pa, pb = prices_a[:n], prices_b[:n]
        self.hedge_ratio_fallbacks = 0
        self.skipped_points = 0
        if self.mode is SpreadMode.RATIO:
            return self._ratio_records(pa, pb)
        return self._hedged_records(pa, pb)


def compute_spread(
    prices_a: Sequence[PricePoint],
    prices_b: Sequence[PricePoint],
    mode: SpreadMode = SpreadMode.HEDGE_RATIO,
    lookback: int = 50,
) -> List[SpreadRecord]:
    return SpreadModel(mode=mode, lookback=lookback).compute(prices_a, prices_b)
