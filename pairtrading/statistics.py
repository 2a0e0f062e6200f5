# pairtrading/statistics.py
"""
Rolling statistics over a trailing window.

Index i uses the window [max(0, i - window + 1), i] inclusive: early points
get a shorter window instead of being undefined. The spread model uses the
same bounds for its rolling regression.
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def window_bounds(i: int, window: int) -> Tuple[int, int]:
    """Half-open slice (start, stop) of the trailing window ending at i."""
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    return max(0, i - window + 1), i + 1


def rolling_mean_std(series: Sequence[float], window: int) -> List[Tuple[float, float]]:
    """Mean and population std (ddof=0) of each trailing window."""
    values = np.asarray(series, dtype=float)
    out = []
    for i in range(len(values)):
        start, stop = window_bounds(i, window)
        w = values[start:stop]
        out.append((float(w.mean()), float(w.std())))
    return out


def rolling_zscore_counted(series: Sequence[float], window: int) -> Tuple[List[float], int]:
    """rolling_zscore plus the number of indices that fell back to 0."""
    values = np.asarray(series, dtype=float)
    z = []
    degenerate = 0
    for i in range(len(values)):
        start, stop = window_bounds(i, window)
        w = values[start:stop]
        std = w.std()
        # max == min catches constant windows whose mean picked up rounding
        if std == 0 or w.max() == w.min():
            z.append(0.0)
            degenerate += 1
            continue
        score = (values[i] - w.mean()) / std
        if not np.isfinite(score):
            z.append(0.0)
            degenerate += 1
            continue
        z.append(float(score))
    if degenerate:
        logger.debug("rolling z-score: %d of %d windows degenerate, z set to 0", degenerate, len(values))
    return z, degenerate


def rolling_zscore(series: Sequence[float], window: int) -> List[float]:
    """
    Z-score of each value against its trailing window (population std).

    A constant window has no defined z-score; 0.0 is returned for it (and for
    any non-finite result) instead of NaN or infinity. The output has the same
    length as the input.
    """
    z, _ = rolling_zscore_counted(series, window)
    return z
