# pairtrading/errors.py
"""Errors raised at the backtest boundary. All are recoverable by the caller."""


class BacktestError(Exception):
    """Base class for every error the backtest engine raises."""


class MissingInputError(BacktestError):
    """A symbol was not selected or has no stored price data."""


class EmptySeriesError(BacktestError):
    """Date-range filtering left no points to backtest."""


class InvalidSeriesError(BacktestError):
    """A price series is not sorted ascending by date or repeats a date."""


class ConfigurationError(BacktestError, ValueError):
    """Invalid backtest parameters."""
