# pairtrading/config.py
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models import SpreadMode

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class BacktestConfig:
    """
    Parameters of one backtest run.

    lookback is shared by the rolling hedge ratio and the rolling z-score so
    that both statistics see the same trailing window.
    """
    lookback: int = 50
    entry_z: float = 2.5
    exit_z: float = 1.5
    max_holding_days: int = 15
    mode: SpreadMode = SpreadMode.HEDGE_RATIO
    test_cointegration: bool = True

    def __post_init__(self):
        try:
            object.__setattr__(self, "mode", SpreadMode(self.mode))
        except ValueError:
            raise ConfigurationError(f"unknown spread mode: {self.mode!r}") from None

    def validate(self) -> "BacktestConfig":
        if int(self.lookback) < 1:
            raise ConfigurationError(f"lookback must be >= 1, got {self.lookback}")
        if not self.entry_z > 0:
            raise ConfigurationError(f"entry_z must be positive, got {self.entry_z}")
        if not self.exit_z > 0:
            raise ConfigurationError(f"exit_z must be positive, got {self.exit_z}")
        if not self.max_holding_days > 0:
            raise ConfigurationError(
                f"max_holding_days must be positive, got {self.max_holding_days}"
            )
        return self

    def to_dict(self) -> dict:
        out = asdict(self)
        out["mode"] = self.mode.value
        return out

    @classmethod
    def from_env(
        cls,
        prefix: str = "PAIRS_",
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
        dotenv_path: Optional[str] = None,
    ) -> "BacktestConfig":
        """
        Read overrides from PAIRS_LOOKBACK, PAIRS_ENTRY_Z, PAIRS_EXIT_Z,
        PAIRS_MAX_HOLDING_DAYS, PAIRS_MODE and PAIRS_TEST_COINTEGRATION.
        Unset variables keep the dataclass defaults.
        """
        if environ is None:
            if dotenv:
                load_dotenv(dotenv_path)  # loads .env into os.environ, existing vars win
            environ = os.environ

        def get(name):
            return environ.get(prefix + name)

        kwargs = {}
        for name, conv in (
            ("LOOKBACK", int),
            ("ENTRY_Z", float),
            ("EXIT_Z", float),
            ("MAX_HOLDING_DAYS", int),
        ):
            raw = get(name)
            if raw is None or raw == "":
                continue
            try:
                kwargs[name.lower()] = conv(raw)
            except ValueError:
                raise ConfigurationError(f"{prefix}{name}: cannot parse {raw!r}") from None

        mode = get("MODE")
        if mode:
            kwargs["mode"] = mode.strip().lower()

        flag = get("TEST_COINTEGRATION")
        if flag:
            val = flag.strip().lower()
            if val in _TRUE:
                kwargs["test_cointegration"] = True
            elif val in _FALSE:
                kwargs["test_cointegration"] = False
            else:
                raise ConfigurationError(f"{prefix}TEST_COINTEGRATION: cannot parse {flag!r}")

        config = cls(**kwargs).validate()
        logger.debug("Loaded backtest config from environment: %s", config.to_dict())
        return config
