"""SignalForge — service configuration.

Loads .env variables into a typed config object.  Only the analysis
service and the CLI read it; indicator, strategy and detector code take
their parameters as plain arguments.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from signalforge.smc.models import SmartMoneyConfig

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    log_level: str
    analysis_max_workers: int
    smc_swing_window: int
    smc_impulse_atr_multiple: float
    smc_bin_count: int
    smc_value_area_pct: float

    def smart_money_config(self) -> SmartMoneyConfig:
        """Detector configuration with the tunables overridden from the environment."""
        return SmartMoneyConfig(
            swing_window=self.smc_swing_window,
            impulse_atr_multiple=self.smc_impulse_atr_multiple,
            bin_count=self.smc_bin_count,
            value_area_pct=self.smc_value_area_pct,
        )


def _int_var(name: str, default: str, minimum: int = 1) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_var(name: str, default: str, low: float, high: float) -> float:
    """Parse a float that must lie in ``(low, high]``."""
    raw = os.environ.get(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not low < value <= high:
        raise ValueError(f"{name} must be in ({low}, {high}], got {value}")
    return value


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Every variable has a default.  Raises ``ValueError`` naming the
    variable when a value cannot be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(
            f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}"
        )

    return Config(
        log_level=log_level,
        analysis_max_workers=_int_var("ANALYSIS_MAX_WORKERS", "4"),
        smc_swing_window=_int_var("SMC_SWING_WINDOW", "3"),
        smc_impulse_atr_multiple=_float_var(
            "SMC_IMPULSE_ATR_MULTIPLE", "1.5", 0.0, float("inf")
        ),
        smc_bin_count=_int_var("SMC_BIN_COUNT", "24"),
        smc_value_area_pct=_float_var("SMC_VALUE_AREA_PCT", "0.70", 0.0, 1.0),
    )
