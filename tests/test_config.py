"""Tests for signalforge.config — environment variable loading and validation."""

import os

import pytest

from signalforge.config import Config, load_config
from signalforge.smc.models import SmartMoneyConfig

_VARS = [
    "LOG_LEVEL",
    "ANALYSIS_MAX_WORKERS",
    "SMC_SWING_WINDOW",
    "SMC_IMPULSE_ATR_MULTIPLE",
    "SMC_BIN_COUNT",
    "SMC_VALUE_AREA_PCT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure SignalForge env vars are cleared between tests."""
    for var in _VARS:
        monkeypatch.delenv(var, raising=False)
    yield
    # load_dotenv writes straight to os.environ
    for var in _VARS:
        os.environ.pop(var, None)


@pytest.fixture
def no_env_file(tmp_path):
    return str(tmp_path / "missing.env")


class TestLoadConfig:
    def test_defaults(self, no_env_file):
        cfg = load_config(no_env_file)
        assert cfg == Config(
            log_level="INFO",
            analysis_max_workers=4,
            smc_swing_window=3,
            smc_impulse_atr_multiple=1.5,
            smc_bin_count=24,
            smc_value_area_pct=0.70,
        )

    def test_overrides(self, monkeypatch, no_env_file):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ANALYSIS_MAX_WORKERS", "8")
        monkeypatch.setenv("SMC_SWING_WINDOW", "5")
        monkeypatch.setenv("SMC_BIN_COUNT", "40")
        cfg = load_config(no_env_file)
        assert cfg.log_level == "DEBUG"
        assert cfg.analysis_max_workers == 8
        assert cfg.smc_swing_window == 5
        assert cfg.smc_bin_count == 40

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SMC_VALUE_AREA_PCT=0.8\nLOG_LEVEL=WARNING\n")
        cfg = load_config(str(env_file))
        assert cfg.smc_value_area_pct == 0.8
        assert cfg.log_level == "WARNING"

    def test_process_env_wins_over_env_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SMC_SWING_WINDOW=7\n")
        monkeypatch.setenv("SMC_SWING_WINDOW", "2")
        assert load_config(str(env_file)).smc_swing_window == 2

    def test_config_is_frozen(self, no_env_file):
        cfg = load_config(no_env_file)
        with pytest.raises(AttributeError):
            cfg.log_level = "DEBUG"


class TestValidation:
    def test_unknown_log_level(self, monkeypatch, no_env_file):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            load_config(no_env_file)

    def test_non_integer_workers(self, monkeypatch, no_env_file):
        monkeypatch.setenv("ANALYSIS_MAX_WORKERS", "four")
        with pytest.raises(ValueError, match="ANALYSIS_MAX_WORKERS must be an integer"):
            load_config(no_env_file)

    def test_zero_swing_window(self, monkeypatch, no_env_file):
        monkeypatch.setenv("SMC_SWING_WINDOW", "0")
        with pytest.raises(ValueError, match="SMC_SWING_WINDOW must be >= 1"):
            load_config(no_env_file)

    @pytest.mark.parametrize("value", ["0", "1.5", "-0.2"])
    def test_value_area_out_of_range(self, monkeypatch, no_env_file, value):
        monkeypatch.setenv("SMC_VALUE_AREA_PCT", value)
        with pytest.raises(ValueError, match="SMC_VALUE_AREA_PCT"):
            load_config(no_env_file)

    def test_impulse_multiple_must_be_positive(self, monkeypatch, no_env_file):
        monkeypatch.setenv("SMC_IMPULSE_ATR_MULTIPLE", "0")
        with pytest.raises(ValueError, match="SMC_IMPULSE_ATR_MULTIPLE"):
            load_config(no_env_file)


class TestSmartMoneyConfig:
    def test_detector_config_from_env(self, monkeypatch, no_env_file):
        monkeypatch.setenv("SMC_SWING_WINDOW", "4")
        monkeypatch.setenv("SMC_VALUE_AREA_PCT", "0.6")
        smc = load_config(no_env_file).smart_money_config()
        assert smc == SmartMoneyConfig(swing_window=4, value_area_pct=0.6)
        assert smc.atr_period == 14
