"""Classification thresholds, one named block per indicator.

Boundaries are inclusive on the extreme side: a value sitting exactly on
an oversold/overbought line is classified as OVERSOLD/OVERBOUGHT.
"""

# ── RSI ──────────────────────────────────────────────────────────────────
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0

# ── StochRSI (same scale and lines as RSI, applied to both %K and %D) ───
STOCH_RSI_OVERSOLD = RSI_OVERSOLD
STOCH_RSI_OVERBOUGHT = RSI_OVERBOUGHT
STOCH_RSI_FLAT_VALUE = 50.0

# ── CCI ──────────────────────────────────────────────────────────────────
CCI_CONSTANT = 0.015
CCI_OVERSOLD = -100.0
CCI_OVERBOUGHT = 100.0

# ── Williams %R ──────────────────────────────────────────────────────────
WILLIAMS_R_OVERSOLD = -80.0
WILLIAMS_R_OVERBOUGHT = -20.0
WILLIAMS_R_FLAT_VALUE = -50.0

# ── MFI ──────────────────────────────────────────────────────────────────
MFI_OVERSOLD = 20.0
MFI_OVERBOUGHT = 80.0

# ── ATR volatility bucket (latest ATR / mean ATR over the window) ───────
ATR_LOW_RATIO = 0.7
ATR_HIGH_RATIO = 1.3

# ── VWAP band, in percent deviation from VWAP ────────────────────────────
VWAP_BAND_PCT = 1.0
VWAP_MIN_CANDLES = 10

# ── OBV trend, in percent distance of OBV from its EMA ──────────────────
OBV_TREND_PCT = 5.0

# ── ADX trend strength ───────────────────────────────────────────────────
ADX_WEAK_TREND = 20.0
ADX_STRONG_TREND = 40.0

# ── Volume analysis ──────────────────────────────────────────────────────
VOLUME_SIGNIFICANT_RATIO = 1.5

# ── Fibonacci retracement ratios and their labels ───────────────────────
FIBONACCI_RATIOS: tuple[tuple[str, float], ...] = (
    ("0%", 0.0),
    ("23.6%", 0.236),
    ("38.2%", 0.382),
    ("50%", 0.5),
    ("61.8%", 0.618),
    ("78.6%", 0.786),
    ("100%", 1.0),
)
