"""Momentum oscillators — RSI, StochRSI, MACD, CCI, Williams %R, MFI.

Pure functions, no I/O.  Each takes a ``CandleSeries`` and returns the
typed result for its latest candle.
"""

import math

from signalforge.indicators import series as ta
from signalforge.indicators import thresholds as th
from signalforge.indicators._checks import require_length, require_positive
from signalforge.indicators.models import (
    CCIResult,
    MACDResult,
    MFIResult,
    OscillatorSignal,
    RSIResult,
    StochRSIResult,
    TrendBias,
    WilliamsRResult,
)
from signalforge.errors import InvalidParameter
from signalforge.market.models import CandleSeries


def classify_oscillator(value: float, oversold: float, overbought: float) -> OscillatorSignal:
    """Map an oscillator reading onto OVERSOLD / OVERBOUGHT / NEUTRAL."""
    if value <= oversold:
        return OscillatorSignal.OVERSOLD
    if value >= overbought:
        return OscillatorSignal.OVERBOUGHT
    return OscillatorSignal.NEUTRAL


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(series: CandleSeries, period: int = 14) -> RSIResult:
    """Wilder RSI of the latest candle.

    Requires ``period + 1`` candles.  A constant-price series reads 50.
    """
    require_positive("RSI", period=period)
    require_length(f"RSI({period})", series, period + 1)

    value = ta.wilder_rsi(series.closes, period)[-1]
    return RSIResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        value=value,
        period=period,
        signal=classify_oscillator(value, th.RSI_OVERSOLD, th.RSI_OVERBOUGHT),
    )


def calculate_stoch_rsi(
    series: CandleSeries,
    rsi_period: int = 14,
    stoch_period: int = 14,
    k_period: int = 3,
    d_period: int = 3,
) -> StochRSIResult:
    """Stochastic oscillator applied to RSI, with %K / %D smoothing.

    ``stoch = (rsi - min(rsi)) / (max(rsi) - min(rsi)) × 100`` over
    *stoch_period* RSI values; %K is its *k_period* SMA and %D the
    *d_period* SMA of %K.  OVERSOLD/OVERBOUGHT require %K and %D to agree.
    """
    require_positive(
        "StochRSI",
        rsi_period=rsi_period,
        stoch_period=stoch_period,
        k_period=k_period,
        d_period=d_period,
    )
    minimum = rsi_period + stoch_period + k_period + d_period - 2
    require_length("StochRSI", series, minimum)

    rsi_values = ta.wilder_rsi(series.closes, rsi_period)[rsi_period:]

    stoch: list[float] = []
    for i in range(stoch_period - 1, len(rsi_values)):
        window = rsi_values[i - stoch_period + 1 : i + 1]
        lowest, highest = min(window), max(window)
        if highest == lowest:
            stoch.append(th.STOCH_RSI_FLAT_VALUE)
        else:
            stoch.append((rsi_values[i] - lowest) / (highest - lowest) * 100.0)

    k_values = ta.sma(stoch, k_period)[k_period - 1 :]
    d_values = ta.sma(k_values, d_period)[d_period - 1 :]
    k, d = k_values[-1], d_values[-1]

    if k <= th.STOCH_RSI_OVERSOLD and d <= th.STOCH_RSI_OVERSOLD:
        signal = OscillatorSignal.OVERSOLD
    elif k >= th.STOCH_RSI_OVERBOUGHT and d >= th.STOCH_RSI_OVERBOUGHT:
        signal = OscillatorSignal.OVERBOUGHT
    else:
        signal = OscillatorSignal.NEUTRAL

    return StochRSIResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        stoch_rsi=stoch[-1],
        k=k,
        d=d,
        signal=signal,
    )


# ── MACD ─────────────────────────────────────────────────────────────────


def calculate_macd(
    series: CandleSeries,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """MACD line, signal line and histogram of the latest candle.

    MACD = EMA(fast) − EMA(slow); signal = EMA(signal_period) of MACD;
    histogram = MACD − signal.

    Trend:
        - **BULLISH**: histogram > 0 and the MACD line is rising.
        - **BEARISH**: histogram < 0 and the MACD line is falling.
        - **NEUTRAL**: everything else.

    Requires ``slow_period + signal_period - 1`` candles.
    """
    require_positive(
        "MACD",
        fast_period=fast_period,
        slow_period=slow_period,
        signal_period=signal_period,
    )
    if fast_period >= slow_period:
        raise InvalidParameter(
            f"MACD: fast_period ({fast_period}) must be below slow_period ({slow_period})"
        )
    require_length("MACD", series, slow_period + signal_period - 1)

    closes = series.closes
    fast = ta.ema(closes, fast_period)
    slow = ta.ema(closes, slow_period)
    macd_line = [f - s for f, s in zip(fast, slow)]  # nan until slow seeds
    signal_line = ta.ema(macd_line, signal_period)

    macd = macd_line[-1]
    signal = signal_line[-1]
    histogram = macd - signal
    prev_macd = macd_line[-2] if len(macd_line) > 1 else float("nan")

    rising = not math.isnan(prev_macd) and macd > prev_macd
    falling = not math.isnan(prev_macd) and macd < prev_macd

    if histogram > 0 and rising:
        trend = TrendBias.BULLISH
    elif histogram < 0 and falling:
        trend = TrendBias.BEARISH
    else:
        trend = TrendBias.NEUTRAL

    return MACDResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        macd=macd,
        signal=signal,
        histogram=histogram,
        trend=trend,
    )


# ── CCI / Williams %R / MFI ──────────────────────────────────────────────


def calculate_cci(series: CandleSeries, period: int = 20) -> CCIResult:
    """Commodity Channel Index: ``(TP − SMA(TP)) / (0.015 × mean deviation)``.

    A flat window (zero mean deviation) reads 0.
    """
    require_positive("CCI", period=period)
    require_length(f"CCI({period})", series, period)

    window = [c.typical_price for c in series.candles[-period:]]
    mean = sum(window) / period
    mean_dev = sum(abs(tp - mean) for tp in window) / period
    if mean_dev == 0:
        value = 0.0
    else:
        value = (window[-1] - mean) / (th.CCI_CONSTANT * mean_dev)

    return CCIResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        value=value,
        signal=classify_oscillator(value, th.CCI_OVERSOLD, th.CCI_OVERBOUGHT),
    )


def calculate_williams_r(series: CandleSeries, period: int = 14) -> WilliamsRResult:
    """Williams %R on a −100..0 scale.  A flat range reads −50."""
    require_positive("Williams %R", period=period)
    require_length(f"Williams %R({period})", series, period)

    window = series.candles[-period:]
    highest = max(c.high for c in window)
    lowest = min(c.low for c in window)
    if highest == lowest:
        value = th.WILLIAMS_R_FLAT_VALUE
    else:
        value = (highest - series.last.close) / (highest - lowest) * -100.0

    return WilliamsRResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        value=value,
        signal=classify_oscillator(
            value, th.WILLIAMS_R_OVERSOLD, th.WILLIAMS_R_OVERBOUGHT
        ),
    )


def calculate_mfi(series: CandleSeries, period: int = 14) -> MFIResult:
    """Money Flow Index over the last *period* typical-price changes.

    Requires ``period + 1`` candles.  No negative flow reads 100; no flow
    at all reads 50.
    """
    require_positive("MFI", period=period)
    require_length(f"MFI({period})", series, period + 1)

    candles = series.candles[-(period + 1) :]
    positive = 0.0
    negative = 0.0
    for prev, curr in zip(candles, candles[1:]):
        flow = curr.typical_price * curr.volume
        if curr.typical_price > prev.typical_price:
            positive += flow
        elif curr.typical_price < prev.typical_price:
            negative += flow

    if negative == 0:
        value = 50.0 if positive == 0 else 100.0
    else:
        value = 100.0 - 100.0 / (1.0 + positive / negative)

    return MFIResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        value=value,
        signal=classify_oscillator(value, th.MFI_OVERSOLD, th.MFI_OVERBOUGHT),
    )
