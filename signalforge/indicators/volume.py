"""Volume indicators — VWAP, OBV, and the volume-spike check used by strategies."""

from signalforge.errors import NumericDegenerate
from signalforge.indicators import series as ta
from signalforge.indicators import thresholds as th
from signalforge.indicators._checks import require_length, require_positive
from signalforge.indicators.models import (
    OBVResult,
    TrendBias,
    VolumeAnalysis,
    VWAPPosition,
    VWAPResult,
)
from signalforge.market.models import CandleSeries


def calculate_vwap(series: CandleSeries) -> VWAPResult:
    """Volume-weighted average typical price across the whole series.

    Raises ``NumericDegenerate`` when the series carries no volume.
    """
    require_length("VWAP", series, th.VWAP_MIN_CANDLES)

    total_volume = sum(series.volumes)
    if total_volume == 0:
        raise NumericDegenerate("VWAP undefined: series has zero total volume")
    vwap = sum(c.typical_price * c.volume for c in series) / total_volume
    if vwap == 0:
        raise NumericDegenerate("VWAP undefined: volume-weighted price is zero")

    price = series.last.close
    deviation = (price - vwap) / vwap * 100.0
    if deviation > th.VWAP_BAND_PCT:
        signal = VWAPPosition.ABOVE_VWAP
    elif deviation < -th.VWAP_BAND_PCT:
        signal = VWAPPosition.BELOW_VWAP
    else:
        signal = VWAPPosition.AT_VWAP

    return VWAPResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        vwap=vwap,
        current_price=price,
        deviation=deviation,
        signal=signal,
    )


def calculate_obv(series: CandleSeries, ema_period: int = 20) -> OBVResult:
    """On-Balance Volume and its EMA.

    OBV starts at 0 and adds (subtracts) each candle's volume on an up
    (down) close.  Trend compares OBV with its EMA as a percentage of
    ``|EMA|``; when the EMA is exactly 0 the sign of OBV decides.
    """
    require_positive("OBV", ema_period=ema_period)
    require_length(f"OBV({ema_period})", series, ema_period)

    closes, volumes = series.closes, series.volumes
    obv = [0.0]
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            obv.append(obv[-1] + volumes[i])
        elif closes[i] < closes[i - 1]:
            obv.append(obv[-1] - volumes[i])
        else:
            obv.append(obv[-1])

    current = obv[-1]
    obv_ema = ta.ema(obv, ema_period)[-1]

    if obv_ema == 0:
        distance = 0.0 if current == 0 else (100.0 if current > 0 else -100.0)
    else:
        distance = (current - obv_ema) / abs(obv_ema) * 100.0

    if distance > th.OBV_TREND_PCT:
        trend = TrendBias.BULLISH
    elif distance < -th.OBV_TREND_PCT:
        trend = TrendBias.BEARISH
    else:
        trend = TrendBias.NEUTRAL

    return OBVResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        obv=current,
        obv_ema=obv_ema,
        trend=trend,
    )


def analyze_volume(series: CandleSeries, lookback: int = 20) -> VolumeAnalysis:
    """Latest volume against the average of the *lookback* candles before it."""
    require_positive("Volume", lookback=lookback)
    require_length(f"Volume({lookback})", series, lookback + 1)

    previous = series.volumes[-(lookback + 1) : -1]
    avg = sum(previous) / lookback
    current = series.last.volume
    ratio = current / avg if avg > 0 else 0.0

    return VolumeAnalysis(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        current_volume=current,
        avg_volume=avg,
        volume_ratio=ratio,
        is_significant=ratio > th.VOLUME_SIGNIFICANT_RATIO,
    )
