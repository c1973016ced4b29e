"""Volatility indicators — Bollinger Bands and ATR."""

import math

from signalforge.indicators import series as ta
from signalforge.indicators import thresholds as th
from signalforge.indicators._checks import require_length, require_positive
from signalforge.indicators.models import (
    ATRResult,
    BandPosition,
    BollingerBandsResult,
    Volatility,
)
from signalforge.market.models import CandleSeries


def calculate_bollinger_bands(
    series: CandleSeries, period: int = 20, std_dev: float = 2.0
) -> BollingerBandsResult:
    """Bollinger Bands of the latest candle and where price sits against them.

    A flat window collapses all three bands onto the price (BETWEEN).
    """
    require_positive("Bollinger", period=period, std_dev=std_dev)
    require_length(f"Bollinger({period})", series, period)

    upper, middle, lower = ta.bollinger(series.closes, period, std_dev)
    price = series.last.close
    if price > upper[-1]:
        position = BandPosition.ABOVE_UPPER
    elif price < lower[-1]:
        position = BandPosition.BELOW_LOWER
    else:
        position = BandPosition.BETWEEN

    return BollingerBandsResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        upper=upper[-1],
        middle=middle[-1],
        lower=lower[-1],
        current_price=price,
        position=position,
    )


def calculate_atr(series: CandleSeries, period: int = 14) -> ATRResult:
    """Wilder ATR with a LOW / MEDIUM / HIGH volatility bucket.

    The bucket compares the latest ATR against the mean of every ATR value
    in the series.  A zero baseline (no movement at all) reads LOW.
    """
    require_positive("ATR", period=period)
    require_length(f"ATR({period})", series, period + 1)

    atr = [v for v in ta.wilder_atr(series.highs, series.lows, series.closes, period)
           if not math.isnan(v)]
    latest = atr[-1]
    baseline = sum(atr) / len(atr)

    if baseline == 0:
        volatility = Volatility.LOW
    else:
        ratio = latest / baseline
        if ratio < th.ATR_LOW_RATIO:
            volatility = Volatility.LOW
        elif ratio > th.ATR_HIGH_RATIO:
            volatility = Volatility.HIGH
        else:
            volatility = Volatility.MEDIUM

    return ATRResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        value=latest,
        period=period,
        volatility=volatility,
    )
