"""Price levels — classic pivot points and Fibonacci retracements."""

from typing import Optional

from signalforge.errors import InvalidParameter
from signalforge.indicators import thresholds as th
from signalforge.indicators._checks import require_length, require_positive
from signalforge.indicators.models import (
    FibonacciLevels,
    FibonacciResult,
    PivotPointsResult,
)
from signalforge.market.models import CandleSeries


def nearest_level(price: float, levels: list[tuple[str, float]]) -> str:
    """Label of the level closest to *price*; the first listed wins a tie."""
    best_label, best_distance = levels[0][0], abs(price - levels[0][1])
    for label, level in levels[1:]:
        distance = abs(price - level)
        if distance < best_distance:
            best_label, best_distance = label, distance
    return best_label


# ── Pivot points ─────────────────────────────────────────────────────────


def calculate_pivot_points(series: CandleSeries) -> PivotPointsResult:
    """Classic floor pivots from the prior candle, nearest level to the latest close.

        P  = (H + L + C) / 3
        R1 = 2P − L            S1 = 2P − H
        R2 = P + (H − L)       S2 = P − (H − L)
        R3 = H + 2(P − L)      S3 = L − 2(H − P)
    """
    require_length("Pivot points", series, 2)

    prior = series.candles[-2]
    high, low, close = prior.high, prior.low, prior.close
    pivot = (high + low + close) / 3
    r1 = 2 * pivot - low
    s1 = 2 * pivot - high
    r2 = pivot + (high - low)
    s2 = pivot - (high - low)
    r3 = high + 2 * (pivot - low)
    s3 = low - 2 * (high - pivot)

    price = series.last.close
    nearest = nearest_level(
        price,
        [("S3", s3), ("S2", s2), ("S1", s1), ("Pivot", pivot),
         ("R1", r1), ("R2", r2), ("R3", r3)],
    )

    return PivotPointsResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        pivot=pivot,
        r1=r1,
        r2=r2,
        r3=r3,
        s1=s1,
        s2=s2,
        s3=s3,
        current_price=price,
        nearest_level=nearest,
    )


# ── Fibonacci ────────────────────────────────────────────────────────────


def calculate_fibonacci(
    series: CandleSeries,
    lookback: int = 50,
    high: Optional[float] = None,
    low: Optional[float] = None,
) -> FibonacciResult:
    """Retracement levels of a swing, measured up from its low.

    The swing is the highest high / lowest low of the last *lookback*
    candles unless *high* and *low* are both given.
    """
    if (high is None) != (low is None):
        raise InvalidParameter("Fibonacci: pass both high and low, or neither")

    if high is None:
        require_positive("Fibonacci", lookback=lookback)
        require_length(f"Fibonacci({lookback})", series, lookback)
        window = series.candles[-lookback:]
        high = max(c.high for c in window)
        low = min(c.low for c in window)
    else:
        require_length("Fibonacci", series, 1)
        if high < low:
            raise InvalidParameter(
                f"Fibonacci: high ({high}) must not be below low ({low})"
            )

    span = high - low
    labelled = [(label, low + span * ratio) for label, ratio in th.FIBONACCI_RATIOS]
    price = series.last.close

    return FibonacciResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        high=high,
        low=low,
        levels=FibonacciLevels(*(level for _, level in labelled)),
        current_price=price,
        nearest_level=nearest_level(price, labelled),
    )
