"""Trend indicators — EMA, EMA ribbon, Supertrend, ADX, Ichimoku."""

from signalforge.indicators import series as ta
from signalforge.indicators import thresholds as th
from signalforge.indicators._checks import require_length, require_positive
from signalforge.indicators.models import (
    Action,
    ADXResult,
    CloudColor,
    CloudLocation,
    EMAResult,
    EMARibbonResult,
    IchimokuResult,
    RatedSignal,
    RibbonAlignment,
    SupertrendResult,
    TrendBias,
    TrendDirection,
    TrendStrength,
)
from signalforge.market.models import CandleSeries

RIBBON_PERIODS = (5, 10, 20, 50, 200)


# ── EMA ──────────────────────────────────────────────────────────────────


def calculate_ema(series: CandleSeries, period: int) -> EMAResult:
    """EMA of closes, SMA-seeded.  Requires *period* candles."""
    require_positive("EMA", period=period)
    require_length(f"EMA({period})", series, period)

    return EMAResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        value=ta.ema(series.closes, period)[-1],
        period=period,
    )


def calculate_ema_ribbon(series: CandleSeries) -> EMARibbonResult:
    """Five EMAs (5/10/20/50/200) and their stacking order.

    BULLISH when the faster EMA sits strictly above every slower one,
    BEARISH when strictly below, MIXED otherwise.
    """
    require_length("EMA ribbon", series, RIBBON_PERIODS[-1])

    closes = series.closes
    values = [ta.ema(closes, p)[-1] for p in RIBBON_PERIODS]
    pairs = list(zip(values, values[1:]))

    if all(fast > slow for fast, slow in pairs):
        alignment = RibbonAlignment.BULLISH
    elif all(fast < slow for fast, slow in pairs):
        alignment = RibbonAlignment.BEARISH
    else:
        alignment = RibbonAlignment.MIXED

    ema5, ema10, ema20, ema50, ema200 = values
    return EMARibbonResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        ema5=ema5,
        ema10=ema10,
        ema20=ema20,
        ema50=ema50,
        ema200=ema200,
        alignment=alignment,
    )


# ── Supertrend ───────────────────────────────────────────────────────────


def calculate_supertrend(
    series: CandleSeries, period: int = 10, multiplier: float = 3.0
) -> SupertrendResult:
    """ATR-banded trailing stop.

    Bands are ``hl2 ± multiplier × ATR``.  While UP the line trails the
    lower band upward and flips DOWN when a close drops below it; while
    DOWN it trails the upper band downward and flips UP on a close above.

    Signal is BUY on the bar that flips to UP, SELL on the bar that flips
    to DOWN, HOLD otherwise.  Requires ``period + 2`` candles so the latest
    bar has a predecessor to compare against.
    """
    require_positive("Supertrend", period=period, multiplier=multiplier)
    require_length(f"Supertrend({period})", series, period + 2)

    highs, lows, closes = series.highs, series.lows, series.closes
    atr = ta.wilder_atr(highs, lows, closes, period)

    values: list[float] = []
    directions: list[TrendDirection] = []
    for i in range(period, len(closes)):
        hl2 = (highs[i] + lows[i]) / 2
        upper = hl2 + multiplier * atr[i]
        lower = hl2 - multiplier * atr[i]

        if not values:
            direction = TrendDirection.UP if closes[i] > upper else TrendDirection.DOWN
            value = lower if direction is TrendDirection.UP else upper
        elif directions[-1] is TrendDirection.UP:
            if closes[i] < values[-1]:
                direction, value = TrendDirection.DOWN, upper
            else:
                direction, value = TrendDirection.UP, max(lower, values[-1])
        else:
            if closes[i] > values[-1]:
                direction, value = TrendDirection.UP, lower
            else:
                direction, value = TrendDirection.DOWN, min(upper, values[-1])

        values.append(value)
        directions.append(direction)

    latest, previous = directions[-1], directions[-2]
    if latest is TrendDirection.UP and previous is TrendDirection.DOWN:
        signal = Action.BUY
    elif latest is TrendDirection.DOWN and previous is TrendDirection.UP:
        signal = Action.SELL
    else:
        signal = Action.HOLD

    return SupertrendResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        supertrend=values[-1],
        direction=latest,
        current_price=series.last.close,
        signal=signal,
    )


# ── ADX ──────────────────────────────────────────────────────────────────


def calculate_adx(series: CandleSeries, period: int = 14) -> ADXResult:
    """ADX with +DI/−DI.  Requires ``2 × period`` candles."""
    require_positive("ADX", period=period)
    require_length(f"ADX({period})", series, 2 * period)

    adx, plus_di, minus_di = ta.wilder_adx(
        series.highs, series.lows, series.closes, period
    )
    value, pdi, mdi = adx[-1], plus_di[-1], minus_di[-1]

    if value < th.ADX_WEAK_TREND:
        trend = TrendStrength.NO_TREND
    elif value > th.ADX_STRONG_TREND:
        trend = TrendStrength.STRONG_TREND
    else:
        trend = TrendStrength.WEAK_TREND

    if pdi > mdi:
        direction = TrendBias.BULLISH
    elif pdi < mdi:
        direction = TrendBias.BEARISH
    else:
        direction = TrendBias.NEUTRAL

    return ADXResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        adx=value,
        plus_di=pdi,
        minus_di=mdi,
        trend=trend,
        direction=direction,
    )


# ── Ichimoku ─────────────────────────────────────────────────────────────


def _midpoint(highs: list[float], lows: list[float], end: int, period: int) -> float:
    """(highest high + lowest low) / 2 over the *period* bars ending at *end*."""
    start = end - period + 1
    return (max(highs[start : end + 1]) + min(lows[start : end + 1])) / 2


def calculate_ichimoku(
    series: CandleSeries,
    tenkan_period: int = 9,
    kijun_period: int = 26,
    senkou_b_period: int = 52,
    displacement: int = 26,
) -> IchimokuResult:
    """Ichimoku Kinko Hyo for the latest candle.

    The senkou spans shown against the current bar are the ones computed
    *displacement* bars earlier and projected forward, so the series must
    hold ``senkou_b_period + displacement`` candles.  Chikou is the latest
    close (it is plotted *displacement* bars back).

    Signal:
        - **STRONG_BUY**: above the cloud, tenkan > kijun, green cloud.
        - **BUY**: above the cloud, tenkan > kijun.
        - **STRONG_SELL**: below the cloud, tenkan ≤ kijun, red cloud.
        - **SELL**: below the cloud, tenkan ≤ kijun.
        - **NEUTRAL**: everything else.
    """
    require_positive(
        "Ichimoku",
        tenkan_period=tenkan_period,
        kijun_period=kijun_period,
        senkou_b_period=senkou_b_period,
        displacement=displacement,
    )
    require_length("Ichimoku", series, senkou_b_period + displacement)

    highs, lows = series.highs, series.lows
    last = len(highs) - 1
    origin = last - displacement

    tenkan = _midpoint(highs, lows, last, tenkan_period)
    kijun = _midpoint(highs, lows, last, kijun_period)
    span_a = (
        _midpoint(highs, lows, origin, tenkan_period)
        + _midpoint(highs, lows, origin, kijun_period)
    ) / 2
    span_b = _midpoint(highs, lows, origin, senkou_b_period)

    price = series.last.close
    cloud_top = max(span_a, span_b)
    cloud_bottom = min(span_a, span_b)
    cloud_color = CloudColor.GREEN if span_a > span_b else CloudColor.RED

    if price > cloud_top:
        location = CloudLocation.ABOVE_CLOUD
    elif price < cloud_bottom:
        location = CloudLocation.BELOW_CLOUD
    else:
        location = CloudLocation.IN_CLOUD

    bullish_cross = tenkan > kijun
    if location is CloudLocation.ABOVE_CLOUD and bullish_cross:
        signal = (
            RatedSignal.STRONG_BUY if cloud_color is CloudColor.GREEN else RatedSignal.BUY
        )
    elif location is CloudLocation.BELOW_CLOUD and not bullish_cross:
        signal = (
            RatedSignal.STRONG_SELL if cloud_color is CloudColor.RED else RatedSignal.SELL
        )
    else:
        signal = RatedSignal.NEUTRAL

    return IchimokuResult(
        symbol=series.symbol,
        timeframe=series.timeframe,
        timestamp=series.last.timestamp,
        tenkan_sen=tenkan,
        kijun_sen=kijun,
        senkou_span_a=span_a,
        senkou_span_b=span_b,
        chikou_span=price,
        cloud_top=cloud_top,
        cloud_bottom=cloud_bottom,
        current_price=price,
        signal=signal,
        cloud_color=cloud_color,
        price_location=location,
    )
