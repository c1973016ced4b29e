"""Indicator catalog — run every indicator over one series, isolate failures.

``compute_indicators`` never aborts because one indicator cannot be
computed: the error is logged and recorded in ``failures`` so partial
results stay distinguishable from a total failure.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from signalforge.errors import IndicatorError
from signalforge.indicators.levels import calculate_fibonacci, calculate_pivot_points
from signalforge.indicators.models import (
    Action,
    BandPosition,
    IndicatorResult,
    OscillatorSignal,
    RatedSignal,
    RibbonAlignment,
    TrendBias,
    TrendStrength,
)
from signalforge.indicators.momentum import (
    calculate_cci,
    calculate_macd,
    calculate_mfi,
    calculate_rsi,
    calculate_stoch_rsi,
    calculate_williams_r,
)
from signalforge.indicators.trend import (
    calculate_adx,
    calculate_ema_ribbon,
    calculate_ichimoku,
    calculate_supertrend,
)
from signalforge.indicators.volatility import calculate_atr, calculate_bollinger_bands
from signalforge.indicators.volume import analyze_volume, calculate_obv, calculate_vwap
from signalforge.market.models import CandleSeries

logger = logging.getLogger("signalforge.indicators")

# Evaluation and output order.
INDICATORS: dict[str, Callable[[CandleSeries], IndicatorResult]] = {
    "rsi": calculate_rsi,
    "macd": calculate_macd,
    "ema_ribbon": calculate_ema_ribbon,
    "bollinger": calculate_bollinger_bands,
    "atr": calculate_atr,
    "vwap": calculate_vwap,
    "stoch_rsi": calculate_stoch_rsi,
    "obv": calculate_obv,
    "supertrend": calculate_supertrend,
    "pivot_points": calculate_pivot_points,
    "fibonacci": calculate_fibonacci,
    "ichimoku": calculate_ichimoku,
    "adx": calculate_adx,
    "cci": calculate_cci,
    "williams_r": calculate_williams_r,
    "mfi": calculate_mfi,
    "volume": analyze_volume,
}


@dataclass(frozen=True)
class IndicatorCatalog:
    results: dict[str, Any] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> Optional[Any]:
        return self.results.get(name)


def compute_indicators(series: CandleSeries) -> IndicatorCatalog:
    """Evaluate every registered indicator with its default parameters."""
    results: dict[str, Any] = {}
    failures: dict[str, str] = {}
    for name, fn in INDICATORS.items():
        try:
            results[name] = fn(series)
        except IndicatorError as exc:
            logger.warning(
                "Skipping %s for %s %s: %s", name, series.symbol, series.timeframe, exc
            )
            failures[name] = str(exc)
    return IndicatorCatalog(results=results, failures=failures)


# ── Comprehensive analysis ───────────────────────────────────────────────


@dataclass(frozen=True)
class ComprehensiveAnalysis:
    """Scored summary of the core indicators plus the trend-confirmation bonus."""

    symbol: str
    timeframe: str
    timestamp: datetime
    price: float
    bullish_score: int
    bearish_score: int
    overall_signal: RatedSignal
    confidence: float
    confirmations: int  # extended indicators agreeing with overall_signal
    confirmation_count: int  # extended indicators that took part


_BASE_INDICATORS = ("rsi", "macd", "ema_ribbon", "bollinger", "volume")


def comprehensive_analysis(catalog: IndicatorCatalog) -> Optional[ComprehensiveAnalysis]:
    """Fold RSI, MACD, EMA ribbon, Bollinger and volume into one rated signal.

    Scoring:
        - RSI OVERSOLD / OVERBOUGHT: +2 bullish / bearish
        - MACD BULLISH / BEARISH: +2
        - EMA ribbon BULLISH / BEARISH: +2
        - Bollinger BELOW_LOWER / ABOVE_UPPER: +1
        - significant volume: +1 to whichever side already leads

    ≥ 6 is STRONG_BUY/STRONG_SELL, ≥ 4 BUY/SELL (bullish checked first).
    Confidence is ``max(score) / 10``, then raised by up to 0.2 according
    to how many of Supertrend, Ichimoku and a strong-trend ADX agree with
    the overall call.  Returns ``None`` if a base indicator is missing.
    """
    missing = [name for name in _BASE_INDICATORS if name not in catalog.results]
    if missing:
        logger.debug("Comprehensive analysis unavailable, missing %s", ", ".join(missing))
        return None

    rsi = catalog.results["rsi"]
    macd = catalog.results["macd"]
    ribbon = catalog.results["ema_ribbon"]
    bollinger = catalog.results["bollinger"]
    volume = catalog.results["volume"]

    bullish = 0
    bearish = 0
    if rsi.signal is OscillatorSignal.OVERSOLD:
        bullish += 2
    elif rsi.signal is OscillatorSignal.OVERBOUGHT:
        bearish += 2
    if macd.trend is TrendBias.BULLISH:
        bullish += 2
    elif macd.trend is TrendBias.BEARISH:
        bearish += 2
    if ribbon.alignment is RibbonAlignment.BULLISH:
        bullish += 2
    elif ribbon.alignment is RibbonAlignment.BEARISH:
        bearish += 2
    if bollinger.position is BandPosition.BELOW_LOWER:
        bullish += 1
    elif bollinger.position is BandPosition.ABOVE_UPPER:
        bearish += 1
    if volume.is_significant:
        if bullish > bearish:
            bullish += 1
        elif bearish > bullish:
            bearish += 1

    confidence = max(bullish, bearish) / 10

    if bullish >= 6:
        overall = RatedSignal.STRONG_BUY
    elif bullish >= 4:
        overall = RatedSignal.BUY
    elif bearish >= 6:
        overall = RatedSignal.STRONG_SELL
    elif bearish >= 4:
        overall = RatedSignal.SELL
    else:
        overall = RatedSignal.NEUTRAL

    agree, count = _trend_confirmations(catalog, overall)
    if count:
        confidence = min(confidence + 0.2 * agree / count, 1.0)

    return ComprehensiveAnalysis(
        symbol=rsi.symbol,
        timeframe=rsi.timeframe,
        timestamp=rsi.timestamp,
        price=bollinger.current_price,
        bullish_score=bullish,
        bearish_score=bearish,
        overall_signal=overall,
        confidence=confidence,
        confirmations=agree,
        confirmation_count=count,
    )


def _trend_confirmations(catalog: IndicatorCatalog, overall: RatedSignal) -> tuple[int, int]:
    agree = 0
    count = 0

    supertrend = catalog.get("supertrend")
    if supertrend is not None:
        count += 1
        if (supertrend.signal is Action.BUY and overall.is_buy) or (
            supertrend.signal is Action.SELL and overall.is_sell
        ):
            agree += 1

    ichimoku = catalog.get("ichimoku")
    if ichimoku is not None:
        count += 1
        if (ichimoku.signal.is_buy and overall.is_buy) or (
            ichimoku.signal.is_sell and overall.is_sell
        ):
            agree += 1

    adx = catalog.get("adx")
    if adx is not None and adx.trend is TrendStrength.STRONG_TREND:
        count += 1
        if (adx.direction is TrendBias.BULLISH and overall.is_buy) or (
            adx.direction is TrendBias.BEARISH and overall.is_sell
        ):
            agree += 1

    return agree, count
