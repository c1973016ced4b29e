"""MACD + RSI confluence strategy."""

import logging
from typing import Optional

from signalforge.errors import IndicatorError
from signalforge.indicators.models import Action, MACDResult, RSIResult, TrendBias, VolumeAnalysis
from signalforge.indicators.momentum import calculate_macd, calculate_rsi
from signalforge.indicators.volume import analyze_volume
from signalforge.market.models import CandleSeries
from signalforge.strategy.base import (
    BASE_CONFIDENCE,
    StrategyResult,
    StrategySignal,
    join_reasons,
    scored_confidence,
)

logger = logging.getLogger("signalforge.strategy")

NAME = "MACD_RSI"
STOP_LOSS_PCT = 0.025
TAKE_PROFIT_PCT = 0.05
STRONG_HISTOGRAM = 0.001  # fraction of price
WEAK_HISTOGRAM = 0.0001


def evaluate_macd_rsi(
    macd: MACDResult,
    rsi: RSIResult,
    volume: Optional[VolumeAnalysis],
    price: float,
) -> StrategyResult:
    """Score MACD momentum against the RSI zone it occurs in.

    BUY needs a BULLISH MACD with a positive histogram (+15), then by RSI:
    30..50 ideal (+20), 50..65 moderate (+10), below 30 reversal (+15);
    anything higher is too stretched to enter.  SELL mirrors with 50..70,
    35..50 and above 70.  A histogram beyond 0.1% of price adds +5 and a
    significant volume spike +10.
    """
    score = BASE_CONFIDENCE
    direction = None
    reasons: list[str] = []
    hist = macd.histogram
    value = rsi.value

    if macd.trend is TrendBias.BULLISH and hist > 0:
        reasons.append(f"MACD is bullish with positive histogram ({hist:.4f})")
        score += 15
        if 30 <= value <= 50:
            reasons.append(f"RSI at {value:.2f} - ideal buy zone (not overbought)")
            score += 20
            direction = Action.BUY
        elif 50 < value < 65:
            reasons.append(f"RSI at {value:.2f} - moderate bullish momentum")
            score += 10
            direction = Action.BUY
        elif value < 30:
            reasons.append(f"RSI oversold at {value:.2f} - potential reversal")
            score += 15
            direction = Action.BUY
        else:
            reasons.append(f"RSI overbought at {value:.2f} - risky entry")
        if hist > STRONG_HISTOGRAM * price:
            reasons.append("Strong MACD histogram momentum")
            score += 5

    elif macd.trend is TrendBias.BEARISH and hist < 0:
        reasons.append(f"MACD is bearish with negative histogram ({hist:.4f})")
        score += 15
        if 50 <= value <= 70:
            reasons.append(f"RSI at {value:.2f} - ideal sell zone (not oversold)")
            score += 20
            direction = Action.SELL
        elif 35 < value < 50:
            reasons.append(f"RSI at {value:.2f} - moderate bearish momentum")
            score += 10
            direction = Action.SELL
        elif value > 70:
            reasons.append(f"RSI overbought at {value:.2f} - potential reversal")
            score += 15
            direction = Action.SELL
        else:
            reasons.append(f"RSI oversold at {value:.2f} - risky entry")
        if hist < -STRONG_HISTOGRAM * price:
            reasons.append("Strong bearish MACD histogram momentum")
            score += 5

    elif macd.trend is TrendBias.NEUTRAL:
        reasons.append("MACD neutral - no clear direction, wait for confirmation")

    if volume is not None and volume.is_significant:
        reasons.append(f"Volume confirmation: {volume.volume_ratio:.2f}x average")
        score += 10

    should_exit = False
    if direction is Action.BUY and 0 < hist < WEAK_HISTOGRAM * price:
        should_exit = True
        reasons.append("MACD histogram weakening - consider taking profits")
    if direction is Action.SELL and -WEAK_HISTOGRAM * price < hist < 0:
        should_exit = True
        reasons.append("MACD histogram weakening - consider taking profits")
    if value > 75:
        should_exit = True
        reasons.append("RSI in extreme overbought - high probability of reversal")
    if value < 25:
        should_exit = True
        reasons.append("RSI in extreme oversold - high probability of reversal")

    signal = None
    if direction is not None and price > 0:
        buy = direction is Action.BUY
        signal = StrategySignal(
            type=direction,
            price=price,
            confidence=scored_confidence(score),
            stop_loss=price * (1 - STOP_LOSS_PCT) if buy else price * (1 + STOP_LOSS_PCT),
            take_profit=price * (1 + TAKE_PROFIT_PCT) if buy else price * (1 - TAKE_PROFIT_PCT),
            reasoning=". ".join(reasons),
            metadata={
                "macd": macd.macd,
                "macdSignal": macd.signal,
                "histogram": hist,
                "macdTrend": macd.trend.value,
                "rsi": value,
                "rsiSignal": rsi.signal.value,
                "volumeRatio": volume.volume_ratio if volume is not None else 0.0,
            },
        )

    return StrategyResult(
        strategy_name=NAME,
        signal=signal,
        should_exit=should_exit,
        analysis=join_reasons(
            reasons,
            f"MACD trend: {macd.trend.value}, RSI: {value:.2f} - No clear confluence signal",
        ),
    )


class MACDRSIStrategy:
    name = NAME
    description = "MACD momentum confirmed by the RSI zone"

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        try:
            macd = calculate_macd(series)
            rsi = calculate_rsi(series)
        except IndicatorError as exc:
            logger.debug("%s abstains on %s: %s", NAME, series.symbol, exc)
            return StrategyResult(strategy_name=NAME, analysis=str(exc))
        try:
            volume: Optional[VolumeAnalysis] = analyze_volume(series)
        except IndicatorError:
            volume = None
        return evaluate_macd_rsi(macd, rsi, volume, series.last.close)
