"""EMA ribbon trend-following strategy.

Enter in the direction of a fully stacked 5/10/20/50/200 ribbon when price
trades beyond it.  Mixed stacking is an exit hint.
"""

import logging
from typing import Optional

from signalforge.errors import IndicatorError
from signalforge.indicators.models import (
    Action,
    EMARibbonResult,
    MACDResult,
    RibbonAlignment,
    TrendBias,
)
from signalforge.indicators.momentum import calculate_macd
from signalforge.indicators.trend import calculate_ema_ribbon
from signalforge.market.models import CandleSeries
from signalforge.strategy.base import (
    BASE_CONFIDENCE,
    StrategyResult,
    StrategySignal,
    join_reasons,
    scored_confidence,
)

logger = logging.getLogger("signalforge.strategy")

NAME = "EMA_RIBBON"
WIDE_SPREAD_PCT = 5.0
FALLBACK_STOP_PCT = 0.03
REWARD_MULTIPLE = 3


def evaluate_ema_ribbon(
    ribbon: EMARibbonResult, macd: Optional[MACDResult], price: float
) -> StrategyResult:
    """Score a ribbon snapshot, optionally confirmed by MACD.

    Entry (BUY, SELL mirrored):
        - bullish alignment                            +20
        - price above every EMA → enter                +15
          or above EMA20 → enter                       +10
        - MACD BULLISH                                 +10
        - ribbon spread (EMA5 vs EMA200) > 5%          +5

    SL: the farther of EMA50 and 3% from price.
    TP: three times the price-to-EMA50 distance.
    """
    emas = (ribbon.ema5, ribbon.ema10, ribbon.ema20, ribbon.ema50, ribbon.ema200)
    above_all = all(price > e for e in emas)
    below_all = all(price < e for e in emas)

    score = BASE_CONFIDENCE
    direction = None
    reasons: list[str] = []
    should_exit = False

    if ribbon.alignment is RibbonAlignment.BULLISH:
        reasons.append("EMAs are in bullish alignment (5 > 10 > 20 > 50 > 200)")
        score += 20
        if above_all:
            reasons.append("Price is above all EMAs - strong uptrend")
            score += 15
            direction = Action.BUY
        elif price > ribbon.ema20:
            reasons.append("Price above EMA 20 - moderate bullish")
            score += 10
            direction = Action.BUY
        if macd is not None and macd.trend is TrendBias.BULLISH:
            reasons.append("MACD confirms bullish momentum")
            score += 10
        spread = (ribbon.ema5 - ribbon.ema200) / ribbon.ema200 * 100 if ribbon.ema200 else 0.0
        if spread > WIDE_SPREAD_PCT:
            reasons.append(f"Wide ribbon spread ({spread:.2f}%) - strong trend")
            score += 5

    elif ribbon.alignment is RibbonAlignment.BEARISH:
        reasons.append("EMAs are in bearish alignment (5 < 10 < 20 < 50 < 200)")
        score += 20
        if below_all:
            reasons.append("Price is below all EMAs - strong downtrend")
            score += 15
            direction = Action.SELL
        elif price < ribbon.ema20:
            reasons.append("Price below EMA 20 - moderate bearish")
            score += 10
            direction = Action.SELL
        if macd is not None and macd.trend is TrendBias.BEARISH:
            reasons.append("MACD confirms bearish momentum")
            score += 10
        spread = (ribbon.ema200 - ribbon.ema5) / ribbon.ema200 * 100 if ribbon.ema200 else 0.0
        if spread > WIDE_SPREAD_PCT:
            reasons.append(f"Wide ribbon spread ({spread:.2f}%) - strong trend")
            score += 5

    else:
        should_exit = True
        reasons.append("EMAs in mixed alignment - trend weakening, consider exit")
        if ribbon.ema5 > ribbon.ema10 and price > ribbon.ema20:
            reasons.append("Early bullish crossover detected - potential trend change")
        elif ribbon.ema5 < ribbon.ema10 and price < ribbon.ema20:
            reasons.append("Early bearish crossover detected - potential trend change")

    signal = None
    if direction is not None and price > 0:
        buy = direction is Action.BUY
        reward_pct = abs(price - ribbon.ema50) / price * REWARD_MULTIPLE
        signal = StrategySignal(
            type=direction,
            price=price,
            confidence=scored_confidence(score),
            stop_loss=(
                min(ribbon.ema50, price * (1 - FALLBACK_STOP_PCT))
                if buy
                else max(ribbon.ema50, price * (1 + FALLBACK_STOP_PCT))
            ),
            take_profit=price * (1 + reward_pct) if buy else price * (1 - reward_pct),
            reasoning=". ".join(reasons),
            metadata={
                "ema5": ribbon.ema5,
                "ema10": ribbon.ema10,
                "ema20": ribbon.ema20,
                "ema50": ribbon.ema50,
                "ema200": ribbon.ema200,
                "alignment": ribbon.alignment.value,
                "priceAboveAllEmas": above_all,
                "priceBelowAllEmas": below_all,
                "macdTrend": macd.trend.value if macd is not None else "UNKNOWN",
            },
        )

    return StrategyResult(
        strategy_name=NAME,
        signal=signal,
        should_exit=should_exit,
        analysis=join_reasons(
            reasons,
            f"EMA Ribbon alignment: {ribbon.alignment.value}. "
            f"Price: {price:.2f} - No clear signal",
        ),
    )


class EMARibbonStrategy:
    name = NAME
    description = "Trend following on a fully stacked EMA ribbon"

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        try:
            ribbon = calculate_ema_ribbon(series)
        except IndicatorError as exc:
            logger.debug("%s abstains on %s: %s", NAME, series.symbol, exc)
            return StrategyResult(strategy_name=NAME, analysis=str(exc))
        try:
            macd: Optional[MACDResult] = calculate_macd(series)
        except IndicatorError:
            macd = None
        return evaluate_ema_ribbon(ribbon, macd, series.last.close)
