"""Order flow + volume profile strategy.

Delta volume approximates aggressive buying minus selling: a bullish
candle's volume counts as buying, anything else as selling.  Combined with
where price sits against the point of control and an absorption pattern on
the latest candle, it looks for institutional footprints.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from signalforge.errors import IndicatorError
from signalforge.indicators.models import Action, RSIResult, TrendBias, VolumeAnalysis
from signalforge.indicators.momentum import calculate_rsi
from signalforge.indicators.volume import analyze_volume
from signalforge.market.models import Candle, CandleSeries
from signalforge.smc.models import VolumeProfile
from signalforge.smc.volume_profile import build_volume_profile
from signalforge.strategy.base import (
    BASE_CONFIDENCE,
    StrategyResult,
    StrategySignal,
    join_reasons,
    scored_confidence,
)

logger = logging.getLogger("signalforge.strategy")

NAME = "ORDER_FLOW"
MIN_CANDLES = 50
PROFILE_CANDLES = 50
PROFILE_BINS = 50
DELTA_CANDLES = 20
DELTA_BIAS_PCT = 20.0
ENTRY_STRENGTH = 70
STOP_LOSS_PCT = 0.02
POC_STOP_BUFFER = 0.015
TAKE_PROFIT_PCT = 0.05


class OrderFlowType(str, Enum):
    ABSORPTION_BUYING = "ABSORPTION_BUYING"
    ABSORPTION_SELLING = "ABSORPTION_SELLING"
    EXHAUSTION = "EXHAUSTION"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class DeltaVolume:
    delta: float
    bias: TrendBias


@dataclass(frozen=True)
class OrderFlow:
    type: OrderFlowType
    strength: int
    description: str


def calculate_delta_volume(candles: Sequence[Candle]) -> DeltaVolume:
    """Net signed volume of the last 20 candles.

    Biased when ``|delta|`` exceeds 20% of the window's total volume.
    """
    window = list(candles)[-DELTA_CANDLES:]
    delta = sum(c.volume if c.is_bullish else -c.volume for c in window)
    total = sum(c.volume for c in window)
    if total > 0 and abs(delta) / total * 100 > DELTA_BIAS_PCT:
        bias = TrendBias.BULLISH if delta > 0 else TrendBias.BEARISH
    else:
        bias = TrendBias.NEUTRAL
    return DeltaVolume(delta=delta, bias=bias)


def classify_order_flow(candles: Sequence[Candle]) -> OrderFlow:
    """Read the latest candle against its predecessor.

    Absorption of selling: volume > 1.5x the previous candle, bullish body,
    a lower low and a higher close.  Absorption of buying mirrors it.
    Exhaustion: volume > 2x with a body under 30% of the range.
    """
    if len(candles) < 2:
        return OrderFlow(OrderFlowType.NEUTRAL, 50, "Not enough candles for order flow")
    prev, curr = candles[-2], candles[-1]
    spike = curr.volume > prev.volume * 1.5

    if spike and curr.is_bullish and curr.low < prev.low and curr.close > prev.close:
        return OrderFlow(
            OrderFlowType.ABSORPTION_SELLING, 85, "Strong absorption of selling pressure"
        )
    if spike and curr.is_bearish and curr.high > prev.high and curr.close < prev.close:
        return OrderFlow(
            OrderFlowType.ABSORPTION_BUYING, 85, "Strong absorption of buying pressure"
        )
    if curr.volume > prev.volume * 2 and curr.body < curr.range * 0.3:
        return OrderFlow(
            OrderFlowType.EXHAUSTION, 70, "Volume climax with small body - exhaustion"
        )
    return OrderFlow(OrderFlowType.NEUTRAL, 50, "No significant order flow imbalance")


def evaluate_order_flow(
    price: float,
    profile: VolumeProfile,
    delta: DeltaVolume,
    flow: OrderFlow,
    rsi: Optional[RSIResult],
    volume: Optional[VolumeAnalysis],
) -> StrategyResult:
    if price <= 0:
        return StrategyResult(strategy_name=NAME, analysis=f"Non-positive price {price}")

    poc = profile.poc
    poc_distance = (price - poc) / poc * 100 if poc else 0.0
    below_poc = abs(poc_distance) >= 1 and price < poc
    above_poc = abs(poc_distance) >= 1 and price > poc
    testing_poc = poc > 0 and abs(price - poc) / price < POC_STOP_BUFFER

    score = BASE_CONFIDENCE
    direction = None
    reasons: list[str] = []

    if delta.bias is TrendBias.BULLISH and below_poc and flow.type is OrderFlowType.ABSORPTION_SELLING:
        reasons.append(f"Strong buying pressure: Delta +{delta.delta:.0f}")
        score += 20
        if testing_poc:
            reasons.append(f"Price testing POC at {poc:.2f} (high volume support)")
            score += 15
        if price > profile.value_area_high:
            reasons.append(f"Breakout above value area ({profile.value_area_high:.2f})")
            score += 15
        if any(lvl < price and (price - lvl) / price < 0.02 for lvl in profile.hvn_levels):
            reasons.append("High Volume Node support below price")
            score += 10
        if flow.strength > ENTRY_STRENGTH:
            reasons.append(f"Strong order flow: {flow.description}")
            score += 15
            direction = Action.BUY
        if volume is not None and volume.volume_ratio > 1.8:
            reasons.append(f"Institutional volume: {volume.volume_ratio:.2f}x average")
            score += 10
        if rsi is not None and rsi.value < 70:
            reasons.append(f"RSI at {rsi.value:.2f} - room for upside")
            score += 5

    elif delta.bias is TrendBias.BEARISH and above_poc and flow.type is OrderFlowType.ABSORPTION_BUYING:
        reasons.append(f"Strong selling pressure: Delta {delta.delta:.0f}")
        score += 20
        if testing_poc:
            reasons.append(f"Price testing POC at {poc:.2f} (high volume resistance)")
            score += 15
        if price < profile.value_area_low:
            reasons.append(f"Breakdown below value area ({profile.value_area_low:.2f})")
            score += 15
        if any(lvl > price and (lvl - price) / price < 0.02 for lvl in profile.hvn_levels):
            reasons.append("High Volume Node resistance above price")
            score += 10
        if flow.strength > ENTRY_STRENGTH:
            reasons.append(f"Strong order flow: {flow.description}")
            score += 15
            direction = Action.SELL
        if volume is not None and volume.volume_ratio > 1.8:
            reasons.append(f"Institutional volume: {volume.volume_ratio:.2f}x average")
            score += 10
        if rsi is not None and rsi.value > 30:
            reasons.append(f"RSI at {rsi.value:.2f} - room for downside")
            score += 5

    should_exit = delta.bias is TrendBias.NEUTRAL or flow.strength < 40
    if should_exit:
        reasons.append("Order flow weakening - consider exit")

    signal = None
    if direction is not None and price > 0:
        buy = direction is Action.BUY
        if buy:
            stop = min(poc * (1 - POC_STOP_BUFFER), price * (1 - STOP_LOSS_PCT))
            targets = [lvl for lvl in profile.hvn_levels if lvl > price]
            target = targets[0] if targets else price * (1 + TAKE_PROFIT_PCT)
        else:
            stop = max(poc * (1 + POC_STOP_BUFFER), price * (1 + STOP_LOSS_PCT))
            targets = [lvl for lvl in profile.hvn_levels if lvl < price]
            target = targets[-1] if targets else price * (1 - TAKE_PROFIT_PCT)
        signal = StrategySignal(
            type=direction,
            price=price,
            confidence=scored_confidence(score),
            stop_loss=stop,
            take_profit=target,
            reasoning=". ".join(reasons),
            metadata={
                "deltaVolume": delta.delta,
                "deltaSignal": delta.bias.value,
                "poc": poc,
                "valueAreaHigh": profile.value_area_high,
                "valueAreaLow": profile.value_area_low,
                "orderFlowType": flow.type.value,
                "orderFlowStrength": flow.strength,
                "hvnCount": len(profile.hvn_levels),
                "lvnCount": len(profile.lvn_levels),
            },
        )

    return StrategyResult(
        strategy_name=NAME,
        signal=signal,
        should_exit=should_exit,
        analysis=join_reasons(
            reasons, "No clear order flow setup. Waiting for volume imbalance."
        ),
    )


class OrderFlowStrategy:
    name = NAME
    description = "Delta volume, POC position and absorption patterns"

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        if len(series) < MIN_CANDLES:
            return StrategyResult(
                strategy_name=NAME, analysis="Insufficient data for Order Flow analysis"
            )

        recent = series.candles[-PROFILE_CANDLES:]
        profile = build_volume_profile(recent, bin_count=PROFILE_BINS)
        if profile is None:
            return StrategyResult(
                strategy_name=NAME, analysis="No traded volume in the profile window"
            )

        try:
            rsi: Optional[RSIResult] = calculate_rsi(series)
            volume: Optional[VolumeAnalysis] = analyze_volume(series)
        except IndicatorError as exc:
            logger.debug("%s abstains on %s: %s", NAME, series.symbol, exc)
            return StrategyResult(strategy_name=NAME, analysis=str(exc))

        return evaluate_order_flow(
            series.last.close,
            profile,
            calculate_delta_volume(recent),
            classify_order_flow(recent),
            rsi,
            volume,
        )
