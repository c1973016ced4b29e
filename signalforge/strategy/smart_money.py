"""Smart-money reversal strategy built on the structure detector.

A bullish setup is a recent sweep of a swing low, a bullish order block
and a bullish CHoCH as the latest structure change.  It only enters when
the latest candle's volume is more than 2.5x its average.  Bearish setups
mirror this.
"""

import logging
from datetime import datetime
from typing import Optional

from signalforge.errors import IndicatorError
from signalforge.indicators.models import Action, RSIResult, VolumeAnalysis
from signalforge.indicators.momentum import calculate_rsi
from signalforge.indicators.volume import analyze_volume
from signalforge.market.models import CandleSeries
from signalforge.smc.detector import SmartMoneyDetector
from signalforge.smc.models import Bias, SmartMoneyResult, StructureKind
from signalforge.strategy.base import (
    BASE_CONFIDENCE,
    StrategyResult,
    StrategySignal,
    join_reasons,
    scored_confidence,
)

logger = logging.getLogger("signalforge.strategy")

NAME = "SMART_MONEY"
MIN_CANDLES = 50
RECENT_CANDLES = 10
INSTITUTIONAL_VOLUME_RATIO = 2.5
STOP_BUFFER_PCT = 0.018
TAKE_PROFIT_PCT = 0.054


def evaluate_smart_money_setup(
    price: float,
    smc: SmartMoneyResult,
    rsi: Optional[RSIResult],
    volume: Optional[VolumeAnalysis],
    recent_since: datetime,
) -> StrategyResult:
    """Score a detector result.  Sweeps before *recent_since* are stale.

    Setup (BUY shown):
        - bullish sweep                                  +20
        - price above the latest bullish order block     +15
        - at least one bullish FVG                       +10
        - volume ratio > 2.5 → enter                     +20
        - RSI < 40                                       +10
        - bullish CHoCH                                  +15

    SL 1.8% beyond the order block, TP 5.4% from price.
    """
    recent = [s for s in smc.liquidity_sweeps if s.time >= recent_since]
    sweep = recent[-1] if recent else None
    change = smc.structure_change

    score = BASE_CONFIDENCE
    direction = None
    block = None
    reasons: list[str] = []

    for bias, side in ((Bias.BULLISH, Action.BUY), (Bias.BEARISH, Action.SELL)):
        blocks = [ob for ob in smc.order_blocks if ob.type is bias]
        if not (
            sweep is not None
            and sweep.type is bias
            and blocks
            and change is not None
            and change.type is StructureKind.CHOCH
            and change.direction is bias
        ):
            continue

        block = blocks[-1]
        buy = side is Action.BUY
        reasons.append(f"Liquidity sweep detected: Price swept {sweep.price:.2f}")
        score += 20
        if (price > block.low) if buy else (price < block.high):
            edge = block.low if buy else block.high
            reasons.append(f"{bias.value.capitalize()} Order Block confirmed at {edge:.2f}")
            score += 15
        gaps = [g for g in smc.fair_value_gaps if g.type is bias]
        if gaps:
            target = gaps[-1].high if buy else gaps[-1].low
            reasons.append(f"Fair Value Gap detected - target: {target:.2f}")
            score += 10
        if volume is not None and volume.volume_ratio > INSTITUTIONAL_VOLUME_RATIO:
            reasons.append(f"Institutional volume detected: {volume.volume_ratio:.2f}x average")
            score += 20
            direction = side
        if rsi is not None and ((rsi.value < 40) if buy else (rsi.value > 60)):
            reasons.append(f"RSI at {rsi.value:.2f} - reversal likely")
            score += 10
        reasons.append(f"Change of Character (CHoCH) confirmed - {bias.value} reversal")
        score += 15
        break

    should_exit = change is None or (volume is not None and volume.volume_ratio < 1.0)
    if should_exit:
        reasons.append("Structure weakening or volume declining - consider exit")

    signal = None
    if direction is not None and block is not None and price > 0:
        buy = direction is Action.BUY
        signal = StrategySignal(
            type=direction,
            price=price,
            confidence=scored_confidence(score),
            stop_loss=block.low * (1 - STOP_BUFFER_PCT) if buy else block.high * (1 + STOP_BUFFER_PCT),
            take_profit=price * (1 + TAKE_PROFIT_PCT) if buy else price * (1 - TAKE_PROFIT_PCT),
            reasoning=". ".join(reasons),
            metadata={
                "rsi": rsi.value if rsi is not None else None,
                "volumeRatio": volume.volume_ratio if volume is not None else None,
                "liquiditySweep": sweep.type.value if sweep is not None else None,
                "orderBlockPrice": block.low if buy else block.high,
                "structureChange": change.type.value if change is not None else None,
                "riskRewardRatio": "3:1",
            },
        )

    return StrategyResult(
        strategy_name=NAME,
        signal=signal,
        should_exit=should_exit,
        analysis=join_reasons(
            reasons, "No Smart Money setup detected. Waiting for institutional footprints."
        ),
    )


class SmartMoneyStrategy:
    name = NAME
    description = "Liquidity sweep, order block and CHoCH reversal setups"

    def __init__(self, detector: Optional[SmartMoneyDetector] = None) -> None:
        self.detector = detector or SmartMoneyDetector()

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        if len(series) < MIN_CANDLES:
            return StrategyResult(
                strategy_name=NAME, analysis="Insufficient data for Smart Money analysis"
            )

        smc = self.detector.scan(series)
        try:
            rsi: Optional[RSIResult] = calculate_rsi(series)
            volume: Optional[VolumeAnalysis] = analyze_volume(series)
        except IndicatorError as exc:
            logger.debug("%s abstains on %s: %s", NAME, series.symbol, exc)
            return StrategyResult(strategy_name=NAME, analysis=str(exc))

        recent_since = series.candles[-RECENT_CANDLES].timestamp
        return evaluate_smart_money_setup(series.last.close, smc, rsi, volume, recent_since)
