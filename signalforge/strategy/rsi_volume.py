"""RSI + volume reversal strategy.

Enter against an RSI extreme when the latest candle carries above-average
volume.

Entry (BUY, SELL mirrored):
    - RSI OVERSOLD and strictly below 30            +15
    - volume significant and ratio > 1.5 → enter    +20
      or ratio > 1.2 → enter                        +10
    - RSI < 20 (extreme)                            +10

Exit hint while RSI sits in the 40..60 neutral zone.
SL / TP: 2% / 4% from the entry price.
"""

import logging

from signalforge.errors import IndicatorError
from signalforge.indicators import thresholds as th
from signalforge.indicators.models import Action, OscillatorSignal, RSIResult, VolumeAnalysis
from signalforge.indicators.momentum import calculate_rsi
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

NAME = "RSI_VOLUME"
STOP_LOSS_PCT = 0.02
TAKE_PROFIT_PCT = 0.04


def evaluate_rsi_volume(rsi: RSIResult, volume: VolumeAnalysis, price: float) -> StrategyResult:
    """Score an RSI/volume snapshot; pure so it can be tested with hand-built results."""
    score = BASE_CONFIDENCE
    direction = None
    reasons: list[str] = []

    # strictly beyond the line; a reading of exactly 30 or 70 does not trade
    if rsi.signal is OscillatorSignal.OVERSOLD and rsi.value < th.RSI_OVERSOLD:
        side, extreme = Action.BUY, rsi.value < 20
        reasons.append(f"RSI is oversold at {rsi.value:.2f}")
    elif rsi.signal is OscillatorSignal.OVERBOUGHT and rsi.value > th.RSI_OVERBOUGHT:
        side, extreme = Action.SELL, rsi.value > 80
        reasons.append(f"RSI is overbought at {rsi.value:.2f}")
    else:
        side, extreme = None, False

    if side is not None:
        score += 15
        if volume.is_significant and volume.volume_ratio > 1.5:
            reasons.append(f"Volume confirmation: {volume.volume_ratio:.2f}x average")
            score += 20
            direction = side
        elif volume.volume_ratio > 1.2:
            reasons.append(f"Moderate volume: {volume.volume_ratio:.2f}x average")
            score += 10
            direction = side
        else:
            reasons.append(f"Low volume ({volume.volume_ratio:.2f}x) - weak signal")
        if extreme:
            reasons.append("Extreme RSI reading - high probability reversal")
            score += 10

    should_exit = 40 <= rsi.value <= 60
    if should_exit:
        reasons.append("RSI in neutral zone - consider taking profits")

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
                "rsi": rsi.value,
                "rsiSignal": rsi.signal.value,
                "volumeRatio": volume.volume_ratio,
                "isVolumeSignificant": volume.is_significant,
            },
        )

    return StrategyResult(
        strategy_name=NAME,
        signal=signal,
        should_exit=should_exit,
        analysis=join_reasons(
            reasons,
            f"RSI at {rsi.value:.2f} ({rsi.signal.value}), "
            f"Volume ratio: {volume.volume_ratio:.2f}x - No clear signal",
        ),
    )


class RSIVolumeStrategy:
    name = NAME
    description = "RSI extremes confirmed by a volume spike"

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        try:
            rsi = calculate_rsi(series)
            volume = analyze_volume(series)
        except IndicatorError as exc:
            logger.debug("%s abstains on %s: %s", NAME, series.symbol, exc)
            return StrategyResult(strategy_name=NAME, analysis=str(exc))
        return evaluate_rsi_volume(rsi, volume, series.last.close)
