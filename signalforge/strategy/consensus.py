"""Consensus engine — fan every strategy out over one series, reduce the votes.

The engine has no side effects.  Deduplication against earlier signals,
cool-downs and alert thresholds are the caller's business.
"""

import logging
from dataclasses import dataclass
from typing import Mapping

from signalforge.errors import IndicatorError
from signalforge.indicators.models import Action
from signalforge.market.models import CandleSeries
from signalforge.strategy.base import StrategyProtocol, StrategyResult

logger = logging.getLogger("signalforge.consensus")


@dataclass(frozen=True)
class ConsensusResult:
    symbol: str
    timeframe: str
    strategies: dict[str, StrategyResult]  # registration order
    consensus: Action
    agreement_rate: float  # agreeing / non-abstaining
    confidence: float  # mean confidence of the agreeing strategies


class ConsensusEngine:
    """Evaluate registered strategies and fuse their signals.

    Direction:
        1. No signals at all → HOLD, agreement 0, confidence 0.
        2. BUY vs SELL majority among directional signals.
        3. Tie → higher summed confidence.
        4. Still tied → direction of the earliest registered directional
           strategy.
        5. Only HOLD signals → HOLD, agreed by those strategies.
    """

    def __init__(self, strategies: Mapping[str, StrategyProtocol]) -> None:
        self.strategies = dict(strategies)

    def evaluate(self, series: CandleSeries) -> ConsensusResult:
        results: dict[str, StrategyResult] = {}
        for name, strategy in self.strategies.items():
            try:
                results[name] = strategy.evaluate(series)
            except IndicatorError as exc:
                logger.debug("Strategy %s abstained on %s: %s", name, series.symbol, exc)
                results[name] = StrategyResult(strategy_name=name, analysis=str(exc))

        consensus, agreement, confidence = reduce_signals(list(results.values()))
        logger.debug(
            "Consensus %s %s: %s (agreement=%.2f, confidence=%.2f)",
            series.symbol, series.timeframe, consensus.value, agreement, confidence,
        )
        return ConsensusResult(
            symbol=series.symbol,
            timeframe=series.timeframe,
            strategies=results,
            consensus=consensus,
            agreement_rate=agreement,
            confidence=confidence,
        )


def reduce_signals(results: list[StrategyResult]) -> tuple[Action, float, float]:
    """Return ``(consensus, agreement_rate, confidence)`` for ordered results."""
    voting = [r.signal for r in results if r.signal is not None]
    if not voting:
        return Action.HOLD, 0.0, 0.0

    buys = [s for s in voting if s.type is Action.BUY]
    sells = [s for s in voting if s.type is Action.SELL]

    winner: Action
    if not buys and not sells:
        winner = Action.HOLD
    elif len(buys) != len(sells):
        winner = Action.BUY if len(buys) > len(sells) else Action.SELL
    else:
        buy_weight = sum(s.confidence for s in buys)
        sell_weight = sum(s.confidence for s in sells)
        if buy_weight != sell_weight:
            winner = Action.BUY if buy_weight > sell_weight else Action.SELL
        else:
            winner = next(s.type for s in voting if s.type is not Action.HOLD)

    agreeing = [s for s in voting if s.type is winner]
    agreement = len(agreeing) / len(voting)
    confidence = sum(s.confidence for s in agreeing) / len(agreeing)
    return winner, agreement, confidence
