"""Tests for the consensus engine — vote reduction, tie-breaks, abstention."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from signalforge.errors import InsufficientData
from signalforge.indicators.models import Action
from signalforge.market.models import Candle, CandleSeries
from signalforge.strategy.base import StrategyResult, StrategySignal
from signalforge.strategy.consensus import ConsensusEngine, reduce_signals
from signalforge.strategy.registry import default_strategies

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────


def _result(name: str, action: Optional[Action], confidence: float = 0.7) -> StrategyResult:
    if action is None:
        return StrategyResult(strategy_name=name, analysis="No clear signal")
    return StrategyResult(
        strategy_name=name,
        signal=StrategySignal(type=action, price=100.0, confidence=confidence),
    )


class _FixedStrategy:
    """Stand-in strategy returning a canned result."""

    description = "fixed"

    def __init__(self, name: str, action: Optional[Action], confidence: float = 0.7) -> None:
        self.name = name
        self._result = _result(name, action, confidence)

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        return self._result


class _FailingStrategy:
    name = "FAILING"
    description = "always raises"

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        raise InsufficientData("Test", 500, len(series))


def _series(n: int = 30) -> CandleSeries:
    candles = tuple(
        Candle(T0 + timedelta(hours=i), 100.0, 101.0, 99.0, 100.0 + (i % 3) * 0.1, 1000.0)
        for i in range(n)
    )
    return CandleSeries("BTCUSDT", "1h", candles)


# ── Reduction ────────────────────────────────────────────────────────────


class TestReduceSignals:
    def test_nothing_voted_is_hold(self):
        results = [_result("A", None), _result("B", None)]
        assert reduce_signals(results) == (Action.HOLD, 0.0, 0.0)

    def test_empty_input_is_hold(self):
        assert reduce_signals([]) == (Action.HOLD, 0.0, 0.0)

    def test_unanimous_buy_ignores_abstention(self):
        results = [
            _result("A", Action.BUY, 0.8),
            _result("B", Action.BUY, 0.6),
            _result("C", None),
        ]
        consensus, agreement, confidence = reduce_signals(results)
        assert consensus is Action.BUY
        assert agreement == 1.0
        assert confidence == pytest.approx(0.7)

    def test_majority_wins(self):
        results = [
            _result("A", Action.BUY, 0.8),
            _result("B", Action.BUY, 0.6),
            _result("C", Action.SELL, 0.9),
            _result("D", None),
        ]
        consensus, agreement, confidence = reduce_signals(results)
        assert consensus is Action.BUY
        assert agreement == pytest.approx(2 / 3)
        assert confidence == pytest.approx(0.7)

    def test_tie_goes_to_higher_confidence(self):
        results = [_result("A", Action.BUY, 0.6), _result("B", Action.SELL, 0.9)]
        consensus, agreement, confidence = reduce_signals(results)
        assert consensus is Action.SELL
        assert agreement == 0.5
        assert confidence == 0.9

    def test_exact_tie_goes_to_first_registered(self):
        results = [_result("A", Action.SELL, 0.7), _result("B", Action.BUY, 0.7)]
        assert reduce_signals(results)[0] is Action.SELL

    def test_hold_signals_alone_agree_on_hold(self):
        results = [_result("A", Action.HOLD, 0.5), _result("B", None)]
        assert reduce_signals(results) == (Action.HOLD, 1.0, 0.5)

    def test_hold_votes_dilute_agreement(self):
        results = [_result("A", Action.BUY, 0.8), _result("B", Action.HOLD, 0.5)]
        consensus, agreement, confidence = reduce_signals(results)
        assert consensus is Action.BUY
        assert agreement == 0.5
        assert confidence == 0.8

    @pytest.mark.parametrize("votes", [
        [Action.BUY],
        [Action.BUY, Action.SELL, None],
        [Action.SELL, Action.SELL, Action.BUY, Action.HOLD],
        [None, None, Action.HOLD],
    ])
    def test_rates_stay_in_unit_interval(self, votes):
        results = [_result(str(i), v, 0.4 + 0.1 * i) for i, v in enumerate(votes)]
        _, agreement, confidence = reduce_signals(results)
        assert 0.0 <= agreement <= 1.0
        assert 0.0 <= confidence <= 1.0


# ── Engine ───────────────────────────────────────────────────────────────


class TestConsensusEngine:
    def test_results_keep_registration_order(self):
        engine = ConsensusEngine({
            "B": _FixedStrategy("B", Action.BUY),
            "A": _FixedStrategy("A", None),
        })
        result = engine.evaluate(_series())
        assert list(result.strategies) == ["B", "A"]
        assert result.symbol == "BTCUSDT"
        assert result.timeframe == "1h"
        assert result.consensus is Action.BUY
        assert result.agreement_rate == 1.0

    def test_failing_strategy_abstains(self):
        engine = ConsensusEngine({
            "FAILING": _FailingStrategy(),
            "SELLER": _FixedStrategy("SELLER", Action.SELL, 0.8),
        })
        result = engine.evaluate(_series())
        assert result.strategies["FAILING"].abstained
        assert "Need at least 500" in result.strategies["FAILING"].analysis
        assert result.consensus is Action.SELL
        assert result.confidence == 0.8

    def test_short_series_with_real_strategies_holds(self):
        result = ConsensusEngine(default_strategies()).evaluate(_series(10))
        assert all(r.abstained for r in result.strategies.values())
        assert (result.consensus, result.agreement_rate, result.confidence) == (
            Action.HOLD, 0.0, 0.0,
        )

    def test_evaluation_is_repeatable(self):
        engine = ConsensusEngine(default_strategies())
        series = _series(60)
        assert engine.evaluate(series) == engine.evaluate(series)
