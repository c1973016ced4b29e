"""Tests for the consensus strategies — scoring, abstention, risk levels, registry."""

from datetime import datetime, timedelta, timezone

import pytest

from signalforge.errors import InvalidParameter
from signalforge.indicators.models import (
    Action,
    EMARibbonResult,
    MACDResult,
    OscillatorSignal,
    RibbonAlignment,
    RSIResult,
    TrendBias,
    VolumeAnalysis,
)
from signalforge.market.models import Candle, CandleSeries
from signalforge.smc.models import (
    Bias,
    FairValueGap,
    LiquiditySweep,
    OrderBlock,
    SmartMoneyResult,
    StructureChange,
    StructureKind,
    VolumeProfile,
)
from signalforge.strategy.base import StrategyProtocol, StrategySignal, scored_confidence
from signalforge.strategy.ema_ribbon import EMARibbonStrategy, evaluate_ema_ribbon
from signalforge.strategy.macd_rsi import MACDRSIStrategy, evaluate_macd_rsi
from signalforge.strategy.order_flow import (
    DeltaVolume,
    OrderFlow,
    OrderFlowStrategy,
    OrderFlowType,
    calculate_delta_volume,
    classify_order_flow,
    evaluate_order_flow,
)
from signalforge.strategy.registry import STRATEGY_REGISTRY, default_strategies, get_strategy
from signalforge.strategy.rsi_volume import RSIVolumeStrategy, evaluate_rsi_volume
from signalforge.strategy.smart_money import SmartMoneyStrategy, evaluate_smart_money_setup

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
_BASE = dict(symbol="BTCUSDT", timeframe="1h", timestamp=T0)


# ── Helpers ──────────────────────────────────────────────────────────────


def _t(i: int) -> datetime:
    return T0 + timedelta(hours=i)


def _c(i: int, o: float, h: float, l: float, c: float, v: float = 1000.0) -> Candle:
    return Candle(_t(i), o, h, l, c, v)


def _rsi(value: float) -> RSIResult:
    if value <= 30:
        signal = OscillatorSignal.OVERSOLD
    elif value >= 70:
        signal = OscillatorSignal.OVERBOUGHT
    else:
        signal = OscillatorSignal.NEUTRAL
    return RSIResult(**_BASE, value=value, period=14, signal=signal)


def _volume(ratio: float) -> VolumeAnalysis:
    return VolumeAnalysis(
        **_BASE, current_volume=ratio * 1000, avg_volume=1000.0,
        volume_ratio=ratio, is_significant=ratio > 1.5,
    )


def _macd(trend: TrendBias, histogram: float) -> MACDResult:
    return MACDResult(**_BASE, macd=histogram * 2, signal=histogram, histogram=histogram, trend=trend)


def _ribbon(alignment: RibbonAlignment, *emas: float) -> EMARibbonResult:
    ema5, ema10, ema20, ema50, ema200 = emas
    return EMARibbonResult(
        **_BASE, ema5=ema5, ema10=ema10, ema20=ema20, ema50=ema50, ema200=ema200,
        alignment=alignment,
    )


def _short_series(n: int = 5) -> CandleSeries:
    return CandleSeries("BTCUSDT", "1h", tuple(_c(i, 100, 101, 99, 100) for i in range(n)))


# ── Shared types ─────────────────────────────────────────────────────────


class TestSignalTypes:
    def test_confidence_must_be_in_unit_interval(self):
        with pytest.raises(InvalidParameter):
            StrategySignal(type=Action.BUY, price=100.0, confidence=0.0)
        with pytest.raises(InvalidParameter):
            StrategySignal(type=Action.BUY, price=100.0, confidence=1.2)

    def test_score_is_capped(self):
        assert scored_confidence(120) == 0.95
        assert scored_confidence(65) == 0.65


# ── RSI + volume ─────────────────────────────────────────────────────────


class TestRSIVolume:
    def test_oversold_with_volume_spike_buys(self):
        result = evaluate_rsi_volume(_rsi(25.0), _volume(2.0), 100.0)
        signal = result.signal
        assert signal.type is Action.BUY
        assert signal.confidence == pytest.approx(0.85)
        assert signal.stop_loss == pytest.approx(98.0)
        assert signal.take_profit == pytest.approx(104.0)
        assert signal.metadata["rsiSignal"] == "OVERSOLD"
        assert not result.should_exit

    def test_extreme_reading_adds_confidence(self):
        result = evaluate_rsi_volume(_rsi(15.0), _volume(2.0), 100.0)
        assert result.signal.confidence == pytest.approx(0.95)

    def test_overbought_with_moderate_volume_sells(self):
        result = evaluate_rsi_volume(_rsi(75.0), _volume(1.3), 100.0)
        signal = result.signal
        assert signal.type is Action.SELL
        assert signal.confidence == pytest.approx(0.75)
        assert signal.stop_loss == pytest.approx(102.0)
        assert signal.take_profit == pytest.approx(96.0)

    def test_extreme_without_volume_abstains(self):
        result = evaluate_rsi_volume(_rsi(25.0), _volume(1.0), 100.0)
        assert result.abstained
        assert "Low volume" in result.analysis

    def test_reading_on_the_line_does_not_trade(self):
        # classified OVERSOLD/OVERBOUGHT, but entries need a strict breach
        for value in (30.0, 70.0):
            result = evaluate_rsi_volume(_rsi(value), _volume(2.0), 100.0)
            assert result.abstained
            assert "No clear signal" in result.analysis

    def test_neutral_rsi_hints_exit(self):
        result = evaluate_rsi_volume(_rsi(50.0), _volume(3.0), 100.0)
        assert result.abstained
        assert result.should_exit

    def test_short_series_abstains(self):
        result = RSIVolumeStrategy().evaluate(_short_series())
        assert result.abstained
        assert "Need at least" in result.analysis


# ── EMA ribbon ───────────────────────────────────────────────────────────


class TestEMARibbon:
    def test_price_above_bullish_ribbon_buys(self):
        ribbon = _ribbon(RibbonAlignment.BULLISH, 105, 104, 103, 100, 90)
        result = evaluate_ema_ribbon(ribbon, _macd(TrendBias.BULLISH, 0.5), 110.0)
        signal = result.signal
        assert signal.type is Action.BUY
        assert signal.confidence == 0.95
        assert signal.stop_loss == pytest.approx(100.0)
        assert signal.take_profit == pytest.approx(140.0)
        assert signal.metadata["priceAboveAllEmas"] is True

    def test_missing_macd_is_reported_unknown(self):
        ribbon = _ribbon(RibbonAlignment.BULLISH, 105, 104, 103, 100, 90)
        result = evaluate_ema_ribbon(ribbon, None, 110.0)
        assert result.signal.confidence == pytest.approx(0.90)
        assert result.signal.metadata["macdTrend"] == "UNKNOWN"

    def test_price_below_bearish_ribbon_sells(self):
        ribbon = _ribbon(RibbonAlignment.BEARISH, 95, 96, 97, 100, 110)
        signal = evaluate_ema_ribbon(ribbon, None, 90.0).signal
        assert signal.type is Action.SELL
        assert signal.stop_loss == pytest.approx(100.0)
        assert signal.take_profit == pytest.approx(60.0)

    def test_mixed_alignment_exits_without_signal(self):
        ribbon = _ribbon(RibbonAlignment.MIXED, 101, 100, 102, 99, 98)
        result = evaluate_ema_ribbon(ribbon, None, 103.0)
        assert result.abstained
        assert result.should_exit
        assert "Early bullish crossover" in result.analysis

    def test_short_series_abstains(self):
        assert EMARibbonStrategy().evaluate(_short_series()).abstained


# ── MACD + RSI ───────────────────────────────────────────────────────────


class TestMACDRSI:
    def test_bullish_macd_in_buy_zone(self):
        result = evaluate_macd_rsi(_macd(TrendBias.BULLISH, 0.5), _rsi(40.0), None, 100.0)
        signal = result.signal
        assert signal.type is Action.BUY
        assert signal.confidence == pytest.approx(0.90)
        assert signal.stop_loss == pytest.approx(97.5)
        assert signal.take_profit == pytest.approx(105.0)
        assert signal.metadata["volumeRatio"] == 0.0

    def test_stretched_rsi_blocks_entry(self):
        result = evaluate_macd_rsi(_macd(TrendBias.BULLISH, 0.5), _rsi(70.0), None, 100.0)
        assert result.abstained
        assert "risky entry" in result.analysis

    def test_bearish_macd_in_sell_zone(self):
        result = evaluate_macd_rsi(
            _macd(TrendBias.BEARISH, -0.5), _rsi(60.0), _volume(2.0), 100.0
        )
        assert result.signal.type is Action.SELL
        assert result.signal.confidence == pytest.approx(0.95)

    def test_extreme_rsi_hints_exit(self):
        result = evaluate_macd_rsi(_macd(TrendBias.NEUTRAL, 0.0), _rsi(80.0), None, 100.0)
        assert result.abstained
        assert result.should_exit

    def test_short_series_abstains(self):
        assert MACDRSIStrategy().evaluate(_short_series()).abstained


# ── Smart money ──────────────────────────────────────────────────────────


def _smc(
    sweep_time: datetime = _t(5),
    structure: StructureKind = StructureKind.CHOCH,
) -> SmartMoneyResult:
    return SmartMoneyResult(
        order_blocks=(OrderBlock(_t(3), 96.0, 98.0, Bias.BULLISH, 80.0),),
        fair_value_gaps=(FairValueGap(_t(4), 99.0, 101.0, Bias.BULLISH),),
        liquidity_sweeps=(LiquiditySweep(sweep_time, 95.0, Bias.BULLISH),),
        structure_changes=(StructureChange(_t(6), structure, Bias.BULLISH, 99.0),),
    )


class TestSmartMoney:
    def test_full_bullish_setup_buys(self):
        result = evaluate_smart_money_setup(100.0, _smc(), _rsi(35.0), _volume(3.0), _t(0))
        signal = result.signal
        assert signal.type is Action.BUY
        assert signal.confidence == 0.95
        assert signal.stop_loss == pytest.approx(96.0 * (1 - 0.018))
        assert signal.take_profit == pytest.approx(105.4)
        assert signal.metadata["structureChange"] == "CHoCH"
        assert not result.should_exit

    def test_setup_without_institutional_volume_abstains(self):
        result = evaluate_smart_money_setup(100.0, _smc(), _rsi(35.0), _volume(2.0), _t(0))
        assert result.abstained
        assert "Liquidity sweep detected" in result.analysis

    def test_stale_sweep_is_ignored(self):
        result = evaluate_smart_money_setup(100.0, _smc(), _rsi(35.0), _volume(3.0), _t(10))
        assert result.abstained
        assert result.analysis.startswith("No Smart Money setup")

    def test_break_of_structure_is_not_a_reversal(self):
        result = evaluate_smart_money_setup(
            100.0, _smc(structure=StructureKind.BOS), _rsi(35.0), _volume(3.0), _t(0)
        )
        assert result.abstained

    def test_no_structure_hints_exit(self):
        result = evaluate_smart_money_setup(100.0, SmartMoneyResult(), None, None, _t(0))
        assert result.abstained
        assert result.should_exit

    def test_short_series_abstains(self):
        result = SmartMoneyStrategy().evaluate(_short_series(20))
        assert result.abstained
        assert result.analysis == "Insufficient data for Smart Money analysis"

    def test_uses_injected_detector(self):
        candles = [_c(i, 100, 101, 99, 100) for i in range(59)]
        candles.append(_c(59, 100, 101, 99, 100.5, v=3000.0))
        series = CandleSeries("BTCUSDT", "1h", tuple(candles))

        class _FixedDetector:
            def scan(self, series):
                return _smc(sweep_time=series.candles[-2].timestamp)

        result = SmartMoneyStrategy(detector=_FixedDetector()).evaluate(series)
        assert result.signal.type is Action.BUY
        assert result.signal.metadata["volumeRatio"] == pytest.approx(3.0)


# ── Order flow ───────────────────────────────────────────────────────────


class TestDeltaVolume:
    def test_all_buying_is_bullish(self):
        candles = [_c(i, 100, 101, 99, 100.5, v=100.0) for i in range(20)]
        assert calculate_delta_volume(candles) == DeltaVolume(2000.0, TrendBias.BULLISH)

    def test_balanced_flow_is_neutral(self):
        candles = [_c(i, 100, 101, 99, 100.5) for i in range(11)]
        candles += [_c(i, 100.5, 101, 99, 100) for i in range(11, 20)]
        delta = calculate_delta_volume(candles)
        assert delta.delta == 2000.0
        assert delta.bias is TrendBias.NEUTRAL

    def test_only_last_twenty_candles_count(self):
        candles = [_c(i, 100.5, 101, 99, 100, v=10_000.0) for i in range(10)]
        candles += [_c(i, 100, 101, 99, 100.5) for i in range(10, 30)]
        assert calculate_delta_volume(candles).bias is TrendBias.BULLISH


class TestOrderFlowClassification:
    _prev = _c(0, 100.0, 101.0, 99.0, 100.5)

    def test_absorption_of_selling(self):
        flow = classify_order_flow([self._prev, _c(1, 100.0, 102.0, 98.0, 101.5, v=2000.0)])
        assert flow.type is OrderFlowType.ABSORPTION_SELLING
        assert flow.strength == 85

    def test_absorption_of_buying(self):
        flow = classify_order_flow([self._prev, _c(1, 101.0, 102.0, 98.5, 100.0, v=2000.0)])
        assert flow.type is OrderFlowType.ABSORPTION_BUYING

    def test_exhaustion(self):
        flow = classify_order_flow([self._prev, _c(1, 100.0, 103.0, 97.0, 100.2, v=2500.0)])
        assert flow.type is OrderFlowType.EXHAUSTION
        assert flow.strength == 70

    def test_quiet_candle_is_neutral(self):
        flow = classify_order_flow([self._prev, _c(1, 100.0, 101.0, 99.0, 100.5)])
        assert flow.type is OrderFlowType.NEUTRAL


def _profile(poc: float = 105.0, hvn=(99.0, 110.0)) -> VolumeProfile:
    return VolumeProfile(
        poc=poc, value_area_high=107.0, value_area_low=103.0, bins=(),
        total_volume=1.0, value_area_volume=1.0, hvn_levels=hvn,
    )


class TestOrderFlowSetup:
    def test_buying_below_poc_with_absorption(self):
        flow = OrderFlow(OrderFlowType.ABSORPTION_SELLING, 85, "absorption")
        result = evaluate_order_flow(
            100.0, _profile(), DeltaVolume(5000.0, TrendBias.BULLISH), flow, _rsi(50.0), None
        )
        signal = result.signal
        assert signal.type is Action.BUY
        assert signal.confidence == 0.95
        assert signal.stop_loss == pytest.approx(98.0)
        assert signal.take_profit == 110.0
        assert signal.metadata["hvnCount"] == 2

    def test_take_profit_falls_back_without_hvn_above(self):
        flow = OrderFlow(OrderFlowType.ABSORPTION_SELLING, 85, "absorption")
        result = evaluate_order_flow(
            100.0, _profile(hvn=()), DeltaVolume(5000.0, TrendBias.BULLISH), flow, None, None
        )
        assert result.signal.take_profit == pytest.approx(105.0)

    def test_neutral_delta_abstains_and_exits(self):
        flow = OrderFlow(OrderFlowType.ABSORPTION_SELLING, 85, "absorption")
        result = evaluate_order_flow(
            100.0, _profile(), DeltaVolume(0.0, TrendBias.NEUTRAL), flow, None, None
        )
        assert result.abstained
        assert result.should_exit

    def test_zero_price_abstains(self):
        flow = OrderFlow(OrderFlowType.ABSORPTION_SELLING, 85, "absorption")
        result = evaluate_order_flow(
            0.0, _profile(), DeltaVolume(5000.0, TrendBias.BULLISH), flow, None, None
        )
        assert result.abstained
        assert "Non-positive price" in result.analysis

    def test_strategy_on_series(self):
        candles = [_c(i, 105.0, 105.5, 104.8, 105.2) for i in range(30)]
        for k in range(18):
            o = 104.0 - 0.2 * k
            candles.append(_c(30 + k, o, o + 0.2, o - 0.1, o + 0.05, v=100.0))
        candles.append(_c(48, 100.4, 100.6, 100.3, 100.45, v=100.0))
        candles.append(_c(49, 100.2, 101.0, 99.8, 100.9, v=500.0))
        series = CandleSeries("BTCUSDT", "1h", tuple(candles))

        result = OrderFlowStrategy().evaluate(series)
        assert result.signal.type is Action.BUY
        assert result.signal.metadata["orderFlowType"] == "ABSORPTION_SELLING"
        assert result.signal.metadata["deltaSignal"] == "BULLISH"

    def test_zero_last_close_on_series_abstains(self):
        candles = [_c(i, 105.0, 105.5, 104.8, 105.2) for i in range(49)]
        candles.append(_c(49, 105.0, 105.5, 0.0, 0.0, v=500.0))
        result = OrderFlowStrategy().evaluate(CandleSeries("BTCUSDT", "1h", tuple(candles)))
        assert result.abstained

    def test_short_series_abstains(self):
        assert OrderFlowStrategy().evaluate(_short_series(20)).abstained


# ── Registry ─────────────────────────────────────────────────────────────


class TestRegistry:
    def test_registration_order(self):
        assert list(STRATEGY_REGISTRY) == [
            "SMART_MONEY", "ORDER_FLOW", "RSI_VOLUME", "EMA_RIBBON", "MACD_RSI",
        ]

    def test_get_strategy(self):
        strategy = get_strategy("RSI_VOLUME")
        assert isinstance(strategy, RSIVolumeStrategy)
        assert isinstance(strategy, StrategyProtocol)

    def test_unknown_strategy(self):
        with pytest.raises(KeyError, match="Unknown strategy 'NOPE'"):
            get_strategy("NOPE")

    def test_default_strategies_are_fresh_instances(self):
        first, second = default_strategies(), default_strategies()
        assert list(first) == list(STRATEGY_REGISTRY)
        assert first["SMART_MONEY"] is not second["SMART_MONEY"]
        for name, strategy in first.items():
            assert strategy.name == name
