"""Tests for signalforge.market.models — candle and series validation."""

from datetime import datetime, timedelta, timezone

import pytest

from signalforge.errors import IndicatorError, InsufficientData, InvalidParameter
from signalforge.market.models import Candle, CandleSeries

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _c(i: int, o: float, h: float, l: float, c: float, v: float = 1000.0) -> Candle:
    return Candle(T0 + timedelta(hours=i), o, h, l, c, v)


class TestCandle:
    def test_derived_properties(self):
        candle = _c(0, 100.0, 110.0, 95.0, 105.0)
        assert candle.body == 5.0
        assert candle.range == 15.0
        assert candle.typical_price == pytest.approx((110 + 95 + 105) / 3)
        assert candle.is_bullish
        assert not candle.is_bearish

    def test_doji_is_neither_bullish_nor_bearish(self):
        candle = _c(0, 100.0, 101.0, 99.0, 100.0)
        assert not candle.is_bullish
        assert not candle.is_bearish

    def test_high_below_low_rejected(self):
        with pytest.raises(InvalidParameter, match="below low"):
            _c(0, 100.0, 99.0, 101.0, 100.0)

    def test_negative_volume_rejected(self):
        with pytest.raises(InvalidParameter, match="volume"):
            _c(0, 100.0, 101.0, 99.0, 100.0, v=-1.0)


class TestCandleSeries:
    def test_list_is_coerced_to_tuple(self):
        series = CandleSeries("BTCUSDT", "1h", [_c(0, 1, 2, 0.5, 1.5), _c(1, 1.5, 2, 1, 1.8)])
        assert isinstance(series.candles, tuple)
        assert len(series) == 2
        assert series.last.close == 1.8
        assert series.closes == [1.5, 1.8]

    def test_duplicate_timestamp_rejected(self):
        with pytest.raises(InvalidParameter, match="strictly increasing"):
            CandleSeries("BTCUSDT", "1h", (_c(0, 1, 2, 0.5, 1.5), _c(0, 1, 2, 0.5, 1.5)))

    def test_out_of_order_rejected(self):
        with pytest.raises(InvalidParameter):
            CandleSeries("BTCUSDT", "1h", (_c(2, 1, 2, 0.5, 1.5), _c(1, 1, 2, 0.5, 1.5)))

    def test_gaps_are_allowed(self):
        series = CandleSeries("BTCUSDT", "1h", (_c(0, 1, 2, 0.5, 1.5), _c(10, 1, 2, 0.5, 1.5)))
        assert len(series) == 2

    def test_tail(self):
        series = CandleSeries("BTCUSDT", "1h", tuple(_c(i, 1, 2, 0.5, i + 1.0) for i in range(10)))
        tail = series.tail(3)
        assert tail.closes == [8.0, 9.0, 10.0]
        assert tail.symbol == "BTCUSDT"

    def test_last_on_empty_series(self):
        with pytest.raises(InvalidParameter, match="empty"):
            CandleSeries("BTCUSDT", "1h", ()).last


class TestFromRows:
    def test_mapping_rows_with_iso_timestamps(self):
        series = CandleSeries.from_rows("ETHUSDT", "4h", [
            {"timestamp": "2025-01-01T00:00:00Z", "open": 1, "high": 2, "low": 0.5, "close": 1.5, "volume": 10},
            {"timestamp": "2025-01-01T04:00:00Z", "open": 1.5, "high": 2.5, "low": 1, "close": 2, "volume": 12},
        ])
        assert series[0].timestamp == T0
        assert series[1].volume == 12.0

    def test_tuple_rows_with_epoch_millis(self):
        ms = int(T0.timestamp() * 1000)
        series = CandleSeries.from_rows("ETHUSDT", "1h", [
            (ms, 1, 2, 0.5, 1.5, 10),
            (ms + 3_600_000, 1.5, 2.5, 1, 2, 12),
        ])
        assert series[0].timestamp == T0
        assert series[1].timestamp == T0 + timedelta(hours=1)


class TestErrorTaxonomy:
    def test_insufficient_data_message(self):
        err = InsufficientData("RSI(14)", 15, 3)
        assert str(err) == "Need at least 15 candles for RSI(14), got 3"
        assert err.required == 15 and err.got == 3

    def test_all_errors_are_value_errors(self):
        assert issubclass(IndicatorError, ValueError)
        assert issubclass(InvalidParameter, IndicatorError)
