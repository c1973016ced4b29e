"""Indicator result types — typed records plus their closed category enums.

Enum values are the exact strings the presentation layer expects.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OscillatorSignal(str, Enum):
    OVERSOLD = "OVERSOLD"
    OVERBOUGHT = "OVERBOUGHT"
    NEUTRAL = "NEUTRAL"


class TrendBias(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class RibbonAlignment(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    MIXED = "MIXED"


class BandPosition(str, Enum):
    ABOVE_UPPER = "ABOVE_UPPER"
    BETWEEN = "BETWEEN"
    BELOW_LOWER = "BELOW_LOWER"


class Volatility(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class VWAPPosition(str, Enum):
    ABOVE_VWAP = "ABOVE_VWAP"
    BELOW_VWAP = "BELOW_VWAP"
    AT_VWAP = "AT_VWAP"


class TrendDirection(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class Action(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class RatedSignal(str, Enum):
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    NEUTRAL = "NEUTRAL"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"

    @property
    def is_buy(self) -> bool:
        return self in (RatedSignal.BUY, RatedSignal.STRONG_BUY)

    @property
    def is_sell(self) -> bool:
        return self in (RatedSignal.SELL, RatedSignal.STRONG_SELL)


class CloudColor(str, Enum):
    GREEN = "GREEN"
    RED = "RED"


class CloudLocation(str, Enum):
    ABOVE_CLOUD = "ABOVE_CLOUD"
    IN_CLOUD = "IN_CLOUD"
    BELOW_CLOUD = "BELOW_CLOUD"


class TrendStrength(str, Enum):
    STRONG_TREND = "STRONG_TREND"
    WEAK_TREND = "WEAK_TREND"
    NO_TREND = "NO_TREND"


# ── Result records ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class IndicatorResult:
    """Fields shared by every indicator result."""

    symbol: str
    timeframe: str
    timestamp: datetime  # timestamp of the evaluated (latest) candle


@dataclass(frozen=True)
class RSIResult(IndicatorResult):
    value: float
    period: int
    signal: OscillatorSignal


@dataclass(frozen=True)
class MACDResult(IndicatorResult):
    macd: float
    signal: float
    histogram: float
    trend: TrendBias


@dataclass(frozen=True)
class EMAResult(IndicatorResult):
    value: float
    period: int


@dataclass(frozen=True)
class EMARibbonResult(IndicatorResult):
    ema5: float
    ema10: float
    ema20: float
    ema50: float
    ema200: float
    alignment: RibbonAlignment


@dataclass(frozen=True)
class BollingerBandsResult(IndicatorResult):
    upper: float
    middle: float
    lower: float
    current_price: float
    position: BandPosition


@dataclass(frozen=True)
class ATRResult(IndicatorResult):
    value: float
    period: int
    volatility: Volatility


@dataclass(frozen=True)
class VWAPResult(IndicatorResult):
    vwap: float
    current_price: float
    deviation: float  # % above (+) / below (-) VWAP
    signal: VWAPPosition


@dataclass(frozen=True)
class StochRSIResult(IndicatorResult):
    stoch_rsi: float
    k: float  # smoothed %K
    d: float  # %D, SMA of %K
    signal: OscillatorSignal


@dataclass(frozen=True)
class OBVResult(IndicatorResult):
    obv: float
    obv_ema: float
    trend: TrendBias


@dataclass(frozen=True)
class SupertrendResult(IndicatorResult):
    supertrend: float
    direction: TrendDirection
    current_price: float
    signal: Action


@dataclass(frozen=True)
class PivotPointsResult(IndicatorResult):
    pivot: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float
    current_price: float
    nearest_level: str


@dataclass(frozen=True)
class FibonacciLevels:
    level0: float
    level236: float
    level382: float
    level500: float
    level618: float
    level786: float
    level1000: float


@dataclass(frozen=True)
class FibonacciResult(IndicatorResult):
    high: float
    low: float
    levels: FibonacciLevels
    current_price: float
    nearest_level: str


@dataclass(frozen=True)
class IchimokuResult(IndicatorResult):
    tenkan_sen: float
    kijun_sen: float
    senkou_span_a: float
    senkou_span_b: float
    chikou_span: float
    cloud_top: float
    cloud_bottom: float
    current_price: float
    signal: RatedSignal
    cloud_color: CloudColor
    price_location: CloudLocation


@dataclass(frozen=True)
class ADXResult(IndicatorResult):
    adx: float
    plus_di: float
    minus_di: float
    trend: TrendStrength
    direction: TrendBias


@dataclass(frozen=True)
class CCIResult(IndicatorResult):
    value: float
    signal: OscillatorSignal


@dataclass(frozen=True)
class WilliamsRResult(IndicatorResult):
    value: float
    signal: OscillatorSignal


@dataclass(frozen=True)
class MFIResult(IndicatorResult):
    value: float
    signal: OscillatorSignal


@dataclass(frozen=True)
class VolumeAnalysis(IndicatorResult):
    current_volume: float
    avg_volume: float
    volume_ratio: float
    is_significant: bool
