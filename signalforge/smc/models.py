"""Smart-money result records and detector configuration."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Bias(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


class StructureKind(str, Enum):
    CHOCH = "CHoCH"
    BOS = "BoS"


class SwingKind(str, Enum):
    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True)
class SmartMoneyConfig:
    """Tunable heuristics of the detector.

    swing_window          candles that must fail to exceed an extreme
                          before it is confirmed as a swing
    atr_period            trailing window (true ranges) for the impulse test
    impulse_atr_multiple  impulse candle range ≥ this × trailing ATR
    impulse_body_ratio    impulse candle body ≥ this × its range
    order_block_lookback  how far back to look for the opposite candle
    bin_count             volume-profile price bins
    value_area_pct        share of volume the value area must hold
    """

    swing_window: int = 3
    atr_period: int = 14
    impulse_atr_multiple: float = 1.5
    impulse_body_ratio: float = 0.5
    order_block_lookback: int = 5
    bin_count: int = 24
    value_area_pct: float = 0.70

    def __post_init__(self) -> None:
        for name in ("swing_window", "atr_period", "order_block_lookback", "bin_count"):
            value = getattr(self, name)
            if isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.impulse_atr_multiple <= 0:
            raise ValueError("impulse_atr_multiple must be positive")
        if not 0 < self.impulse_body_ratio <= 1:
            raise ValueError("impulse_body_ratio must be in (0, 1]")
        if not 0 < self.value_area_pct <= 1:
            raise ValueError("value_area_pct must be in (0, 1]")


@dataclass(frozen=True)
class SwingPoint:
    time: datetime
    price: float
    kind: SwingKind
    index: int  # position in the scanned series


@dataclass(frozen=True)
class OrderBlock:
    time: datetime
    low: float
    high: float
    type: Bias
    strength: float  # 0..100


@dataclass(frozen=True)
class FairValueGap:
    time: datetime  # middle candle of the triple
    low: float
    high: float
    type: Bias


@dataclass(frozen=True)
class LiquiditySweep:
    time: datetime  # candle whose wick pierced the level
    price: float  # the swept swing price
    type: Bias  # bullish = swept lows, bearish = swept highs


@dataclass(frozen=True)
class StructureChange:
    time: datetime
    type: StructureKind
    direction: Bias
    price: float  # the broken swing level


@dataclass(frozen=True)
class VolumeProfile:
    poc: float
    value_area_high: float
    value_area_low: float
    bins: tuple[tuple[float, float, float], ...]  # (low edge, high edge, volume)
    total_volume: float
    value_area_volume: float
    hvn_levels: tuple[float, ...] = ()
    lvn_levels: tuple[float, ...] = ()


@dataclass(frozen=True)
class SmartMoneyResult:
    order_blocks: tuple[OrderBlock, ...] = ()
    fair_value_gaps: tuple[FairValueGap, ...] = ()
    liquidity_sweeps: tuple[LiquiditySweep, ...] = ()
    structure_changes: tuple[StructureChange, ...] = ()
    swing_highs: tuple[SwingPoint, ...] = ()
    swing_lows: tuple[SwingPoint, ...] = ()
    volume_profile: Optional[VolumeProfile] = field(default=None)

    @property
    def structure_change(self) -> Optional[StructureChange]:
        return self.structure_changes[-1] if self.structure_changes else None

    @property
    def poc(self) -> Optional[float]:
        return self.volume_profile.poc if self.volume_profile else None

    @property
    def value_area_high(self) -> Optional[float]:
        return self.volume_profile.value_area_high if self.volume_profile else None

    @property
    def value_area_low(self) -> Optional[float]:
        return self.volume_profile.value_area_low if self.volume_profile else None
