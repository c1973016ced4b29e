"""Smart-money detector — one forward pass over a candle series.

Per candle, in order:
    1. Resolve a pending level break from the previous candle.
    2. Test the latest confirmed swing levels for a sweep or a break.
    3. Emit a fair-value gap for the triple ending at this candle.
    4. Tag an order block if this candle is an impulse.
    5. Feed the candle to the swing tracker.

Levels are tested against the swings confirmed *before* the current
candle.  All state lives in the scan; the detector itself is reusable.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

from signalforge.market.models import Candle, CandleSeries
from signalforge.smc.models import (
    Bias,
    FairValueGap,
    LiquiditySweep,
    OrderBlock,
    SmartMoneyConfig,
    SmartMoneyResult,
    StructureChange,
    StructureKind,
    SwingKind,
    SwingPoint,
)
from signalforge.smc.swings import SwingTracker
from signalforge.smc.volume_profile import build_volume_profile

logger = logging.getLogger("signalforge.smc")


@dataclass
class _PendingBreak:
    swing: SwingPoint
    candle: Candle  # the candle that closed beyond the level


class _ScanState:
    def __init__(self, config: SmartMoneyConfig) -> None:
        self.config = config
        self.tracker = SwingTracker(config.swing_window)
        self.level_high: Optional[SwingPoint] = None
        self.level_low: Optional[SwingPoint] = None
        self.pending: list[_PendingBreak] = []
        self.prevailing: Optional[Bias] = None
        self.true_ranges: deque[float] = deque(maxlen=config.atr_period)
        self.tagged: set[int] = set()

        self.order_blocks: list[OrderBlock] = []
        self.fvgs: list[FairValueGap] = []
        self.sweeps: list[LiquiditySweep] = []
        self.structure: list[StructureChange] = []
        self.swing_highs: list[SwingPoint] = []
        self.swing_lows: list[SwingPoint] = []


class SmartMoneyDetector:
    """Detect order blocks, FVGs, sweeps, structure changes and the volume profile."""

    def __init__(self, config: Optional[SmartMoneyConfig] = None) -> None:
        self.config = config or SmartMoneyConfig()

    def scan(self, series: CandleSeries) -> SmartMoneyResult:
        cfg = self.config
        minimum = 2 * cfg.swing_window + 1
        if len(series) < minimum:
            logger.debug(
                "SMC scan skipped for %s %s: %d candles, need %d",
                series.symbol, series.timeframe, len(series), minimum,
            )
            return SmartMoneyResult()

        state = _ScanState(cfg)
        candles = series.candles
        for i, candle in enumerate(candles):
            self._resolve_pending(state, candle)
            self._test_levels(state, candle)
            if i >= 2:
                self._fair_value_gap(state, candles[i - 2], candle, candles[i - 1])
            self._order_block(state, candles, i)

            for swing in state.tracker.update(candle):
                if swing.kind is SwingKind.HIGH:
                    state.swing_highs.append(swing)
                    state.level_high = swing
                else:
                    state.swing_lows.append(swing)
                    state.level_low = swing

        # A break still awaiting confirmation at the end of the stream stands.
        for pending in state.pending:
            self._record_break(state, pending)
        state.pending.clear()

        return SmartMoneyResult(
            order_blocks=tuple(state.order_blocks),
            fair_value_gaps=tuple(state.fvgs),
            liquidity_sweeps=tuple(state.sweeps),
            structure_changes=tuple(state.structure),
            swing_highs=tuple(state.swing_highs),
            swing_lows=tuple(state.swing_lows),
            volume_profile=build_volume_profile(
                candles, cfg.bin_count, cfg.value_area_pct
            ),
        )

    # ── liquidity sweeps & structure ─────────────────────────────────────

    def _resolve_pending(self, state: _ScanState, candle: Candle) -> None:
        for pending in state.pending:
            level = pending.swing
            if level.kind is SwingKind.LOW:
                recovered = candle.close > level.price
            else:
                recovered = candle.close < level.price
            if recovered:
                state.sweeps.append(self._sweep(level, pending.candle))
            else:
                self._record_break(state, pending)
        state.pending.clear()

    def _test_levels(self, state: _ScanState, candle: Candle) -> None:
        low = state.level_low
        if low is not None and candle.low < low.price:
            state.level_low = None
            if candle.close > low.price:
                state.sweeps.append(self._sweep(low, candle))
            else:
                state.pending.append(_PendingBreak(low, candle))

        high = state.level_high
        if high is not None and candle.high > high.price:
            state.level_high = None
            if candle.close < high.price:
                state.sweeps.append(self._sweep(high, candle))
            else:
                state.pending.append(_PendingBreak(high, candle))

    @staticmethod
    def _sweep(level: SwingPoint, candle: Candle) -> LiquiditySweep:
        # Sweeping lows is bullish, sweeping highs bearish.
        bias = Bias.BULLISH if level.kind is SwingKind.LOW else Bias.BEARISH
        return LiquiditySweep(time=candle.timestamp, price=level.price, type=bias)

    @staticmethod
    def _record_break(state: _ScanState, pending: _PendingBreak) -> None:
        direction = Bias.BULLISH if pending.swing.kind is SwingKind.HIGH else Bias.BEARISH
        if state.prevailing is not None and direction is not state.prevailing:
            kind = StructureKind.CHOCH
        else:
            kind = StructureKind.BOS
        state.prevailing = direction
        state.structure.append(
            StructureChange(
                time=pending.candle.timestamp,
                type=kind,
                direction=direction,
                price=pending.swing.price,
            )
        )

    # ── fair value gaps ──────────────────────────────────────────────────

    @staticmethod
    def _fair_value_gap(
        state: _ScanState, first: Candle, third: Candle, middle: Candle
    ) -> None:
        if first.high < third.low:
            state.fvgs.append(
                FairValueGap(
                    time=middle.timestamp, low=first.high, high=third.low,
                    type=Bias.BULLISH,
                )
            )
        elif first.low > third.high:
            state.fvgs.append(
                FairValueGap(
                    time=middle.timestamp, low=third.high, high=first.low,
                    type=Bias.BEARISH,
                )
            )

    # ── order blocks ─────────────────────────────────────────────────────

    def _order_block(self, state: _ScanState, candles: tuple, i: int) -> None:
        cfg = self.config
        candle = candles[i]
        prev_close = candles[i - 1].close if i > 0 else None
        true_range = candle.range if prev_close is None else max(
            candle.high - candle.low,
            abs(candle.high - prev_close),
            abs(candle.low - prev_close),
        )

        if len(state.true_ranges) == cfg.atr_period:
            atr = sum(state.true_ranges) / cfg.atr_period
            if self._is_impulse(candle, atr):
                self._tag_order_block(state, candles, i, atr)
        state.true_ranges.append(true_range)

    def _is_impulse(self, candle: Candle, atr: float) -> bool:
        cfg = self.config
        return (
            candle.range > 0
            and candle.range >= cfg.impulse_atr_multiple * atr
            and candle.body >= cfg.impulse_body_ratio * candle.range
            and (candle.is_bullish or candle.is_bearish)
        )

    def _tag_order_block(
        self, state: _ScanState, candles: tuple, i: int, atr: float
    ) -> None:
        cfg = self.config
        impulse = candles[i]
        bias = Bias.BULLISH if impulse.is_bullish else Bias.BEARISH

        for j in range(i - 1, max(-1, i - 1 - cfg.order_block_lookback), -1):
            block = candles[j]
            opposite = block.is_bearish if bias is Bias.BULLISH else block.is_bullish
            if not opposite:
                continue
            if j in state.tagged:
                return
            state.tagged.add(j)
            if atr == 0:
                strength = 100.0
            else:
                strength = min(100.0, 50.0 * (impulse.range / atr) / cfg.impulse_atr_multiple)
            state.order_blocks.append(
                OrderBlock(
                    time=block.timestamp,
                    low=block.low,
                    high=block.high,
                    type=bias,
                    strength=strength,
                )
            )
            return
