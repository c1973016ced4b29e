"""Swing-point confirmation state machine.

The tracker alternates between looking for a swing high and a swing low.
A candidate extreme is confirmed once ``window`` later candles have failed
to exceed it.  Before the first confirmation both sides are tracked and
the high is checked first.
"""

from typing import Optional

from signalforge.market.models import Candle
from signalforge.smc.models import SwingKind, SwingPoint


class _Candidate:
    __slots__ = ("index", "price", "fails")

    def __init__(self, index: int, price: float) -> None:
        self.index = index
        self.price = price
        self.fails = 0


class SwingTracker:
    """Feed candles in order with :meth:`update`; it returns newly confirmed swings."""

    def __init__(self, window: int) -> None:
        self.window = window
        self.state: Optional[SwingKind] = None  # None = tracking both sides
        self._candles: list[Candle] = []
        self._high: Optional[_Candidate] = None
        self._low: Optional[_Candidate] = None

    def update(self, candle: Candle) -> list[SwingPoint]:
        index = len(self._candles)
        self._candles.append(candle)

        if self.state in (None, SwingKind.HIGH):
            self._high = self._advance(self._high, index, candle.high, higher=True)
        if self.state in (None, SwingKind.LOW):
            self._low = self._advance(self._low, index, candle.low, higher=False)

        confirmed: list[SwingPoint] = []
        while True:
            swing = self._confirm()
            if swing is None:
                break
            confirmed.append(swing)
        return confirmed

    @staticmethod
    def _advance(
        cand: Optional[_Candidate], index: int, price: float, higher: bool
    ) -> _Candidate:
        if cand is None or (price > cand.price if higher else price < cand.price):
            return _Candidate(index, price)
        cand.fails += 1
        return cand

    def _confirm(self) -> Optional[SwingPoint]:
        if self.state in (None, SwingKind.HIGH) and self._high and self._high.fails >= self.window:
            swing = self._point(self._high, SwingKind.HIGH)
            self.state = SwingKind.LOW
            self._high = None
            self._low = self._rescan(swing.index, higher=False)
            return swing
        if self.state in (None, SwingKind.LOW) and self._low and self._low.fails >= self.window:
            swing = self._point(self._low, SwingKind.LOW)
            self.state = SwingKind.HIGH
            self._low = None
            self._high = self._rescan(swing.index, higher=True)
            return swing
        return None

    def _point(self, cand: _Candidate, kind: SwingKind) -> SwingPoint:
        return SwingPoint(
            time=self._candles[cand.index].timestamp,
            price=cand.price,
            kind=kind,
            index=cand.index,
        )

    def _rescan(self, after: int, higher: bool) -> Optional[_Candidate]:
        """Rebuild the opposite candidate from the candles after a confirmed swing."""
        cand: Optional[_Candidate] = None
        for i in range(after + 1, len(self._candles)):
            c = self._candles[i]
            cand = self._advance(cand, i, c.high if higher else c.low, higher)
        return cand
