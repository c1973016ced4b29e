"""Strategy protocol and shared result types.

Defines the interface that every consensus strategy must implement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from signalforge.errors import InvalidParameter
from signalforge.indicators.models import Action
from signalforge.market.models import CandleSeries

# Strategy confidence is scored on 0..100 and reported on 0..1.
BASE_CONFIDENCE = 50
MAX_CONFIDENCE = 95


@dataclass(frozen=True)
class StrategySignal:
    """A directional call with its risk levels."""

    type: Action
    price: float
    confidence: float  # (0, 1]
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    reasoning: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0 < self.confidence <= 1:
            raise InvalidParameter(
                f"Signal confidence must be in (0, 1], got {self.confidence}"
            )


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of one strategy evaluation.  ``signal is None`` means abstain."""

    strategy_name: str
    signal: Optional[StrategySignal] = None
    should_exit: bool = False
    analysis: str = ""

    @property
    def abstained(self) -> bool:
        return self.signal is None


@runtime_checkable
class StrategyProtocol(Protocol):
    """Interface that all consensus strategies must satisfy."""

    name: str
    description: str

    def evaluate(self, series: CandleSeries) -> StrategyResult:
        """Evaluate the series and return a signal or an abstention."""
        ...


def scored_confidence(score: int) -> float:
    """Cap a 0..100 strategy score and rescale it to 0..1."""
    return min(score, MAX_CONFIDENCE) / 100


def join_reasons(reasons: list[str], fallback: str) -> str:
    return ". ".join(reasons) if reasons else fallback
