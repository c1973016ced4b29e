"""Error taxonomy shared by the indicator library, strategies and detector.

All errors derive from ``ValueError`` so callers that only care about
"bad input" can catch that, while the analysis layer catches
``IndicatorError`` to skip a single indicator without aborting the rest.
"""


class IndicatorError(ValueError):
    """Base class for every recoverable, indicator-local failure."""


class InsufficientData(IndicatorError):
    """The series is shorter than the indicator's minimum lookback."""

    def __init__(self, indicator: str, required: int, got: int) -> None:
        self.indicator = indicator
        self.required = required
        self.got = got
        super().__init__(
            f"Need at least {required} candles for {indicator}, got {got}"
        )


class InvalidParameter(IndicatorError):
    """A period/multiplier is non-positive or the input series is malformed."""


class NumericDegenerate(IndicatorError):
    """The window admits no defined value (e.g. VWAP over zero volume)."""
