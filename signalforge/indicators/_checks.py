"""Argument guards shared by the indicator modules."""

from numbers import Integral

from signalforge.errors import InsufficientData, InvalidParameter
from signalforge.market.models import CandleSeries


# Parameters allowed to be fractional; everything else is a bar count.
_FLOAT_PARAMS = frozenset({"multiplier", "std_dev"})


def require_positive(indicator: str, **params: float) -> None:
    """Raise ``InvalidParameter`` for any non-positive period/multiplier.

    Periods, lookbacks and displacements must also be integers.
    """
    for name, value in params.items():
        if isinstance(value, bool) or value <= 0:
            raise InvalidParameter(
                f"{indicator}: {name} must be positive, got {value!r}"
            )
        if name not in _FLOAT_PARAMS and not isinstance(value, Integral):
            raise InvalidParameter(
                f"{indicator}: {name} must be an integer, got {value!r}"
            )


def require_length(indicator: str, series: CandleSeries, minimum: int) -> None:
    if len(series) < minimum:
        raise InsufficientData(indicator, minimum, len(series))
