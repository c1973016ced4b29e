"""Market data models — the candle series every component consumes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Mapping, Sequence

from signalforge.errors import InvalidParameter


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self) -> None:
        for name in ("open", "high", "low", "close", "volume"):
            if getattr(self, name) < 0:
                raise InvalidParameter(
                    f"Candle {name} must be non-negative, got {getattr(self, name)}"
                )
        if self.high < self.low:
            raise InvalidParameter(
                f"Candle high {self.high} is below low {self.low} "
                f"at {self.timestamp.isoformat()}"
            )

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


def _parse_timestamp(value: Any) -> datetime:
    """Accept datetimes, ISO-8601 strings, or epoch milliseconds."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    raise InvalidParameter(f"Unsupported candle timestamp: {value!r}")


@dataclass(frozen=True)
class CandleSeries:
    """An ordered, immutable run of candles for one symbol and timeframe.

    Timestamps must be strictly increasing.  Gaps are allowed and are
    never filled in; indicators operate on the series exactly as given.
    """

    symbol: str
    timeframe: str
    candles: tuple[Candle, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.candles, tuple):
            object.__setattr__(self, "candles", tuple(self.candles))
        for prev, curr in zip(self.candles, self.candles[1:]):
            if curr.timestamp <= prev.timestamp:
                raise InvalidParameter(
                    f"{self.symbol} {self.timeframe}: timestamps must be strictly "
                    f"increasing ({prev.timestamp.isoformat()} -> "
                    f"{curr.timestamp.isoformat()})"
                )

    @classmethod
    def from_rows(
        cls,
        symbol: str,
        timeframe: str,
        rows: Iterable[Mapping[str, Any] | Sequence[Any]],
    ) -> "CandleSeries":
        """Build a series from dict rows or ``(ts, o, h, l, c, v)`` tuples."""
        candles = []
        for row in rows:
            if isinstance(row, Mapping):
                candles.append(Candle(
                    timestamp=_parse_timestamp(row["timestamp"]),
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row.get("volume", 0.0)),
                ))
            else:
                ts, o, h, l, c, v = row
                candles.append(Candle(
                    _parse_timestamp(ts), float(o), float(h), float(l), float(c), float(v),
                ))
        return cls(symbol=symbol, timeframe=timeframe, candles=tuple(candles))

    def __len__(self) -> int:
        return len(self.candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.candles)

    def __getitem__(self, index: int) -> Candle:
        return self.candles[index]

    @property
    def last(self) -> Candle:
        if not self.candles:
            raise InvalidParameter(f"{self.symbol} {self.timeframe}: series is empty")
        return self.candles[-1]

    @property
    def opens(self) -> list[float]:
        return [c.open for c in self.candles]

    @property
    def highs(self) -> list[float]:
        return [c.high for c in self.candles]

    @property
    def lows(self) -> list[float]:
        return [c.low for c in self.candles]

    @property
    def closes(self) -> list[float]:
        return [c.close for c in self.candles]

    @property
    def volumes(self) -> list[float]:
        return [c.volume for c in self.candles]

    def tail(self, count: int) -> "CandleSeries":
        """Return a new series holding the most recent *count* candles."""
        if count <= 0:
            raise InvalidParameter(f"tail() count must be positive, got {count}")
        return CandleSeries(self.symbol, self.timeframe, self.candles[-count:])
