from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .errors import EarliestTimeOutOfRange, EmptySeries, FilteredEmpty, NoBoundaryFound


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


@dataclass(frozen=True)
class Candle:
    time: datetime  # candle CLOSE time
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def is_green(self) -> bool:
        return self.close > self.open

    @property
    def is_red(self) -> bool:
        return self.close < self.open


@dataclass(frozen=True)
class Boundary:
    time: datetime  # time of the pivot candle that formed the level
    value: float
    broken: bool = False

    def mark_broken(self) -> "Boundary":
        return replace(self, broken=True)


@dataclass(frozen=True)
class BoundaryList:
    """Immutable snapshot of the tracked levels for one side of one candle.

    Every operation returns a new snapshot, so a candle can share or extend
    the previous candle's list without ever changing it.
    """

    entries: Tuple[Boundary, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Boundary]:
        return iter(self.entries)

    def prepend(self, boundary: Boundary) -> "BoundaryList":
        return BoundaryList((boundary,) + self.entries)

    def sorted_by_value(self, ascending: bool = True) -> List[Boundary]:
        return sorted(self.entries, key=lambda b: b.value, reverse=not ascending)

    def unbroken(self, ascending: bool = True) -> List[Boundary]:
        out = [b for b in self.sorted_by_value(ascending) if not b.broken]
        if not out:
            raise NoBoundaryFound("no unbroken boundary found")
        return out

    def broken(self, ascending: bool = True) -> List[Boundary]:
        out = [b for b in self.sorted_by_value(ascending) if b.broken]
        if not out:
            raise NoBoundaryFound("no broken boundary found")
        return out

    def __str__(self) -> str:
        return ";".join(
            f"{b.time.isoformat()}@{b.value:g}{'!' if b.broken else ''}" for b in self.entries
        )


@dataclass
class Trade:
    instrument: str
    taken_at: datetime
    direction: Direction
    entry_price: float
    stop_price: float
    target_price: float
    initial_stop_price: Optional[float] = None
    closed_at_price: Optional[float] = None
    closed_at_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.initial_stop_price is None:
            self.initial_stop_price = self.stop_price

    @property
    def is_closed(self) -> bool:
        return self.closed_at_price is not None

    def close(self, price: float, at: datetime) -> None:
        if self.is_closed:
            raise RuntimeError(f"trade taken at {self.taken_at} is already closed")
        self.closed_at_price = price
        self.closed_at_time = at


class CandleSeries:
    """Ordered candles plus the per-candle series computed by later stages.

    Derived values are kept in parallel lists (one entry per candle), filled
    in by the indicator and boundary stages. Slicing returns a new series that
    carries the matching slice of every derived list.
    """

    def __init__(
        self,
        candles: Sequence[Candle],
        *,
        small_sma: Optional[List[Optional[float]]] = None,
        large_sma: Optional[List[Optional[float]]] = None,
        high_boundaries: Optional[List[BoundaryList]] = None,
        low_boundaries: Optional[List[BoundaryList]] = None,
    ):
        self.candles: List[Candle] = list(candles)
        n = len(self.candles)
        self.small_sma: List[Optional[float]] = list(small_sma) if small_sma is not None else [None] * n
        self.large_sma: List[Optional[float]] = list(large_sma) if large_sma is not None else [None] * n
        self.high_boundaries: List[BoundaryList] = (
            list(high_boundaries) if high_boundaries is not None else [BoundaryList()] * n
        )
        self.low_boundaries: List[BoundaryList] = (
            list(low_boundaries) if low_boundaries is not None else [BoundaryList()] * n
        )

    def __len__(self) -> int:
        return len(self.candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.candles)

    def __getitem__(self, key: Union[int, slice]):
        if isinstance(key, slice):
            return self.take(range(*key.indices(len(self.candles))))
        return self.candles[key]

    def take(self, indices) -> "CandleSeries":
        idx = list(indices)
        return CandleSeries(
            [self.candles[i] for i in idx],
            small_sma=[self.small_sma[i] for i in idx],
            large_sma=[self.large_sma[i] for i in idx],
            high_boundaries=[self.high_boundaries[i] for i in idx],
            low_boundaries=[self.low_boundaries[i] for i in idx],
        )

    @property
    def times(self) -> List[datetime]:
        return [c.time for c in self.candles]

    def filter_by_times(self, start: datetime, end: datetime) -> "CandleSeries":
        """Keep candles with start <= time <= end. Raises FilteredEmpty if none survive."""
        idx = [i for i, c in enumerate(self.candles) if start <= c.time <= end]
        if not idx:
            raise FilteredEmpty(f"no data found between {start} and {end}")
        return self.take(idx)

    def earliest_time(self) -> datetime:
        if not self.candles:
            raise EmptySeries("series has no candles")
        sentinel = datetime.now(timezone.utc) + timedelta(days=365 * 100)
        earliest = sentinel
        for c in self.candles:
            t = c.time if c.time.tzinfo is not None else c.time.replace(tzinfo=timezone.utc)
            if t < earliest:
                earliest = t
                found = c.time
        if earliest == sentinel:
            raise EarliestTimeOutOfRange("earliest time found is one hundred years in the future")
        return found
