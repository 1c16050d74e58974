from __future__ import annotations

from typing import List, Tuple

from .models import Boundary, BoundaryList, CandleSeries
from .pivots import is_pivot_high, is_pivot_low


def break_boundaries(boundaries: BoundaryList, price: float, is_high: bool) -> BoundaryList:
    """Mark unbroken levels that price has traded through.

    A high level breaks when price goes above it, a low level when price goes
    below it. Entries already broken are carried over untouched.
    """
    out: List[Boundary] = []
    for b in boundaries:
        if not b.broken and ((is_high and price > b.value) or (not is_high and price < b.value)):
            out.append(b.mark_broken())
        else:
            out.append(b)
    return BoundaryList(tuple(out))


def trim_boundaries(boundaries: BoundaryList, max_boundaries: int) -> BoundaryList:
    """Order by time and keep only the newest max_boundaries entries."""
    ordered = sorted(boundaries.entries, key=lambda b: b.time)
    if len(ordered) > max_boundaries:
        ordered = ordered[len(ordered) - max_boundaries :]
    return BoundaryList(tuple(ordered))


class BoundaryTracker:
    """Rolls pivot highs/lows forward into per-candle support/resistance snapshots."""

    def __init__(self, left_bars: int, right_bars: int, max_boundaries: int):
        if left_bars < 0 or right_bars < 0:
            raise ValueError(f"pivot bar counts must be >= 0 (left={left_bars} right={right_bars})")
        if max_boundaries < 0:
            raise ValueError(f"max_boundaries must be >= 0, got {max_boundaries}")
        self.left_bars = left_bars
        self.right_bars = right_bars
        self.max_boundaries = max_boundaries

    def step(
        self,
        series: CandleSeries,
        i: int,
        prev_highs: BoundaryList,
        prev_lows: BoundaryList,
    ) -> Tuple[BoundaryList, BoundaryList]:
        candle = series.candles[i]
        highs, lows = prev_highs, prev_lows

        if is_pivot_high(series.candles, i, self.left_bars, self.right_bars):
            highs = highs.prepend(Boundary(time=candle.time, value=candle.high))
        if is_pivot_low(series.candles, i, self.left_bars, self.right_bars):
            lows = lows.prepend(Boundary(time=candle.time, value=candle.low))

        highs = trim_boundaries(break_boundaries(highs, candle.high, is_high=True), self.max_boundaries)
        lows = trim_boundaries(break_boundaries(lows, candle.low, is_high=False), self.max_boundaries)
        return highs, lows

    def apply(self, series: CandleSeries) -> None:
        """Fill series.high_boundaries / series.low_boundaries in place."""
        highs, lows = BoundaryList(), BoundaryList()
        high_snaps: List[BoundaryList] = []
        low_snaps: List[BoundaryList] = []
        for i in range(len(series)):
            highs, lows = self.step(series, i, highs, lows)
            high_snaps.append(highs)
            low_snaps.append(lows)
        series.high_boundaries = high_snaps
        series.low_boundaries = low_snaps


def calculate_boundaries(series: CandleSeries, left_bars: int, right_bars: int, max_boundaries: int) -> None:
    BoundaryTracker(left_bars, right_bars, max_boundaries).apply(series)
