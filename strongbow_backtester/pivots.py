from __future__ import annotations

from typing import Sequence

from .models import Candle


def _has_room(n: int, i: int, left_bars: int, right_bars: int) -> bool:
    return i >= left_bars and i + right_bars < n


def is_pivot_high(candles: Sequence[Candle], i: int, left_bars: int, right_bars: int) -> bool:
    """True if candles[i].high is strictly above every high in the left/right windows."""
    if not _has_room(len(candles), i, left_bars, right_bars):
        return False
    current = candles[i].high
    for j in range(1, left_bars + 1):
        if candles[i - j].high >= current:
            return False
    for j in range(1, right_bars + 1):
        if candles[i + j].high >= current:
            return False
    return True


def is_pivot_low(candles: Sequence[Candle], i: int, left_bars: int, right_bars: int) -> bool:
    """True if candles[i].low is strictly below every low in the left/right windows."""
    if not _has_room(len(candles), i, left_bars, right_bars):
        return False
    current = candles[i].low
    for j in range(1, left_bars + 1):
        if candles[i - j].low <= current:
            return False
    for j in range(1, right_bars + 1):
        if candles[i + j].low <= current:
            return False
    return True
