from __future__ import annotations

from typing import List, Optional, Sequence

from .errors import EmptySeries, InvalidLookback
from .models import CandleSeries
from .rounding import round_to_tick


def sma(values: Sequence[float], length: int) -> Optional[float]:
    if length <= 0 or len(values) < length:
        return None
    return sum(values[-length:]) / float(length)


def rolling_sma(closes: Sequence[float], lookback: int, tick_size: float) -> List[float]:
    """Trailing SMA per index, shortened to i+1 values near the start of the series."""
    out: List[float] = []
    for i in range(len(closes)):
        length = min(i + 1, lookback)
        out.append(round_to_tick(sma(closes[i - length + 1 : i + 1], length), tick_size))
    return out


def calculate_sma(series: CandleSeries, small_lookback: int, large_lookback: int, tick_size: float) -> None:
    """Fill series.small_sma / series.large_sma in place."""
    if small_lookback <= 0 or large_lookback <= 0:
        raise InvalidLookback(
            f"sma lookback amount is invalid, cannot be less than or equal to 0 "
            f"(small={small_lookback} large={large_lookback})"
        )
    if len(series) == 0:
        raise EmptySeries("cannot calculate SMA on an empty series")

    closes = [c.close for c in series]
    series.small_sma = rolling_sma(closes, small_lookback, tick_size)
    series.large_sma = rolling_sma(closes, large_lookback, tick_size)
