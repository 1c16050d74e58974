from __future__ import annotations

import math
from decimal import Decimal


def decimal_places(num: float) -> int:
    """Number of significant decimal places in num (0.005 -> 3, 0.25 -> 2, 1.0 -> 0)."""
    exponent = Decimal(repr(float(num))).normalize().as_tuple().exponent
    return max(0, -int(exponent))


def round_to_tick(value: float, tick_size: float) -> float:
    """Round value to the nearest multiple of tick_size, ties away from zero.

    Works in integer tick units so the result is the float closest to the
    exact decimal: round_to_tick(1234.567, 0.005) == 1234.565.
    """
    if tick_size <= 0:
        raise ValueError(f"tick size must be positive, got {tick_size}")
    multiplier = 10 ** decimal_places(tick_size)
    tick_units = round(tick_size * multiplier)
    steps = value * multiplier / tick_units
    steps = math.copysign(math.floor(abs(steps) + 0.5), steps)
    return int(steps) * tick_units / multiplier
