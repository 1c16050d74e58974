from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional
import logging

from .errors import MissingTickSize

log = logging.getLogger("ticks")

# Minimum price increment per symbol, in index points.
DEFAULT_ASSET_TICKS: Mapping[str, float] = MappingProxyType(
    {
        # S&P 500
        "ES": 0.25,
        "MES": 0.25,
        # Nasdaq
        "NQ": 0.25,
        "MNQ": 0.25,
        # Euro
        "EC": 0.00005,
        "M6E": 0.0001,
        # Crude oil
        "CL": 0.01,
        "MCL": 0.01,
        # Gold
        "GC": 0.1,
        "MGC": 0.1,
        # Yen
        "6J": 0.0000005,
        "M6J": 0.01,
        # Pound
        "BP": 0.0001,
        "M6B": 0.0001,
        # Australian dollar
        "AD": 0.00005,
        "M6A": 0.0001,
    }
)


class TickTable:
    """Read-only symbol -> tick size lookup."""

    def __init__(self, ticks: Mapping[str, float]):
        self._ticks: Mapping[str, float] = MappingProxyType(dict(ticks))

    @classmethod
    def from_config(cls, extra: Optional[Mapping[str, float]] = None) -> "TickTable":
        # Built-in ticks are the trusted source: config may add symbols, never override them.
        merged: Dict[str, float] = dict(DEFAULT_ASSET_TICKS)
        for symbol, tick in (extra or {}).items():
            if symbol in merged:
                if float(tick) != merged[symbol]:
                    log.warning("tick_override_ignored symbol=%s config=%s builtin=%s", symbol, tick, merged[symbol])
                continue
            merged[symbol] = float(tick)
        return cls(merged)

    def tick_size(self, symbol: str) -> float:
        try:
            return self._ticks[symbol]
        except KeyError:
            raise MissingTickSize(symbol) from None

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._ticks

    def __iter__(self) -> Iterator[str]:
        return iter(self._ticks)

    def __len__(self) -> int:
        return len(self._ticks)
