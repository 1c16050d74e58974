from __future__ import annotations


class BacktestError(Exception):
    """Base class for every error raised by the backtesting core."""


class EmptySeries(BacktestError):
    pass


class FilteredEmpty(BacktestError):
    pass


class EarliestTimeOutOfRange(BacktestError):
    pass


class InvalidLookback(BacktestError):
    pass


class SmaIntersect(BacktestError):
    """Small and large SMA are equal; there is no direction for this candle."""


class NoBoundaryFound(BacktestError):
    pass


class MissingTickSize(BacktestError):
    def __init__(self, symbol: str):
        super().__init__(f"Instrument {symbol} not found in asset ticks, add it to the config.")
        self.symbol = symbol
