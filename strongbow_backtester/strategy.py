from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import logging

from .config import InstrumentConfig
from .errors import NoBoundaryFound, SmaIntersect
from .models import Boundary, BoundaryList, Candle, CandleSeries, Direction, Trade
from .rounding import round_to_tick
from .simulator import TradeSimulator

log = logging.getLogger("strategy")


def trade_direction(small_sma: Optional[float], large_sma: Optional[float]) -> Direction:
    """SHORT below the large SMA, LONG above it. Equal values have no direction."""
    if small_sma is None or large_sma is None:
        raise ValueError("SMA values have not been calculated")
    if small_sma == large_sma:
        raise SmaIntersect("sma values intersect with each other, do not trade")
    if small_sma < large_sma:
        return Direction.SHORT
    return Direction.LONG


def is_valid_entry(candle: Candle, direction: Direction, highs: BoundaryList, lows: BoundaryList) -> bool:
    """A rejection candle: it wicks through a broken level but closes back on the other side."""
    try:
        if direction == Direction.SHORT:
            level = highs.broken(ascending=True)[0]
            return candle.high > level.value and candle.close < level.value
        level = lows.broken(ascending=False)[0]
        return candle.low < level.value and candle.close > level.value
    except NoBoundaryFound:
        log.debug("no_broken_boundary side=%s time=%s", "high" if direction == Direction.SHORT else "low", candle.time)
        return False


def calculate_rr(risk: float, reward: float) -> float:
    if risk == 0:
        log.error("zero risk on trade, treating RR as 0")
        return 0.0
    return reward / risk


@dataclass
class EntrySetup:
    direction: Direction
    entry: float
    stop: float
    target: Boundary
    rr: float


class StrategyEngine:
    """Per-instrument entry scan over one trading window at a time."""

    def __init__(self, instrument: str, config: InstrumentConfig, tick_size: float):
        self.instrument = instrument
        self.config = config
        self.tick_size = tick_size
        self.simulator = TradeSimulator(config, tick_size)

    def build_setup(self, window: CandleSeries, i: int, direction: Direction) -> EntrySetup:
        """Stop, target and RR for a qualifying candle. Raises NoBoundaryFound without a target."""
        candle = window.candles[i]
        stop_offset = self.tick_size * self.config.stop_size_addition
        if direction == Direction.SHORT:
            stop = round_to_tick(candle.high + stop_offset, self.tick_size)
            # nearest support below: the highest unbroken low
            target = window.low_boundaries[i].unbroken(ascending=False)[0]
            risk = stop - candle.close
            reward = candle.close - target.value
        else:
            stop = round_to_tick(candle.low - stop_offset, self.tick_size)
            target = window.high_boundaries[i].unbroken(ascending=True)[0]
            risk = candle.close - stop
            reward = target.value - candle.close
        return EntrySetup(direction, candle.close, stop, target, calculate_rr(risk, reward))

    def trades_in_window(self, window: CandleSeries) -> List[Trade]:
        trades: List[Trade] = []
        open_until = None

        for i, candle in enumerate(window.candles):
            if open_until is not None:
                if candle.time >= open_until:
                    log.debug("trade_closed time=%s", candle.time)
                    open_until = None
                continue

            try:
                direction = trade_direction(window.small_sma[i], window.large_sma[i])
            except SmaIntersect:
                continue

            if not is_valid_entry(candle, direction, window.high_boundaries[i], window.low_boundaries[i]):
                continue

            try:
                setup = self.build_setup(window, i, direction)
            except NoBoundaryFound:
                log.debug("no_target_boundary %s time=%s", direction.value, candle.time)
                continue

            if setup.rr < self.config.minimum_rr:
                log.info(
                    "trade_skipped %s %s time=%s rr=%.2f min_rr=%.2f entry=%f stop=%f target=%f",
                    self.instrument,
                    direction.value,
                    candle.time,
                    setup.rr,
                    self.config.minimum_rr,
                    setup.entry,
                    setup.stop,
                    setup.target.value,
                )
                continue

            log.info(
                "trade_taken %s %s time=%s entry=%f stop=%f target=%f rr=%.2f",
                self.instrument,
                direction.value,
                candle.time,
                setup.entry,
                setup.stop,
                setup.target.value,
                setup.rr,
            )
            trade = Trade(
                instrument=self.instrument,
                taken_at=candle.time,
                direction=direction,
                entry_price=setup.entry,
                stop_price=setup.stop,
                target_price=setup.target.value,
            )
            self.simulator.run(trade, window)
            trades.append(trade)
            open_until = trade.closed_at_time

        return trades
