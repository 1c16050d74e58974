from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple
import logging

from .config import InstrumentConfig
from .models import Candle, CandleSeries, Direction, Trade
from .rounding import round_to_tick

log = logging.getLogger("simulator")

Predicate = Callable[[Trade, Candle], bool]
Action = Callable[[Trade, Candle], None]


@dataclass
class TradeSimulator:
    """Walks an open trade through the rest of its window until it closes.

    Each candle is checked against an ordered rule table and only the first
    matching rule is applied: stops, then targets, then the trailing stop,
    then the break-even move. A trade still open after the last candle is
    closed at that candle's close.
    """

    config: InstrumentConfig
    tick_size: float

    def __post_init__(self) -> None:
        self.rules: List[Tuple[str, Predicate, Action]] = [
            ("long_stop", self._long_stop_hit, self._close_at_stop),
            ("short_stop", self._short_stop_hit, self._close_at_stop),
            ("long_target", self._long_target_hit, self._close_at_target),
            ("short_target", self._short_target_hit, self._close_at_target),
            ("trailing_stop", self._trailing_enabled, self._trail_stop),
            ("break_even", self._break_even_pending, self._move_to_break_even),
        ]

    # predicates

    @staticmethod
    def _long_stop_hit(t: Trade, c: Candle) -> bool:
        return t.direction == Direction.LONG and c.low <= t.stop_price

    @staticmethod
    def _short_stop_hit(t: Trade, c: Candle) -> bool:
        return t.direction == Direction.SHORT and c.high >= t.stop_price

    @staticmethod
    def _long_target_hit(t: Trade, c: Candle) -> bool:
        return t.direction == Direction.LONG and c.high >= t.target_price

    @staticmethod
    def _short_target_hit(t: Trade, c: Candle) -> bool:
        return t.direction == Direction.SHORT and c.low <= t.target_price

    def _trailing_enabled(self, t: Trade, c: Candle) -> bool:
        return self.config.trailing_stop

    def _break_even_pending(self, t: Trade, c: Candle) -> bool:
        return self.config.move_to_break_even_at > 0 and t.stop_price != t.entry_price

    # actions

    @staticmethod
    def _close_at_stop(t: Trade, c: Candle) -> None:
        log.debug("stop_hit %s time=%s stop=%f high=%f low=%f", t.direction.value, c.time, t.stop_price, c.high, c.low)
        t.close(t.stop_price, c.time)

    @staticmethod
    def _close_at_target(t: Trade, c: Candle) -> None:
        log.debug("target_hit %s time=%s target=%f high=%f low=%f", t.direction.value, c.time, t.target_price, c.high, c.low)
        t.close(t.target_price, c.time)

    def _trail_stop(self, t: Trade, c: Candle) -> None:
        previous = t.stop_price
        if t.direction == Direction.LONG and c.high > t.entry_price:
            candidate = round_to_tick(t.stop_price + (c.high - t.entry_price), self.tick_size)
            if candidate > t.stop_price:
                t.stop_price = candidate
        elif t.direction == Direction.SHORT and c.low < t.entry_price:
            candidate = round_to_tick(t.stop_price - (t.entry_price - c.low), self.tick_size)
            if candidate < t.stop_price:
                t.stop_price = candidate
        if t.stop_price != previous:
            log.debug("trailing_stop time=%s stop=%f previous=%f", c.time, t.stop_price, previous)

    def _move_to_break_even(self, t: Trade, c: Candle) -> None:
        profit_target = t.entry_price * (1 + self.config.move_to_break_even_at / 100)
        if t.direction == Direction.LONG:
            reached = c.high >= profit_target
        else:
            reached = c.low <= profit_target
        if reached:
            t.stop_price = t.entry_price
            log.debug("break_even time=%s stop=%f", c.time, t.stop_price)

    def run(self, trade: Trade, window: CandleSeries) -> Trade:
        for candle in window:
            if candle.time <= trade.taken_at:
                continue
            for _name, predicate, action in self.rules:
                if predicate(trade, candle):
                    action(trade, candle)
                    break
            if trade.is_closed:
                return trade

        last = window[len(window) - 1]
        log.debug("time_exit time=%s close=%f", last.time, last.close)
        trade.close(last.close, last.time)
        return trade
