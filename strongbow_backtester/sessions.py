from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from typing import List, Tuple
import logging
import re

from .models import CandleSeries

log = logging.getLogger("sessions")

_TZ_RE = re.compile(r"^UTC([+-])(\d{1,2})$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_tz(tz_str: str) -> timezone:
    tz_str = (tz_str or "UTC").strip().upper()
    if tz_str == "UTC":
        return timezone.utc
    m = _TZ_RE.match(tz_str)
    if not m:
        raise ValueError(f"Unsupported timezone format: {tz_str} (use 'UTC' or 'UTC+3' etc.)")
    sign = 1 if m.group(1) == "+" else -1
    hours = int(m.group(2))
    return timezone(timedelta(hours=sign * hours))


def parse_clock(value: str) -> time:
    m = _CLOCK_RE.match((value or "").strip())
    if not m:
        raise ValueError(f"Unsupported clock time: {value!r} (use 'HH:MM')")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Clock time out of range: {value!r}")
    return time(hour, minute)


def _at(day: datetime, clock: time) -> datetime:
    return datetime.combine(day.date(), clock, tzinfo=day.tzinfo)


def _is_last_interval_of_day(t: datetime) -> bool:
    return t.hour == 23 and t.minute >= 55


def _occurrence(ref: datetime, start: time, end: time) -> Tuple[datetime, datetime]:
    full_start = _at(ref, start)
    full_end = _at(ref, end)
    if full_start > full_end:
        full_end += timedelta(days=1)
    return full_start, full_end


def split_windows(series: CandleSeries, start: time, end: time) -> List[CandleSeries]:
    """Carve series into one window per weekday session between start and end.

    When start is later than end the session spans midnight: candles are
    collected from start on the first day until the last 5-minute interval
    before midnight, then up to end on the following day. A window is only
    emitted when its first and last candles sit exactly on the session
    boundaries; partial windows at the edges of the data are dropped. A
    session whose end candle is missing is dropped when the next one begins.
    """
    spans_midnight = start > end
    windows: List[CandleSeries] = []
    current: List[int] = []
    is_next_day = False

    for i, candle in enumerate(series.candles):
        t = candle.time
        if t.weekday() >= 5:
            continue

        ref = t - timedelta(days=1) if (is_next_day and spans_midnight) else t
        full_start, full_end = _occurrence(ref, start, end)

        if spans_midnight:
            if is_next_day and t > full_end:
                # the previous occurrence never reached its end candle
                if current:
                    log.debug("window_unterminated first=%s next=%s", series.candles[current[0]].time, t)
                    current = []
                is_next_day = False
                full_start, full_end = _occurrence(t, start, end)

            if not is_next_day and t >= full_start:
                if current and series.candles[current[0]].time < full_start:
                    log.debug("window_unterminated first=%s next=%s", series.candles[current[0]].time, t)
                    current = []
                current.append(i)
            elif is_next_day and t <= full_end:
                current.append(i)

            if _is_last_interval_of_day(t) and not is_next_day:
                is_next_day = True
                continue
        elif full_start <= t <= full_end:
            if current and series.candles[current[0]].time < full_start:
                log.debug("window_unterminated first=%s next=%s", series.candles[current[0]].time, t)
                current = []
            current.append(i)

        if t == full_end and current:
            first = series.candles[current[0]].time
            last = series.candles[current[-1]].time
            if first != full_start or last != full_end:
                log.debug("window_incomplete first=%s last=%s expected=%s-%s", first, last, full_start, full_end)
            else:
                windows.append(series.take(current))
            current = []
            is_next_day = False

    return windows


@dataclass
class Session:
    name: str
    open: str
    close: str
    open_time: time = field(init=False, repr=False)
    close_time: time = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.open_time = parse_clock(self.open)
        self.close_time = parse_clock(self.close)

    @property
    def spans_midnight(self) -> bool:
        return self.open_time > self.close_time

    def windows(self, series: CandleSeries) -> List[CandleSeries]:
        return split_windows(series, self.open_time, self.close_time)

    def __str__(self) -> str:
        return f"{self.name} {self.open}-{self.close}"
