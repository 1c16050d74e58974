from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Iterator, List, Optional
import logging
import os

import pandas as pd

from .models import Direction, Trade

log = logging.getLogger("trade_log")

CSV_COLUMNS = {
    "instrument": "Instrument",
    "taken_at": "TakenAt",
    "direction": "Direction",
    "entry_price": "EntryPrice",
    "stop_price": "StopPrice",
    "initial_stop_price": "InitialStopPrice",
    "target_price": "TargetPrice",
    "closed_at_price": "ClosedAtPrice",
    "closed_at_time": "ClosedAtTime",
    "taken_at_date": "TakenAtDate",
    "taken_at_time": "TakenAtTime",
    "win": "Win",
    "profit": "Profit",
}


@dataclass(frozen=True)
class TradeLogRow:
    instrument: str
    taken_at: datetime
    direction: str
    entry_price: float
    stop_price: float
    initial_stop_price: float
    target_price: float
    closed_at_price: float
    closed_at_time: datetime
    taken_at_date: str
    taken_at_time: str
    win: bool
    profit: float  # in R multiples of the initial risk

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeLogRow":
        if not trade.is_closed:
            raise ValueError(f"cannot log an open trade (taken at {trade.taken_at})")

        if trade.direction == Direction.LONG:
            win = trade.closed_at_price > trade.entry_price
        else:
            win = trade.closed_at_price < trade.entry_price

        if trade.entry_price == trade.initial_stop_price:
            profit = 0.0
        else:
            profit = (trade.closed_at_price - trade.entry_price) / (trade.entry_price - trade.initial_stop_price)

        return cls(
            instrument=trade.instrument,
            taken_at=trade.taken_at,
            direction=trade.direction.value,
            entry_price=trade.entry_price,
            stop_price=trade.stop_price,
            initial_stop_price=trade.initial_stop_price,
            target_price=trade.target_price,
            closed_at_price=trade.closed_at_price,
            closed_at_time=trade.closed_at_time,
            taken_at_date=trade.taken_at.strftime("%Y-%m-%d"),
            taken_at_time=trade.taken_at.strftime("%H:%M:%S"),
            win=win,
            profit=profit,
        )


class TradeLog:
    def __init__(self, rows: Optional[List[TradeLogRow]] = None):
        self.rows: List[TradeLogRow] = list(rows or [])

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[TradeLogRow]:
        return iter(self.rows)

    def add(self, trade: Trade) -> TradeLogRow:
        row = TradeLogRow.from_trade(trade)
        self.rows.append(row)
        return row

    def total_wins(self) -> int:
        return sum(1 for r in self.rows if r.win)

    def win_rate(self) -> float:
        if not self.rows:
            return 0.0
        return self.total_wins() / len(self.rows) * 100.0

    def sum_total_profit(self) -> float:
        return sum(r.profit for r in self.rows)

    def cumulative_profit(self) -> float:
        """Compounded growth multiplier, treating each R as one percent."""
        out = 1.0
        for r in self.rows:
            out *= 1 + r.profit / 100
        return out

    def profit_value(self, starting_balance: float) -> float:
        balance = starting_balance
        for r in sorted(self.rows, key=lambda r: r.closed_at_time):
            balance *= 1 + r.profit / 100
        return balance

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame([asdict(r) for r in self.rows], columns=list(CSV_COLUMNS))
        return frame.rename(columns=CSV_COLUMNS)

    def write(self, results_dir: str = "backtesting_results", now: Optional[datetime] = None) -> str:
        os.makedirs(results_dir, exist_ok=True)
        stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d-%H_%M_%S")
        path = os.path.join(results_dir, f"results-{stamp}.csv")
        self.to_frame().to_csv(path, index=False)
        log.info("trade_log_written path=%s trades=%d", path, len(self.rows))
        return path
