from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import Trade
from .trade_log import TradeLog


def _fmt_time(dt: Optional[datetime]) -> str:
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M")


def _fmt_price(val: Optional[float]) -> str:
    if val is None:
        return "-"
    return f"{val:g}"


def format_trade(trade: Trade) -> str:
    parts = [
        f"{trade.instrument} {trade.direction.value}",
        f"taken {_fmt_time(trade.taken_at)} @ {_fmt_price(trade.entry_price)}",
        f"stop {_fmt_price(trade.stop_price)} (initial {_fmt_price(trade.initial_stop_price)})",
        f"target {_fmt_price(trade.target_price)}",
        f"closed {_fmt_time(trade.closed_at_time)} @ {_fmt_price(trade.closed_at_price)}",
    ]
    return " | ".join(parts)


def format_summary(trade_log: TradeLog, starting_balance: float) -> str:
    total = len(trade_log)
    wins = trade_log.total_wins()
    total_profit_pct = (trade_log.cumulative_profit() - 1) * 100
    profit_value = trade_log.profit_value(starting_balance) if wins > 0 else 0.0
    lines = [
        f"Cumulative profit percentage: {total_profit_pct:.2f}%",
        f"Total RR value: {trade_log.sum_total_profit():.2f}",
        f"Cumulative profit value with a starting balance of {starting_balance:.2f}: {profit_value:.2f}",
        f"Trades taken: {total} with {wins} wins for a winrate of {trade_log.win_rate():.2f}%",
    ]
    return "\n".join(lines)
