from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from strongbow_backtester.formatters import format_summary, format_trade
from strongbow_backtester.models import Direction, Trade
from strongbow_backtester.trade_log import CSV_COLUMNS, TradeLog, TradeLogRow

T0 = datetime(2020, 6, 1, 14, 20, tzinfo=timezone.utc)


def _closed(direction, entry, stop, target, close, minutes=10, taken=T0):
    trade = Trade("ES", taken, direction, entry_price=entry, stop_price=stop, target_price=target)
    trade.close(close, taken + timedelta(minutes=minutes))
    return trade


def test_long_win_profit_in_r():
    row = TradeLogRow.from_trade(_closed(Direction.LONG, 103, 96.5, 110, 110))
    assert row.win
    assert row.profit == pytest.approx(7 / 6.5)
    assert row.direction == "LONG"
    assert row.taken_at_date == "2020-06-01"
    assert row.taken_at_time == "14:20:00"


def test_short_loss_is_minus_one_r():
    row = TradeLogRow.from_trade(_closed(Direction.SHORT, 100, 102, 95, 102))
    assert not row.win
    assert row.profit == pytest.approx(-1.0)


def test_profit_uses_initial_stop_after_stop_moves():
    trade = Trade("ES", T0, Direction.LONG, entry_price=100, stop_price=98, target_price=110)
    trade.stop_price = 100
    trade.close(100, T0 + timedelta(minutes=5))
    row = TradeLogRow.from_trade(trade)
    assert row.profit == 0.0
    assert not row.win
    assert row.initial_stop_price == 98


def test_zero_risk_profit_is_zero():
    row = TradeLogRow.from_trade(_closed(Direction.LONG, 100, 100, 110, 105))
    assert row.profit == 0.0


def test_open_trade_rejected():
    trade = Trade("ES", T0, Direction.LONG, entry_price=100, stop_price=98, target_price=110)
    with pytest.raises(ValueError):
        TradeLogRow.from_trade(trade)


def test_stats():
    log = TradeLog()
    log.add(_closed(Direction.LONG, 100, 98, 104, 104))  # +2R
    log.add(_closed(Direction.SHORT, 100, 102, 95, 102))  # -1R
    assert len(log) == 2
    assert log.total_wins() == 1
    assert log.win_rate() == 50.0
    assert log.sum_total_profit() == pytest.approx(1.0)
    assert log.cumulative_profit() == pytest.approx(1.02 * 0.99)
    assert log.profit_value(10000) == pytest.approx(10000 * 1.02 * 0.99)


def test_empty_stats():
    log = TradeLog()
    assert log.win_rate() == 0.0
    assert log.cumulative_profit() == 1.0
    assert log.profit_value(500) == 500


def test_write_csv(tmp_path):
    log = TradeLog()
    log.add(_closed(Direction.LONG, 103, 96.5, 110, 110))
    path = log.write(str(tmp_path / "results"), now=datetime(2021, 3, 2, 14, 0, 0))
    assert path.endswith("results-2021-03-02-14_00_00.csv")

    frame = pd.read_csv(path)
    assert list(frame.columns) == list(CSV_COLUMNS.values())
    assert frame.loc[0, "Instrument"] == "ES"
    assert frame.loc[0, "ClosedAtPrice"] == 110
    assert bool(frame.loc[0, "Win"])


def test_format_trade_and_summary():
    trade = _closed(Direction.LONG, 103, 96.5, 110, 110)
    line = format_trade(trade)
    assert line.startswith("ES LONG")
    assert "@ 103" in line
    assert "stop 96.5" in line

    log = TradeLog()
    log.add(trade)
    summary = format_summary(log, 10000).splitlines()
    assert len(summary) == 4
    assert summary[1] == f"Total RR value: {7 / 6.5:.2f}"
    assert summary[3] == "Trades taken: 1 with 1 wins for a winrate of 100.00%"


def test_summary_without_wins_reports_zero_value():
    log = TradeLog()
    log.add(_closed(Direction.SHORT, 100, 102, 95, 102))
    summary = format_summary(log, 10000).splitlines()
    assert summary[2].endswith(": 0.00")
