from datetime import datetime, timedelta, timezone

import pytest

from strongbow_backtester.errors import EarliestTimeOutOfRange, EmptySeries, FilteredEmpty, NoBoundaryFound
from strongbow_backtester.models import Boundary, BoundaryList, Candle, CandleSeries, Direction, Trade

T0 = datetime(2022, 1, 3, 9, 0, tzinfo=timezone.utc)


def _series(n: int, start: datetime = T0) -> CandleSeries:
    return CandleSeries(
        [Candle(time=start + timedelta(minutes=5 * i), open=10 + i, high=11 + i, low=9 + i, close=10.5 + i) for i in range(n)],
        small_sma=[float(i) for i in range(n)],
    )


def test_candle_colour():
    assert Candle(T0, open=1, high=2, low=0.5, close=1.5).is_green
    assert Candle(T0, open=1.5, high=2, low=0.5, close=1).is_red
    doji = Candle(T0, open=1, high=2, low=0.5, close=1)
    assert not doji.is_green and not doji.is_red


def test_boundary_list_is_immutable_snapshot():
    first = BoundaryList().prepend(Boundary(T0, 100.0))
    second = first.prepend(Boundary(T0 + timedelta(minutes=5), 101.0).mark_broken())
    assert len(first) == 1
    assert [b.value for b in second] == [101.0, 100.0]
    assert [b.value for b in second.broken()] == [101.0]
    assert [b.value for b in second.unbroken()] == [100.0]
    with pytest.raises(NoBoundaryFound):
        first.broken()
    assert str(first) == f"{T0.isoformat()}@100"


def test_sorted_by_value_directions():
    bl = BoundaryList(tuple(Boundary(T0, v) for v in (3.0, 1.0, 2.0)))
    assert [b.value for b in bl.sorted_by_value()] == [1.0, 2.0, 3.0]
    assert [b.value for b in bl.sorted_by_value(ascending=False)] == [3.0, 2.0, 1.0]


def test_slice_carries_annotations():
    part = _series(6)[2:4]
    assert len(part) == 2
    assert part.small_sma == [2.0, 3.0]
    assert part[0].time == T0 + timedelta(minutes=10)


def test_filter_by_times_inclusive():
    series = _series(10)
    out = series.filter_by_times(T0 + timedelta(minutes=5), T0 + timedelta(minutes=15))
    assert out.times == [T0 + timedelta(minutes=m) for m in (5, 10, 15)]
    assert out.small_sma == [1.0, 2.0, 3.0]


def test_filter_by_times_empty_raises():
    with pytest.raises(FilteredEmpty):
        _series(3).filter_by_times(T0 + timedelta(days=1), T0 + timedelta(days=2))


def test_earliest_time():
    series = CandleSeries([_series(3)[2], _series(3)[0], _series(3)[1]])
    assert series.earliest_time() == T0


def test_earliest_time_accepts_naive_times():
    naive = datetime(2022, 1, 3, 9, 0)
    series = CandleSeries([Candle(naive, 1, 1, 1, 1), Candle(naive - timedelta(hours=1), 1, 1, 1, 1)])
    assert series.earliest_time() == naive - timedelta(hours=1)


def test_earliest_time_errors():
    with pytest.raises(EmptySeries):
        CandleSeries([]).earliest_time()
    far = datetime(2200, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(EarliestTimeOutOfRange):
        CandleSeries([Candle(far, 1, 1, 1, 1)]).earliest_time()


def test_trade_initial_stop_and_close_once():
    trade = Trade("ES", T0, Direction.LONG, entry_price=100, stop_price=98, target_price=104)
    assert trade.initial_stop_price == 98
    assert not trade.is_closed
    trade.close(104, T0 + timedelta(minutes=5))
    assert trade.is_closed
    with pytest.raises(RuntimeError):
        trade.close(98, T0 + timedelta(minutes=10))
