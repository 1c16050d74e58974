from __future__ import annotations

from datetime import datetime, timedelta, timezone

from strongbow_backtester.boundaries import calculate_boundaries
from strongbow_backtester.config import InstrumentConfig
from strongbow_backtester.formatters import format_trade
from strongbow_backtester.indicators import calculate_sma
from strongbow_backtester.models import Candle, CandleSeries
from strongbow_backtester.sessions import Session
from strongbow_backtester.strategy import StrategyEngine

START = datetime(2020, 6, 1, 14, 0, tzinfo=timezone.utc)  # a Monday


def candle(idx: int, high: float, low: float, close: float) -> Candle:
    return Candle(time=START + timedelta(minutes=5 * idx), open=close, high=high, low=low, close=close, volume=1)


def rejection_sequence():
    """Pivot high at 110, pivot low at 98, then a candle that wicks under 98 and closes back above."""
    return [
        candle(0, 105, 100, 102),
        candle(1, 110, 101, 108),
        candle(2, 107, 98, 100),
        candle(3, 106, 99, 104),
        candle(4, 105, 97, 103),
        candle(5, 108, 102, 107),
        candle(6, 111, 106, 110),
        candle(7, 109, 105, 106),
    ]


def run_case(name: str, cfg: InstrumentConfig, session: Session) -> None:
    series = CandleSeries(rejection_sequence())
    calculate_sma(series, cfg.small_sma_lookback, cfg.large_sma_lookback, 0.25)
    calculate_boundaries(series, cfg.left_bars, cfg.right_bars, cfg.max_boundaries)
    engine = StrategyEngine("ES", cfg, 0.25)
    trades = []
    for window in session.windows(series):
        trades.extend(engine.trades_in_window(window))
    print(f"{name}: trades={len(trades)}")
    for t in trades:
        print("  ", format_trade(t))


def main():
    base = dict(small_sma_lookback=1, large_sma_lookback=3, left_bars=1, right_bars=1, max_boundaries=10, stop_size_addition=2)
    session = Session(name="smoke", open="14:00", close="14:35")

    # Case 1: RR 1.08 clears a 1.0 minimum, target hit on the 7th candle
    run_case("target_hit", InstrumentConfig(minimum_rr=1.0, **base), session)

    # Case 2: same setup rejected by a stricter RR filter
    run_case("rr_rejected", InstrumentConfig(minimum_rr=2.0, **base), session)

    # Case 3: session that ends before the data does not line up -> no window
    run_case("no_window", InstrumentConfig(minimum_rr=1.0, **base), Session(name="late", open="14:10", close="15:00"))


if __name__ == "__main__":
    main()
