from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .boundaries import calculate_boundaries
from .config import Config
from .errors import FilteredEmpty
from .indicators import calculate_sma
from .models import CandleSeries, Trade
from .providers.csv_files import CsvProvider
from .sessions import parse_tz
from .strategy import StrategyEngine
from .ticks import TickTable
from .trade_log import TradeLog

log = logging.getLogger("runner")


@dataclass
class InstrumentResult:
    symbol: str
    rows: int
    trades: List[Trade] = field(default_factory=list)


class BacktestRunner:
    def __init__(
        self,
        cfg: Config,
        *,
        provider: Optional[CsvProvider] = None,
        ticks: Optional[TickTable] = None,
    ):
        self.cfg = cfg
        self.tz = parse_tz(cfg.backtest.timezone)
        self.provider = provider or CsvProvider(cfg.backtest.data_dir, self.tz)
        self.ticks = ticks or TickTable.from_config(cfg.asset_ticks)
        self.results: Dict[str, InstrumentResult] = {}
        self.failures: List[Tuple[str, str]] = []
        self._lock: Optional[asyncio.Lock] = None

    def process(self, symbol: str, series: CandleSeries, tick_size: float) -> InstrumentResult:
        """Indicators, boundaries, date filter and the window scan for one instrument."""
        inst = self.cfg.instruments[symbol]
        bt = self.cfg.backtest
        log.info("pipeline_start symbol=%s rows=%d first=%s tick=%s", symbol, len(series), series.earliest_time(), tick_size)

        calculate_sma(series, inst.small_sma_lookback, inst.large_sma_lookback, tick_size)
        log.debug("sma_done symbol=%s", symbol)
        calculate_boundaries(series, inst.left_bars, inst.right_bars, inst.max_boundaries)
        log.debug("boundaries_done symbol=%s", symbol)

        # indicators and boundaries use the full history; only the scan is limited to the date range
        series = series.filter_by_times(bt.start_date, bt.end_date)
        log.info("filtered symbol=%s rows=%d start=%s end=%s", symbol, len(series), bt.start_date.date(), bt.end_date.date())

        if bt.write_processed_data:
            os.makedirs(bt.results_dir, exist_ok=True)
            self.provider.write_processed(series, os.path.join(bt.results_dir, f"processed-{symbol}.csv"))

        engine = StrategyEngine(symbol, inst, tick_size)
        trades: List[Trade] = []
        for session in self.cfg.sessions:
            windows = session.windows(series)
            log.info("windows symbol=%s session=%s count=%d", symbol, session, len(windows))
            for window in windows:
                trades.extend(engine.trades_in_window(window))
        log.info("pipeline_done symbol=%s trades=%d", symbol, len(trades))
        return InstrumentResult(symbol=symbol, rows=len(series), trades=trades)

    async def _one(self, symbol: str, sem: asyncio.Semaphore) -> Optional[Tuple[str, str]]:
        try:
            tick_size = self.ticks.tick_size(symbol)
            async with sem:
                series = await self.provider.fetch_candles(symbol)
                result = await asyncio.to_thread(self.process, symbol, series, tick_size)
            async with self._lock:
                self.results[symbol] = result
            return None
        except FilteredEmpty as e:
            log.warning("instrument_filtered_empty symbol=%s, skipping", symbol)
            return (symbol, repr(e))
        except Exception as e:
            return (symbol, repr(e))

    async def run(self) -> TradeLog:
        symbols = self.cfg.instrument_names()
        if not symbols:
            raise ValueError("No instruments configured.")
        log.info("backtest_start instruments=%s sessions=%s", symbols, [str(s) for s in self.cfg.sessions])

        self.results = {}
        self.failures = []
        self._lock = asyncio.Lock()
        sem = asyncio.Semaphore(max(1, int(self.cfg.backtest.concurrency)))
        results = await asyncio.gather(*[self._one(sym, sem) for sym in symbols])
        self.failures = [r for r in results if r is not None]
        for sym, err in self.failures:
            log.warning("instrument_failed symbol=%s err=%s", sym, err)

        trade_log = TradeLog()
        for sym in symbols:
            res = self.results.get(sym)
            if res is None:
                continue
            for trade in res.trades:
                trade_log.add(trade)
        log.info("backtest_done instruments_ok=%d failed=%d trades=%d", len(self.results), len(self.failures), len(trade_log))
        return trade_log
