from __future__ import annotations

import asyncio
import logging
import os
from datetime import tzinfo
from typing import List, Optional

import pandas as pd

from ..models import Candle, CandleSeries

log = logging.getLogger("csv_provider")

REQUIRED_COLUMNS = ("Time", "Open", "High", "Low", "Close", "Volume")


def frame_to_series(df: pd.DataFrame, tz: Optional[tzinfo] = None) -> CandleSeries:
    """Convert an OHLCV frame into a time-ordered CandleSeries.

    Naive timestamps are taken as UTC; when tz is given every timestamp is
    converted to it, so session clock times are read in that zone.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"candle data is missing columns: {missing}")

    times = pd.to_datetime(df["Time"], utc=True)
    if tz is not None:
        times = times.dt.tz_convert(tz)
    df = df.assign(Time=times).sort_values("Time", kind="stable")
    df = df.drop_duplicates(subset="Time", keep="last")

    candles: List[Candle] = [
        Candle(
            time=row.Time.to_pydatetime(),
            open=float(row.Open),
            high=float(row.High),
            low=float(row.Low),
            close=float(row.Close),
            volume=float(row.Volume),
        )
        for row in df.itertuples(index=False)
    ]
    return CandleSeries(candles)


def series_to_frame(series: CandleSeries) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Time": [c.time for c in series],
            "Open": [c.open for c in series],
            "High": [c.high for c in series],
            "Low": [c.low for c in series],
            "Close": [c.close for c in series],
            "Volume": [c.volume for c in series],
            "LargeSMA": series.large_sma,
            "SmallSMA": series.small_sma,
            "UnbrokenHigh": [str(b) for b in series.high_boundaries],
            "UnbrokenLow": [str(b) for b in series.low_boundaries],
        }
    )


class CsvProvider:
    """Loads <data_dir>/<SYMBOL>.csv candle files."""

    def __init__(self, data_dir: str = "data", tz: Optional[tzinfo] = None):
        self.data_dir = data_dir
        self.tz = tz

    def path_for(self, symbol: str) -> str:
        return os.path.join(self.data_dir, f"{symbol}.csv")

    def load(self, symbol: str) -> CandleSeries:
        path = self.path_for(symbol)
        df = pd.read_csv(path)
        series = frame_to_series(df, self.tz)
        log.info("loaded symbol=%s rows=%d path=%s", symbol, len(series), path)
        return series

    async def fetch_candles(self, symbol: str) -> CandleSeries:
        return await asyncio.to_thread(self.load, symbol)

    @staticmethod
    def write_processed(series: CandleSeries, path: str) -> None:
        series_to_frame(series).to_csv(path, index=False)
        log.info("processed_data_written path=%s rows=%d", path, len(series))
