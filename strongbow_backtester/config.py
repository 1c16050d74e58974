from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging
import os

import yaml

from .sessions import Session

log = logging.getLogger("config")


def _env_override(value: Any, env_key: str) -> Any:
    env_val = os.getenv(env_key)
    if env_val is None:
        return value
    # basic parsing
    if isinstance(value, bool):
        return env_val.strip().lower() in ("1", "true", "yes", "y", "on")
    if isinstance(value, int):
        try:
            return int(env_val)
        except ValueError:
            return value
    if isinstance(value, float):
        try:
            return float(env_val)
        except ValueError:
            return value
    return env_val


def _parse_date(value: Any, key: str) -> datetime:
    if isinstance(value, datetime):
        d = value
    elif isinstance(value, date):
        d = datetime(value.year, value.month, value.day)
    else:
        try:
            d = datetime.strptime(str(value).strip(), "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"{key} must be a YYYY-MM-DD date, got {value!r}") from None
    return d if d.tzinfo is not None else d.replace(tzinfo=timezone.utc)


def _default_start() -> datetime:
    return datetime(2020, 1, 1, tzinfo=timezone.utc)


def _default_end() -> datetime:
    tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, tzinfo=timezone.utc)


@dataclass
class InstrumentConfig:
    minimum_rr: float = 1.0
    stop_size_addition: int = 2  # ticks added beyond the entry candle's wick
    trailing_stop_amount: int = 0  # ticks; > 0 enables the trailing stop
    small_sma_lookback: int = 20
    large_sma_lookback: int = 50
    left_bars: int = 5
    right_bars: int = 5
    max_boundaries: int = 50
    move_to_break_even_at: float = 0.0  # percent of entry; 0 disables

    @property
    def trailing_stop(self) -> bool:
        return self.trailing_stop_amount > 0


@dataclass
class BacktestConfig:
    start_date: datetime = field(default_factory=_default_start)
    end_date: datetime = field(default_factory=_default_end)
    starting_balance: float = 10000.0
    data_dir: str = "data"
    results_dir: str = "backtesting_results"
    write_processed_data: bool = False
    concurrency: int = 4
    timezone: str = "UTC"


@dataclass
class AppConfig:
    name: str = "Strongbow Backtester"
    log_level: str = "INFO"
    log_file: str = "back-tester.log"


def _default_sessions() -> List[Session]:
    # Session times are candle CLOSE times, so an open at 02:00 picks up the 02:00 close.
    return [Session(name="New York", open="02:00", close="16:00")]


@dataclass
class Config:
    app: AppConfig = field(default_factory=AppConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    sessions: List[Session] = field(default_factory=_default_sessions)
    instruments: Dict[str, InstrumentConfig] = field(default_factory=dict)
    asset_ticks: Dict[str, float] = field(default_factory=dict)

    def instrument_names(self) -> List[str]:
        return list(self.instruments)


def config_from_dict(raw: Optional[Dict[str, Any]]) -> Config:
    raw = raw or {}

    app = AppConfig(**(raw.get("app") or {}))

    bt_raw = dict(raw.get("backtest") or {})
    if "start_date" in bt_raw:
        bt_raw["start_date"] = _parse_date(bt_raw["start_date"], "backtest.start_date")
    if "end_date" in bt_raw:
        bt_raw["end_date"] = _parse_date(bt_raw["end_date"], "backtest.end_date")
    backtest = BacktestConfig(**bt_raw)

    sessions_raw = raw.get("sessions")
    sessions = [Session(**s) for s in sessions_raw] if sessions_raw else _default_sessions()

    instruments = {
        str(name): InstrumentConfig(**(values or {}))
        for name, values in (raw.get("instruments") or {}).items()
    }
    asset_ticks = {str(k): float(v) for k, v in (raw.get("asset_ticks") or {}).items()}

    cfg = Config(
        app=app,
        backtest=backtest,
        sessions=sessions,
        instruments=instruments,
        asset_ticks=asset_ticks,
    )

    # env overrides (useful on servers)
    cfg.app.log_level = _env_override(cfg.app.log_level, "BACKTEST_LOG_LEVEL")
    cfg.backtest.data_dir = _env_override(cfg.backtest.data_dir, "BACKTEST_DATA_DIR")
    cfg.backtest.results_dir = _env_override(cfg.backtest.results_dir, "BACKTEST_RESULTS_DIR")
    return cfg


def load_config(path: str) -> Config:
    if not os.path.exists(path):
        log.warning("config_missing path=%s using defaults", path)
        return config_from_dict({})
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return config_from_dict(raw)
