from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from .config import load_config
from .formatters import format_summary
from .runner import BacktestRunner

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _setup_logging(level: str, log_file: Optional[str] = None) -> None:
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)
    console = logging.StreamHandler()
    console.setLevel(lvl)
    handlers = [console]
    if log_file:
        # full per-candle trace goes to the file, truncated on every run
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)
    logging.basicConfig(
        level=logging.DEBUG if log_file else lvl,
        format=_FORMAT,
        handlers=handlers,
        force=True,
    )


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Strongbow Backtester - session boundary strategy backtests")
    p.add_argument("--config", default="config.yaml", help="Path to YAML config")
    p.add_argument("--no-write", action="store_true", help="Do not write the trade log CSV")
    args = p.parse_args(argv)

    cfg = load_config(args.config)
    _setup_logging(cfg.app.log_level, cfg.app.log_file)
    log = logging.getLogger("main")

    runner = BacktestRunner(cfg)
    try:
        trade_log = asyncio.run(runner.run())
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        log.exception("fatal err=%s", e)
        return 1

    if not runner.results:
        log.error("no backtester data was loaded. Please ensure that %s contains valid data files.", cfg.backtest.data_dir)
        return 1

    for line in format_summary(trade_log, cfg.backtest.starting_balance).splitlines():
        log.info(line)

    if not args.no_write:
        try:
            trade_log.write(cfg.backtest.results_dir)
        except OSError as e:
            log.error("trade_log_write_failed err=%s", e)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
