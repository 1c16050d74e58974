from datetime import datetime, timezone

import pytest

from strongbow_backtester.config import InstrumentConfig, config_from_dict, load_config


def test_defaults():
    cfg = config_from_dict({})
    assert cfg.instruments == {}
    assert cfg.backtest.start_date == datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert cfg.backtest.end_date > datetime.now(timezone.utc)
    assert [s.name for s in cfg.sessions] == ["New York"]
    assert cfg.app.log_level == "INFO"


def test_instrument_defaults_and_overrides():
    cfg = config_from_dict(
        {
            "instruments": {
                "ES": {"minimum_rr": 2.5, "trailing_stop_amount": 4},
                "NQ": None,
            }
        }
    )
    assert cfg.instrument_names() == ["ES", "NQ"]
    es = cfg.instruments["ES"]
    assert es.minimum_rr == 2.5
    assert es.trailing_stop
    assert es.small_sma_lookback == 20
    assert cfg.instruments["NQ"] == InstrumentConfig()
    assert not cfg.instruments["NQ"].trailing_stop


def test_unknown_instrument_key_rejected():
    with pytest.raises(TypeError):
        config_from_dict({"instruments": {"ES": {"no_such_setting": 1}}})


def test_dates_and_sessions():
    cfg = config_from_dict(
        {
            "backtest": {"start_date": "2021-02-03", "end_date": "2021-03-04"},
            "sessions": [{"name": "Asia", "open": "22:00", "close": "06:00"}],
            "asset_ticks": {"RTY": "0.1"},
        }
    )
    assert cfg.backtest.start_date == datetime(2021, 2, 3, tzinfo=timezone.utc)
    assert cfg.backtest.end_date == datetime(2021, 3, 4, tzinfo=timezone.utc)
    assert cfg.sessions[0].spans_midnight
    assert cfg.asset_ticks == {"RTY": 0.1}


def test_bad_date():
    with pytest.raises(ValueError, match="backtest.start_date"):
        config_from_dict({"backtest": {"start_date": "03/02/2021"}})


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("BACKTEST_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("BACKTEST_DATA_DIR", "/srv/candles")
    cfg = config_from_dict({"backtest": {"data_dir": "data"}})
    assert cfg.app.log_level == "DEBUG"
    assert cfg.backtest.data_dir == "/srv/candles"


def test_load_config_missing_file_uses_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "nope.yaml"))
    assert cfg.instruments == {}


def test_load_config_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "backtest:\n"
        "  start_date: 2021-01-04\n"
        "  concurrency: 2\n"
        "instruments:\n"
        "  ES:\n"
        "    minimum_rr: 1.5\n",
        encoding="utf-8",
    )
    cfg = load_config(str(path))
    # YAML parses the bare date itself
    assert cfg.backtest.start_date == datetime(2021, 1, 4, tzinfo=timezone.utc)
    assert cfg.backtest.concurrency == 2
    assert cfg.instruments["ES"].minimum_rr == 1.5
