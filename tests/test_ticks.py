import pytest

from strongbow_backtester.errors import MissingTickSize
from strongbow_backtester.ticks import DEFAULT_ASSET_TICKS, TickTable


def test_builtin_ticks():
    table = TickTable.from_config()
    assert table.tick_size("ES") == 0.25
    assert table.tick_size("EC") == 0.00005
    assert len(table) == len(DEFAULT_ASSET_TICKS)


def test_config_adds_symbols_but_never_overrides():
    table = TickTable.from_config({"RTY": 0.1, "ES": 1.0})
    assert table.tick_size("RTY") == 0.1
    assert table.tick_size("ES") == 0.25
    assert "RTY" in table


def test_missing_symbol():
    with pytest.raises(MissingTickSize) as exc:
        TickTable.from_config().tick_size("ZZZ")
    assert exc.value.symbol == "ZZZ"
    assert "ZZZ" in str(exc.value)


def test_builtin_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_ASSET_TICKS["ES"] = 1.0  # type: ignore[index]
