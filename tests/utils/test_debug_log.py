from pygbcore.utils import debug
from pygbcore.utils.debug import debug_enabled, debug_log, parse_categories, reset_debug_categories


def test_parse_categories() -> None:
    assert parse_categories("") == frozenset()
    assert parse_categories("CPU, bus") == {"cpu", "bus"}
    assert parse_categories("cpu loader") == {"cpu", "loader"}
    assert parse_categories("all,-bus") == {"cpu", "loader", "trace"}
    assert parse_categories("-cpu cpu") == frozenset()


def test_debug_disabled_without_environment(monkeypatch, capsys):
    monkeypatch.delenv(debug.ENV_VAR, raising=False)
    reset_debug_categories()

    debug_log("cpu", "pc=%04x", 0x100)

    assert debug_enabled("cpu") is False
    assert capsys.readouterr().out == ""


def test_debug_categories_from_environment(monkeypatch, capsys):
    monkeypatch.setenv(debug.ENV_VAR, "CPU, bus")
    reset_debug_categories()
    try:
        debug_log("cpu", "pc=%04x", 0x100)
        debug_log("trace", "hidden")

        assert debug_enabled("bus") is True
        assert debug_enabled("loader") is False
        assert capsys.readouterr().out == "[cpu] pc=0100\n"
    finally:
        monkeypatch.delenv(debug.ENV_VAR)
        reset_debug_categories()


def test_debug_all_and_bad_format(monkeypatch, capsys):
    monkeypatch.setenv(debug.ENV_VAR, "all")
    reset_debug_categories()
    try:
        debug_log("loader", "value=%d", "x")

        assert "[loader] value=%d ('x',)" in capsys.readouterr().out
    finally:
        monkeypatch.delenv(debug.ENV_VAR)
        reset_debug_categories()
