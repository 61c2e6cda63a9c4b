"""Tests for entry point wiring."""

from unittest.mock import MagicMock

from intentwire.main import build_engine, parse_console_line
from intentwire.config import DispatchSettings

from .conftest import RecordingRoute


def test_parse_console_line_room():
    assert parse_console_line("#ops bot: shut up\n") == ("ops", "bot: shut up")


def test_parse_console_line_direct():
    assert parse_console_line("help\n") == (None, "help")


def test_parse_console_line_bare_hash_is_text():
    assert parse_console_line("# not a room") == (None, "# not a room")


def test_build_engine_registers_core_commands(tmp_path):
    config = MagicMock()
    config.dispatch_settings = DispatchSettings(responds_to=["bot"], squelch_minutes=2)
    config.plugins_dir = tmp_path / "plugins"
    config.settings = {}
    config.data_dir = tmp_path / "data"

    engine, loader = build_engine(config)

    assert engine.responds_to == ["bot"]
    assert engine.squelch_clock.duration_minutes == 2
    assert loader.plugins == []

    route = RecordingRoute("ops")
    engine.handle_message(route, "bot: shut up")
    assert engine.is_squelched("ops")
