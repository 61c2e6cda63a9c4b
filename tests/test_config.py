"""Tests for configuration loading."""

from pathlib import Path

import pytest

from intentwire.config import Config, DispatchSettings
from intentwire.exceptions import ConfigurationError


def _write_settings(tmp_path: Path, text: str) -> Config:
    (tmp_path / "settings.yaml").write_text(text)
    return Config(config_dir=tmp_path)


def test_defaults_without_settings_file(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = Config(config_dir=tmp_path)
    assert config.responds_to == ["intentwire"]
    assert config.squelch_minutes == 10
    assert config.phrases == {}
    assert config.logging_level == "INFO"


def test_settings_file_values(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = _write_settings(tmp_path, (
        "responds_to: [bot, robo]\n"
        "squelch:\n"
        "  duration_minutes: 3\n"
        "phrases:\n"
        "  '?command_not_found': Huh?\n"
    ))
    settings = config.dispatch_settings
    assert isinstance(settings, DispatchSettings)
    assert settings.responds_to == ["bot", "robo"]
    assert settings.squelch_minutes == 3
    assert config.phrases == {"?command_not_found": "Huh?"}


def test_env_overrides_responds_to(tmp_path, monkeypatch):
    monkeypatch.setenv("INTENTWIRE_RESPONDS_TO", "alpha, beta ,")
    config = _write_settings(tmp_path, "responds_to: [bot]\n")
    assert config.responds_to == ["alpha", "beta"]


def test_single_name_string_accepted(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = _write_settings(tmp_path, "responds_to: bot\n")
    assert config.responds_to == ["bot"]


def test_invalid_squelch_duration_raises(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = _write_settings(tmp_path, "squelch:\n  duration_minutes: 0\n")
    with pytest.raises(ConfigurationError):
        config.dispatch_settings


def test_empty_responds_to_raises(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = _write_settings(tmp_path, "responds_to: []\n")
    with pytest.raises(ConfigurationError):
        config.dispatch_settings


def test_validate_does_not_raise(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = _write_settings(tmp_path, (
        "responds_to: []\n"
        "plugin_allowlist: not-a-list\n"
        "phrases:\n"
        "  no_prefix: text\n"
    ))
    config.validate()


def test_paths_expand_user(tmp_path):
    config = _write_settings(tmp_path, "plugins_dir: ~/iw-plugins\nlog_dir: /var/log/iw\n")
    assert config.plugins_dir == Path.home() / "iw-plugins"
    assert config.log_dir == Path("/var/log/iw")


def test_empty_sections_fall_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("INTENTWIRE_RESPONDS_TO", raising=False)
    config = _write_settings(tmp_path, "squelch:\nlogging:\nphrases:\n")
    assert config.squelch_minutes == 10
    assert config.dispatch_settings.squelch_minutes == 10
    assert config.logging_level == "INFO"
    assert config.logging_subsystem_levels == {}
    assert config.logging_max_file_size_mb == 10
    assert config.logging_backup_count == 5
    assert config.phrases == {}
    config.validate()


def test_non_mapping_section_ignored(tmp_path):
    config = _write_settings(tmp_path, "squelch: 5\nlogging: [debug]\n")
    assert config.squelch_minutes == 10
    assert config.logging_level == "INFO"
