"""Configuration management for intentwire.

Loads YAML settings (settings.yaml) and environment variables (.env) into
a Config object. Property getters provide safe access with sensible
defaults for dispatch, squelch, phrases, plugins and logging.

Key classes:
    Config: Central configuration manager.
    DispatchSettings: Validated settings the DispatchEngine is built from.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .squelch import DEFAULT_SQUELCH_MINUTES

logger = structlog.get_logger("intentwire.dispatch")

DEFAULT_NAME = "intentwire"


class DispatchSettings(BaseModel):
    """Settings consumed by the DispatchEngine."""
    responds_to: List[str] = Field(..., min_length=1, description="Names that address the bot")
    squelch_minutes: float = Field(default=DEFAULT_SQUELCH_MINUTES, gt=0)


class Config:
    """Central configuration manager for intentwire.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = config_dir

        env_file = config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def _section(self, name: str) -> dict:
        """A nested settings block; empty or non-mapping values read as {}."""
        section = self.settings.get(name) or {}
        if not isinstance(section, dict):
            logger.error("config_section_invalid_type", section=name, type=type(section).__name__)
            return {}
        return section

    @property
    def responds_to(self) -> List[str]:
        """Names and aliases the bot answers to.

        Env var INTENTWIRE_RESPONDS_TO (comma separated) takes precedence.
        """
        env_names = os.environ.get("INTENTWIRE_RESPONDS_TO")
        if env_names:
            return [n.strip() for n in env_names.split(",") if n.strip()]
        names = self.settings.get("responds_to", [DEFAULT_NAME])
        if isinstance(names, str):
            return [names]
        if not isinstance(names, list):
            logger.error("responds_to_invalid_type", type=type(names).__name__)
            return [DEFAULT_NAME]
        return [str(n) for n in names]

    @property
    def squelch_minutes(self) -> float:
        """Squelch window length (default 10 minutes)."""
        squelch_config = self._section("squelch")
        return squelch_config.get("duration_minutes", DEFAULT_SQUELCH_MINUTES)

    @property
    def dispatch_settings(self) -> DispatchSettings:
        """Validated dispatch settings.

        Raises:
            ConfigurationError: If responds_to is empty or the squelch
                duration is not a positive number.
        """
        try:
            return DispatchSettings(
                responds_to=self.responds_to,
                squelch_minutes=self.squelch_minutes,
            )
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid dispatch settings",
                setting_name="responds_to/squelch",
                errors=e.error_count(),
            ) from e

    @property
    def phrases(self) -> Dict[str, str]:
        """Reply phrase overrides, keyed by ``?message_key``."""
        phrases = self.settings.get("phrases") or {}
        if not isinstance(phrases, dict):
            logger.error("phrases_invalid_type", type=type(phrases).__name__)
            return {}
        return {str(k): str(v) for k, v in phrases.items()}

    def validate(self):
        """Validate critical settings at startup.

        Logs warnings/errors but does not raise -- the bot starts with
        defaults where it can.
        """
        try:
            self.dispatch_settings
        except ConfigurationError as e:
            logger.error("config_invalid_dispatch_settings", error=str(e))

        for key in self.phrases:
            if not key.startswith("?"):
                logger.warning("config_phrase_key_without_prefix", key=key)

        allowlist = self.settings.get("plugin_allowlist")
        if allowlist is not None and not isinstance(allowlist, list):
            logger.error("plugin_allowlist_invalid_type", type=type(allowlist).__name__)

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self._section("logging")
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> Dict[str, str]:
        """Per-subsystem level overrides, e.g. ``{"dispatch": "DEBUG"}``."""
        log_config = self._section("logging")
        return log_config.get("subsystems", {}) or {}

    @property
    def logging_max_file_size_mb(self) -> int:
        log_config = self._section("logging")
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        log_config = self._section("logging")
        return log_config.get("backup_count", 5)

    @property
    def plugins_dir(self) -> Path:
        """Directory scanned for ``<name>/plugin.py``."""
        configured = self.settings.get("plugins_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "plugins"

    @property
    def data_dir(self) -> Path:
        """Base directory for plugin data."""
        configured = self.settings.get("data_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(self.config_dir).parent / "data"


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
