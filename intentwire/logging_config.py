"""Logging configuration for intentwire.

structlog renders events; stdlib logging routes them. Every dispatch event
lands in three places:

    stderr                      console (stdout is the console transport)
    logs/intentwire.log         everything under the ``intentwire`` logger
    logs/<subsystem>.log        ``intentwire.dispatch`` / ``intentwire.plugins``

Subsystem levels can be raised or lowered independently, e.g. DEBUG for
dispatch while plugins stay at INFO.
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

SUBSYSTEMS = ("dispatch", "plugins")

LOGGER_PREFIX = "intentwire"

# Inbound chat text can be arbitrarily long
MAX_MESSAGE_CHARS = 200

DEFAULT_LOG_DIR = Path(__file__).parent.parent / "logs"


def truncate_message_text(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that clips ``message``/``text`` fields."""
    for key in ("message", "text"):
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_MESSAGE_CHARS:
            event_dict[key] = value[:MAX_MESSAGE_CHARS] + "..."
    return event_dict


@dataclass(frozen=True)
class LogSettings:
    """Resolved logging options.

    ``cache_loggers`` is only switched on once real config is applied, so
    loggers bound during bootstrap pick up the final configuration.
    """

    log_dir: Path = DEFAULT_LOG_DIR
    level: int = logging.INFO
    subsystem_levels: Dict[str, int] = field(default_factory=dict)
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    cache_loggers: bool = False

    @classmethod
    def from_config(cls, config) -> "LogSettings":
        level = _parse_level(config.logging_level, logging.INFO)
        overrides = {
            name: _parse_level(value, level)
            for name, value in config.logging_subsystem_levels.items()
        }
        return cls(
            log_dir=config.log_dir,
            level=level,
            subsystem_levels=overrides,
            max_bytes=int(config.logging_max_file_size_mb) * 1024 * 1024,
            backup_count=int(config.logging_backup_count),
            cache_loggers=True,
        )

    def level_for(self, subsystem: str) -> int:
        return self.subsystem_levels.get(subsystem, self.level)


def _parse_level(name: Any, default: int) -> int:
    """Map a level name like ``"debug"`` to its number; unknown names -> default."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _prepare_log_dir(log_dir: Path) -> bool:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        # structlog is not configured yet; stderr is all we have
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Logging to the console only.",
            file=sys.stderr,
        )
        return False
    return True


def _rotating_handler(
    path: Path, level: int, settings: LogSettings, formatter: logging.Formatter
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _reset_logger(name: Optional[str], level: int) -> logging.Logger:
    """Fetch a stdlib logger, drop old handlers, keep propagation on."""
    target = logging.getLogger(name)
    target.setLevel(level)
    target.handlers.clear()
    target.propagate = True
    return target


def setup_logging(config=None) -> None:
    """Route structlog output to the console and rotating log files.

    Safe to call twice: once at import time with defaults, again after
    the Config is loaded.

    Args:
        config: Optional Config instance supplying levels, paths and
            rotation limits.
    """
    settings = LogSettings.from_config(config) if config is not None else LogSettings()
    files_enabled = _prepare_log_dir(settings.log_dir)

    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    root = _reset_logger(None, logging.DEBUG)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(settings.level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root.addHandler(console)

    combined = _reset_logger(LOGGER_PREFIX, logging.DEBUG)
    if files_enabled:
        combined.addHandler(_rotating_handler(
            settings.log_dir / f"{LOGGER_PREFIX}.log", settings.level, settings, file_formatter,
        ))

    for subsystem in SUBSYSTEMS:
        level = settings.level_for(subsystem)
        sub_logger = _reset_logger(f"{LOGGER_PREFIX}.{subsystem}", level)
        if files_enabled:
            sub_logger.addHandler(_rotating_handler(
                settings.log_dir / f"{subsystem}.log", level, settings, file_formatter,
            ))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            truncate_message_text,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=settings.cache_loggers,
    )
