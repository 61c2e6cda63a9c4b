"""Plugin base class and types for intentwire extensibility."""

import os
from pathlib import Path
from typing import Any, Callable, List, Optional

import structlog

from .patterns import Command, Listener

# Plugins describe their triggers with the same records the engine stores
CommandSpec = Command
ListenerSpec = Listener


class PluginContext:
    """Interface exposed to plugins for interacting with the bot.

    Plugins receive this in their constructor. They should never
    import the engine directly.
    """

    def __init__(
        self,
        plugin_name: str,
        settings: dict,
        data_dir: Path,
        is_squelched: Callable[[Optional[str]], bool],
    ):
        self.plugin_name = plugin_name
        # Only expose the plugin's own config section, not full settings
        self._plugin_settings = settings.get("plugins", {}).get(plugin_name, {}) or {}
        self.data_dir = data_dir
        self._is_squelched = is_squelched
        self.logger = structlog.get_logger("intentwire.plugins").bind(plugin=plugin_name)

    def get_config(self, key: str, default: Any = None) -> Any:
        """Read a value from plugins.<plugin_name>.<key> in settings.yaml."""
        return self._plugin_settings.get(key, default)

    def get_env(self, key: str) -> Optional[str]:
        """Read an environment variable."""
        return os.environ.get(key)

    @property
    def enabled(self) -> bool:
        """Whether this plugin is enabled in config (default True)."""
        return self._plugin_settings.get("enabled", True)

    def is_squelched(self, conversation_id: Optional[str]) -> bool:
        """Read-only view of the engine's squelch state."""
        return self._is_squelched(conversation_id)


class IntentPlugin:
    """Base class for all intentwire plugins.

    Subclass this and override the methods you need.
    Place your plugin in plugins/<name>/plugin.py.
    """

    name: str = ""
    description: str = ""
    version: str = "1.0.0"

    def __init__(self, ctx: PluginContext):
        self.ctx = ctx

    def commands(self) -> List[CommandSpec]:
        """Return command specs to register, in order.

        Handler signature: (route, args: list[str]) -> None | awaitable
        """
        return []

    def listeners(self) -> List[ListenerSpec]:
        """Return listener specs to register, in order.

        Handler signature: (route, message: str) -> bool. Return True
        when the message is fully handled.
        """
        return []

    async def on_start(self) -> None:
        """Called once the engine is ready. Initialize resources."""
        pass

    async def on_stop(self) -> None:
        """Called during shutdown. Clean up resources."""
        pass
