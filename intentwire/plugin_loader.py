"""Plugin discovery, loading, and lifecycle management."""

import dataclasses
import importlib.util
import sys
from pathlib import Path
from typing import List

import structlog

from .engine import DispatchEngine
from .exceptions import PluginError
from .patterns import Command, Listener
from .plugin_base import IntentPlugin, PluginContext

logger = structlog.get_logger("intentwire.plugins")


class PluginLoader:
    """Discovers plugins and registers their commands and listeners.

    Args:
        plugins_dir: Directory containing ``<name>/plugin.py`` packages.
        settings: Full settings dict (for allowlist and plugin sections).
        engine: Engine the plugin specs are registered with.
        data_dir: Base directory handed to plugins for their own files.
    """

    def __init__(
        self,
        plugins_dir: Path,
        settings: dict,
        engine: DispatchEngine,
        data_dir: Path,
    ):
        self.plugins_dir = plugins_dir
        self._settings = settings
        self._engine = engine
        self._data_dir = data_dir
        self.plugins: List[IntentPlugin] = []
        self.command_count = 0
        self.listener_count = 0

    def discover_and_load(self) -> None:
        """Scan plugins_dir for plugin.py files and load them."""
        if not self.plugins_dir.is_dir():
            logger.info("plugin_loader_no_dir", path=str(self.plugins_dir))
            return

        # Add plugins_dir to sys.path so plugins can import each other
        plugins_str = str(self.plugins_dir)
        if plugins_str not in sys.path:
            sys.path.append(plugins_str)

        # Plugin allowlist: if configured, only load listed plugins
        allowlist = self._settings.get("plugin_allowlist")
        if allowlist is not None and not isinstance(allowlist, list):
            logger.error("plugin_allowlist_invalid_type", type=type(allowlist).__name__)
            allowlist = None

        for plugin_dir in sorted(self.plugins_dir.iterdir()):
            if not plugin_dir.is_dir():
                continue
            plugin_file = plugin_dir / "plugin.py"
            if not plugin_file.is_file():
                continue

            plugin_name = plugin_dir.name

            if allowlist is not None and plugin_name not in allowlist:
                logger.warning(
                    "plugin_blocked_not_in_allowlist",
                    plugin=plugin_name,
                    allowlist=allowlist,
                )
                continue

            try:
                self._load_plugin(plugin_name, plugin_file)
            except Exception as e:
                logger.error(
                    "plugin_load_failed",
                    plugin=plugin_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logger.info(
            "plugin_loader_complete",
            plugins_loaded=len(self.plugins),
            commands=self.command_count,
            listeners=self.listener_count,
        )

    def _load_plugin(self, plugin_name: str, plugin_file: Path) -> None:
        """Load a single plugin from its plugin.py file."""
        plugin_config = self._settings.get("plugins", {}).get(plugin_name, {})
        if isinstance(plugin_config, dict) and plugin_config.get("enabled") is False:
            logger.info("plugin_skipped_disabled", plugin=plugin_name)
            return

        module_name = f"{plugin_name}.plugin"
        spec = importlib.util.spec_from_file_location(module_name, plugin_file)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)

        plugin_cls = None
        for attr in module.__dict__.values():
            if (
                isinstance(attr, type)
                and issubclass(attr, IntentPlugin)
                and attr is not IntentPlugin
            ):
                plugin_cls = attr
                break

        if plugin_cls is None:
            logger.warning("plugin_no_class_found", plugin=plugin_name)
            return

        ctx = PluginContext(
            plugin_name=plugin_name,
            settings=self._settings,
            data_dir=self._data_dir / plugin_name,
            is_squelched=self._engine.is_squelched,
        )
        plugin = plugin_cls(ctx)

        # Validate everything before registering anything: registration is append-only
        commands = [self._check_command(plugin_name, c) for c in plugin.commands()]
        listeners = list(plugin.listeners())
        for listener in listeners:
            if not isinstance(listener, Listener):
                raise PluginError(
                    f"listeners() returned {type(listener).__name__}, expected ListenerSpec",
                    plugin=plugin_name,
                )

        self.plugins.append(plugin)
        for command in commands:
            self._engine.register_command(command)
        for listener in listeners:
            self._engine.register_listener(listener)
        self.command_count += len(commands)
        self.listener_count += len(listeners)

        logger.info(
            "plugin_loaded",
            plugin=plugin_name,
            version=plugin.version,
            commands=[c.name or repr(c.trigger) for c in commands],
            listeners=len(listeners),
        )

    def _check_command(self, plugin_name: str, command: Command) -> Command:
        """Validate a command spec; only core_plugins may register core commands."""
        if not isinstance(command, Command):
            raise PluginError(
                f"commands() returned {type(command).__name__}, expected CommandSpec",
                plugin=plugin_name,
            )
        core_plugins = self._settings.get("core_plugins") or []
        if command.core and plugin_name not in core_plugins:
            logger.warning(
                "plugin_core_command_demoted",
                plugin=plugin_name,
                command=command.name or repr(command.trigger),
            )
            return dataclasses.replace(command, core=False)
        return command

    async def start_all(self) -> None:
        """Call on_start() on all loaded plugins."""
        for plugin in self.plugins:
            try:
                await plugin.on_start()
                logger.info("plugin_started", plugin=plugin.name or type(plugin).__name__)
            except Exception as e:
                logger.error(
                    "plugin_start_failed",
                    plugin=plugin.name or type(plugin).__name__,
                    error=str(e),
                )

    async def stop_all(self) -> None:
        """Call on_stop() on all loaded plugins (reverse order)."""
        for plugin in reversed(self.plugins):
            try:
                await plugin.on_stop()
                logger.info("plugin_stopped", plugin=plugin.name or type(plugin).__name__)
            except Exception as e:
                logger.error(
                    "plugin_stop_failed",
                    plugin=plugin.name or type(plugin).__name__,
                    error=str(e),
                )
