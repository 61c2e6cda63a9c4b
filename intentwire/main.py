"""Main entry point for intentwire.

Initializes logging in two phases (defaults then config-driven), builds
the DispatchEngine with core commands and plugins, and feeds it lines
from stdin through a console transport until EOF or SIGTERM/SIGINT.

Console input format:
    text             direct message from the local user
    #room text       message posted in conversation "room"

Key functions:
    build_engine: Wire engine, core commands and plugin loader from config.
    main: Async entry point.
    run: Synchronous wrapper for the ``intentwire`` console script.
"""

import asyncio
import getpass
import signal
import sys
from typing import Optional, Tuple

import structlog

from .logging_config import setup_logging


def parse_console_line(line: str) -> Tuple[Optional[str], str]:
    """Split ``#room text`` into (room, text); plain lines are DMs."""
    line = line.rstrip("\n")
    if line.startswith("#"):
        room, _, text = line[1:].partition(" ")
        if room:
            return room, text
    return None, line


def build_engine(config):
    """Create the engine, register core commands, and load plugins."""
    from .commands import CoreCommandHandler
    from .engine import DispatchEngine
    from .plugin_loader import PluginLoader

    settings = config.dispatch_settings
    engine = DispatchEngine(
        responds_to=settings.responds_to,
        squelch_minutes=settings.squelch_minutes,
    )
    CoreCommandHandler(engine).register()

    loader = PluginLoader(
        plugins_dir=config.plugins_dir,
        settings=config.settings,
        engine=engine,
        data_dir=config.data_dir / "plugins",
    )
    loader.discover_and_load()
    return engine, loader


async def read_console(engine, phrasebook, shutdown_event: asyncio.Event) -> None:
    """Emit each stdin line as an inbound message until EOF."""
    from .route import ConsoleRoute

    loop = asyncio.get_running_loop()
    sender = getpass.getuser()
    while not shutdown_event.is_set():
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        room, text = parse_console_line(line)
        if not text.strip():
            continue
        engine.events.emit(ConsoleRoute(sender, room, phrasebook), text)
    shutdown_event.set()


async def main():
    """Main async entry point."""
    setup_logging()
    logger = structlog.get_logger("intentwire")

    logger.info("intentwire_starting", version="0.1.0")

    from .config import get_config
    from .isolation import install_task_factory
    from .messages import Phrasebook

    config = get_config()
    config.validate()

    setup_logging(config)

    engine, loader = build_engine(config)
    phrasebook = Phrasebook(config.phrases)
    await loader.start_all()

    loop = asyncio.get_running_loop()
    install_task_factory(loop)
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: add_signal_handler not supported.
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    reader = asyncio.create_task(read_console(engine, phrasebook, shutdown_event))
    try:
        await shutdown_event.wait()
        reader.cancel()
        try:
            await reader
        except asyncio.CancelledError:
            pass
    except Exception as e:
        logger.error("bot_error", error=str(e))
        raise
    finally:
        await loader.stop_all()
        logger.info("intentwire_stopped")


def run():
    """Synchronous entry point for the ``intentwire`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
