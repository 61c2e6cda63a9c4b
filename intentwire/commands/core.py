"""Built-in commands.

Handles: shut up / squelch, wake up / unsquelch, squelch status, help.
The squelch commands are core so they keep working while squelched.
"""

from __future__ import annotations

import math
from typing import List, Optional

import structlog

from ..engine import DispatchEngine
from ..messages import NOT_SQUELCHED, SQUELCH_STATUS, SQUELCHED, UNSQUELCHED
from ..patterns import Command
from ..route import Route

logger = structlog.get_logger("intentwire.dispatch")

DM_SQUELCH_NOTICE = "Squelch only applies to group conversations."


class CoreCommandHandler:
    """Core squelch and help commands bound to one engine."""

    def __init__(self, engine: DispatchEngine):
        self.engine = engine

    def get_commands(self) -> List[Command]:
        return [
            Command(r"(?i)(shut up|squelch|be quiet)\b", self.handle_squelch, core=True, name="squelch"),
            Command(r"(?i)(wake up|unsquelch)\b", self.handle_unsquelch, core=True, name="unsquelch"),
            Command(r"(?i)squelch status\b", self.handle_status, core=True, name="squelch status"),
            Command(r"(?i)help\b", self.handle_help, name="help"),
        ]

    def register(self) -> None:
        for command in self.get_commands():
            self.engine.register_command(command)

    # --- Core commands ---

    def handle_squelch(self, route: Route, args: List[str]) -> None:
        """Mute the bot in the current conversation.

        Usage::

            @bot: shut up

        Args:
            route: Conversation the command came from.
            args: Unused.
        """
        if route.conversation_id is None:
            route.send(DM_SQUELCH_NOTICE)
            return
        self.engine.squelch(route.conversation_id, True)
        route.send(SQUELCHED, _fmt_minutes(self.engine.squelch_clock.duration_minutes * 60))

    def handle_unsquelch(self, route: Route, args: List[str]) -> None:
        """Lift the squelch in the current conversation immediately."""
        if route.conversation_id is None:
            route.send(DM_SQUELCH_NOTICE)
            return
        self.engine.squelch(route.conversation_id, False)
        route.send(UNSQUELCHED)

    def handle_status(self, route: Route, args: List[str]) -> None:
        """Report the remaining squelch time.

        Usage::

            @bot: squelch status
            squelch status "room name"     (direct message)

        Args:
            route: Conversation the command came from.
            args: Optional conversation id to check instead of the current one.
        """
        conversation: Optional[str] = args[0] if args else route.conversation_id
        remaining = self.engine.squelch_clock.remaining(conversation)
        if remaining <= 0:
            route.send(NOT_SQUELCHED)
        else:
            route.send(SQUELCH_STATUS, _fmt_minutes(remaining))

    def handle_help(self, route: Route, args: List[str]) -> None:
        """List the names of all registered commands."""
        names = [c.name for c in self.engine.registry.commands if c.name]
        route.send("Commands: " + ", ".join(names))


def _fmt_minutes(seconds: float) -> int:
    return int(math.ceil(seconds / 60))
