"""Message intent dispatch.

Decides whether an inbound message is addressed to the bot, runs the best
matching command or the matching listeners, applies the squelch policy and
answers with a fallback reply when an addressed message was not understood.

Routing order for one message:
    1. Address check: direct messages are always commands; in rooms the
       message must start with an address prompt (``@name: ``), which is
       stripped before matching.
    2. Commands (addressed messages only): longest start-anchored match.
       A match ends dispatch.
    3. Listeners (conversation not squelched): unanchored matches against
       the original text, longest first, until one returns truthy.
    4. Fallback (addressed messages only): "not understood", or a private
       "silenced" notice when squelched.

Key classes:
    DispatchOutcome: What happened to a message.
    DispatchEngine: Registration API and the dispatch pass.
"""

import inspect
import re
from enum import Enum
from typing import List, Optional, Pattern, Sequence, Tuple, Union

import structlog

from .events import MessageEvents
from .isolation import FaultIsolator, IsolationScope, spawn
from .messages import COMMAND_BUT_SILENCED, COMMAND_NOT_FOUND
from .patterns import (
    Command,
    CommandHandler,
    Listener,
    ListenerHandler,
    PatternRegistry,
    TriggerLike,
)
from .route import Route
from .squelch import DEFAULT_SQUELCH_MINUTES, SquelchClock
from .tokenizer import split_args

logger = structlog.get_logger("intentwire.dispatch")


class DispatchOutcome(str, Enum):
    """Result of one dispatch pass."""
    COMMAND = "command"
    LISTENER = "listener"
    COMMAND_NOT_FOUND = "command_not_found"
    COMMAND_BUT_SILENCED = "command_but_silenced"
    UNHANDLED = "unhandled"


def build_address_prompts(names: Sequence[str]) -> List[Pattern[str]]:
    """Compile ``^@?<name>:? `` for every name the bot answers to."""
    return [re.compile(r"^@?" + re.escape(name) + r":? ") for name in names]


class DispatchEngine:
    """Routes inbound messages to commands and listeners.

    Args:
        responds_to: Names/aliases that address the bot in shared rooms.
        events: Inbound event hub; ``handle_message`` is subscribed once.
        squelch: Squelch clock to use. A new one is created if omitted.
        squelch_minutes: Window length for a newly created clock.
        isolator: Fault isolator wrapping each message.
    """

    def __init__(
        self,
        responds_to: Sequence[str],
        events: Optional[MessageEvents] = None,
        squelch: Optional[SquelchClock] = None,
        squelch_minutes: float = DEFAULT_SQUELCH_MINUTES,
        isolator: Optional[FaultIsolator] = None,
    ):
        self.responds_to = list(responds_to)
        self.prompts = build_address_prompts(self.responds_to)
        self.registry = PatternRegistry()
        self.squelch_clock = squelch or SquelchClock(squelch_minutes)
        self.isolator = isolator or FaultIsolator()
        self.events = events or MessageEvents()
        self.events.on_message(self.handle_message)

    # --- Registration ---

    def register_command(
        self,
        trigger: Union[TriggerLike, Command],
        handler: Optional[CommandHandler] = None,
        core: bool = False,
        name: str = "",
    ) -> Command:
        """Register a command. Accepts a prebuilt Command or its fields."""
        if isinstance(trigger, Command):
            command = trigger
        else:
            if handler is None:
                raise TypeError("register_command() requires a handler")
            command = Command(trigger=trigger, handler=handler, core=core, name=name)
        self.registry.add_command(command)
        logger.debug(
            "command_registered",
            command=command.name or repr(command.trigger),
            core=command.core,
        )
        return command

    def register_listener(
        self,
        trigger: Union[TriggerLike, Listener],
        handler: Optional[ListenerHandler] = None,
        name: str = "",
    ) -> Listener:
        """Register a listener. Accepts a prebuilt Listener or its fields."""
        if isinstance(trigger, Listener):
            listener = trigger
        else:
            if handler is None:
                raise TypeError("register_listener() requires a handler")
            listener = Listener(trigger=trigger, handler=handler, name=name)
        self.registry.add_listener(listener)
        logger.debug("listener_registered", listener=listener.name or repr(listener.trigger))
        return listener

    # --- Squelch ---

    def squelch(self, conversation_id: Optional[str], on: bool = True) -> None:
        self.squelch_clock.squelch(conversation_id, on)

    def is_squelched(self, conversation_id: Optional[str]) -> bool:
        return self.squelch_clock.is_squelched(conversation_id)

    # --- Dispatch ---

    def handle_message(self, route: Route, message: str) -> IsolationScope:
        """Dispatch one inbound message inside its own isolation scope."""
        return self.isolator.run(route, message, self._dispatch, route, message)

    def strip_address(self, route: Route, message: str) -> Tuple[bool, str]:
        """Return (is_command, working_text) for a message.

        Direct messages are always commands. Otherwise the first matching
        address prompt marks the message as a command and is removed.
        """
        is_command = route.conversation_id is None
        for prompt in self.prompts:
            m = prompt.match(message)
            if m:
                return True, message[m.end():]
        return is_command, message

    def _dispatch(self, route: Route, message: str) -> DispatchOutcome:
        conversation = route.conversation_id
        is_command, text = self.strip_address(route, message)
        squelched = self.is_squelched(conversation)

        if is_command:
            match = self.registry.match_command(text, squelched)
            if match is not None:
                logger.info(
                    "command_matched",
                    command=match.command.name or repr(match.command.trigger),
                    conversation=conversation,
                    matched_length=match.length,
                )
                args = split_args(match.remainder)
                self._track(match.command.handler(route, args))
                return DispatchOutcome.COMMAND

        if not squelched:
            for candidate in self.registry.match_listeners(message):
                result = candidate.listener.handler(route, message)
                if self._track(result):
                    # Async listeners cannot signal completion; keep going
                    logger.debug("listener_async_result", listener=candidate.listener.name)
                    continue
                if result:
                    logger.info(
                        "listener_handled",
                        listener=candidate.listener.name or repr(candidate.listener.trigger),
                        conversation=conversation,
                    )
                    return DispatchOutcome.LISTENER

        if not is_command:
            return DispatchOutcome.UNHANDLED

        if self.is_squelched(conversation):
            logger.info("command_received_while_squelched", conversation=conversation)
            self._track(route.direct().send(COMMAND_BUT_SILENCED, conversation))
            return DispatchOutcome.COMMAND_BUT_SILENCED

        logger.info("command_not_found", conversation=conversation, text=text[:100])
        self._track(route.send(COMMAND_NOT_FOUND))
        return DispatchOutcome.COMMAND_NOT_FOUND

    @staticmethod
    def _track(result) -> bool:
        """Attach an awaitable result to the current scope. True if it was one."""
        if not inspect.isawaitable(result):
            return False
        spawn(result)
        return True
