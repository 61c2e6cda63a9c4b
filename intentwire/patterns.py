"""Command and listener records, triggers, and matching.

Commands are anchored at the start of the (address-stripped) text and the
longest match wins. Listeners match anywhere and are tried longest match
first until one of them reports the message as handled.

Key classes:
    Trigger: Abstract pattern with start-anchored and unanchored matching.
    RegexTrigger: Trigger backed by a compiled regular expression.
    Command, Listener: Immutable registrations.
    PatternRegistry: Ordered, append-only collections plus matching.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Pattern, Union

import structlog

logger = structlog.get_logger("intentwire.dispatch")

# handler(route, args) for commands, handler(route, message) -> bool for
# listeners. Either may return an awaitable instead.
CommandHandler = Callable[[Any, List[str]], Any]
ListenerHandler = Callable[[Any, str], Any]


class Trigger(ABC):
    """A pattern that can be tested against message text."""

    @abstractmethod
    def match_at_start(self, text: str) -> Optional[str]:
        """Return the substring matched at offset 0, or None."""

    @abstractmethod
    def search(self, text: str) -> Optional[str]:
        """Return the first substring matched anywhere in text, or None."""


class RegexTrigger(Trigger):
    """Trigger backed by ``re``."""

    def __init__(self, pattern: Union[str, Pattern[str]]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def match_at_start(self, text: str) -> Optional[str]:
        m = self.pattern.match(text)
        return m.group(0) if m else None

    def search(self, text: str) -> Optional[str]:
        m = self.pattern.search(text)
        return m.group(0) if m else None

    def __repr__(self) -> str:
        return f"RegexTrigger({self.pattern.pattern!r})"


TriggerLike = Union[str, Pattern[str], Trigger]


def as_trigger(trigger: TriggerLike) -> Trigger:
    """Coerce a regex string or compiled pattern into a Trigger."""
    if isinstance(trigger, Trigger):
        return trigger
    return RegexTrigger(trigger)


@dataclass(frozen=True)
class Command:
    """A registered command.

    Attributes:
        trigger: Pattern tested at the start of the addressed text.
        handler: Called as ``handler(route, args)``.
        core: Core commands still run while the conversation is squelched.
        name: Label for logs and help output.
    """
    trigger: Trigger
    handler: CommandHandler
    core: bool = False
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "trigger", as_trigger(self.trigger))


@dataclass(frozen=True)
class Listener:
    """A registered listener.

    Attributes:
        trigger: Pattern searched anywhere in the message.
        handler: Called as ``handler(route, message)``; a truthy return
            means the message was handled and no further listeners run.
        name: Label for logs.
    """
    trigger: Trigger
    handler: ListenerHandler
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "trigger", as_trigger(self.trigger))


@dataclass(frozen=True)
class CommandMatch:
    command: Command
    matched: str
    remainder: str

    @property
    def length(self) -> int:
        return len(self.matched)


@dataclass(frozen=True)
class ListenerMatch:
    listener: Listener
    matched: str

    @property
    def length(self) -> int:
        return len(self.matched)


class PatternRegistry:
    """Append-only command and listener collections."""

    def __init__(self):
        self._commands: List[Command] = []
        self._listeners: List[Listener] = []

    def add_command(self, command: Command) -> None:
        self._commands.append(command)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def commands(self) -> tuple:
        return tuple(self._commands)

    @property
    def listeners(self) -> tuple:
        return tuple(self._listeners)

    def match_command(self, text: str, squelched: bool = False) -> Optional[CommandMatch]:
        """Pick the command whose trigger matches the longest prefix of text.

        Non-core commands are not candidates while squelched. On equal
        lengths the earlier registration wins.

        Args:
            text: Address-stripped message text.
            squelched: Squelch state of the originating conversation.

        Returns:
            The winning match, or None if no candidate matched.
        """
        best: Optional[CommandMatch] = None
        for command in self._commands:
            matched = command.trigger.match_at_start(text)
            if matched is None:
                continue
            if squelched and not command.core:
                logger.debug("command_skipped_squelched", command=command.name or repr(command.trigger))
                continue
            if best is None or len(matched) > best.length:
                best = CommandMatch(command, matched, text[len(matched):])
        return best

    def match_listeners(self, text: str) -> List[ListenerMatch]:
        """All listeners matching anywhere in text, longest match first.

        The sort is stable, so equal-length matches keep registration order.
        """
        matches = []
        for listener in self._listeners:
            matched = listener.trigger.search(text)
            if matched is not None:
                matches.append(ListenerMatch(listener, matched))
        matches.sort(key=lambda m: m.length, reverse=True)
        return matches
