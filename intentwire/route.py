"""Conversation routes.

A route identifies where a message came from and how to answer it. Chat
transports implement ``Route``; the engine only ever calls ``send`` and
``direct``.
"""

import sys
from abc import ABC, abstractmethod
from typing import Any, Optional, TextIO

from .messages import Phrasebook


class Route(ABC):
    """Reply handle for one conversation.

    ``conversation_id`` is None for direct (private) messages.
    ``send`` may return an awaitable; the engine schedules it inside the
    message's isolation scope.
    """

    conversation_id: Optional[str] = None

    @abstractmethod
    def send(self, key_or_text: str, *args: Any) -> Any:
        """Send a phrasebook key (``?name``) or literal text."""

    @abstractmethod
    def direct(self) -> "Route":
        """Route that always delivers privately to the sender."""


class ConsoleRoute(Route):
    """Route that prints replies to a stream. Used by the console transport.

    Args:
        sender: Name of the person who sent the message.
        conversation_id: Room name, or None for a direct message.
        phrasebook: Resolves message keys.
        stream: Output stream (defaults to stdout).
    """

    def __init__(
        self,
        sender: str,
        conversation_id: Optional[str],
        phrasebook: Phrasebook,
        stream: Optional[TextIO] = None,
    ):
        self.sender = sender
        self.conversation_id = conversation_id
        self.phrasebook = phrasebook
        self.stream = stream or sys.stdout

    def send(self, key_or_text: str, *args: Any) -> None:
        where = f"#{self.conversation_id}" if self.conversation_id else f"@{self.sender}"
        self.stream.write(f"[{where}] {self.phrasebook.render(key_or_text, *args)}\n")
        self.stream.flush()

    def direct(self) -> "ConsoleRoute":
        return ConsoleRoute(self.sender, None, self.phrasebook, self.stream)

    def __repr__(self) -> str:
        return f"ConsoleRoute(sender={self.sender!r}, conversation_id={self.conversation_id!r})"
