"""In-process hub for inbound chat events."""

from typing import Callable, List

import structlog

from .route import Route

logger = structlog.get_logger("intentwire.dispatch")

MessageCallback = Callable[[Route, str], object]


class MessageEvents:
    """Transports emit ``(route, message)``; subscribers are called in order."""

    def __init__(self):
        self._on_message: List[MessageCallback] = []

    def on_message(self, callback: MessageCallback) -> None:
        """Register a callback for every inbound message."""
        self._on_message.append(callback)

    def emit(self, route: Route, message: str) -> None:
        """Deliver a message to all subscribers."""
        logger.debug(
            "message_seen",
            conversation=route.conversation_id,
            length=len(message),
            subscribers=len(self._on_message),
        )
        for callback in self._on_message:
            callback(route, message)
