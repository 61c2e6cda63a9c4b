"""Per-conversation squelch (mute) windows.

While a conversation is squelched only core commands run; listeners are
skipped. Direct messages have no conversation id and are never squelched.
State lives on the instance, so every engine owns its own table and
nothing survives a restart.
"""

import time
from datetime import datetime
from typing import Callable, Dict, Optional

import structlog

logger = structlog.get_logger("intentwire.dispatch")

DEFAULT_SQUELCH_MINUTES = 10


class SquelchClock:
    """Tracks squelch expiry per conversation.

    Args:
        duration_minutes: Length of the window opened by ``squelch(id)``.
        clock: Returns the current time in seconds. Injectable for tests.
    """

    def __init__(
        self,
        duration_minutes: float = DEFAULT_SQUELCH_MINUTES,
        clock: Callable[[], float] = time.time,
    ):
        self.duration_minutes = duration_minutes
        self._clock = clock
        self._expiry: Dict[str, float] = {}

    def squelch(self, conversation_id: Optional[str], on: bool = True) -> None:
        """Open (``on=True``) or immediately close the window for a conversation."""
        expires_at = self._clock()
        if on:
            expires_at += self.duration_minutes * 60
        self._expiry[conversation_id] = expires_at
        logger.info(
            "squelch_set",
            conversation=conversation_id,
            squelched=on,
            until=datetime.fromtimestamp(expires_at).strftime("%H:%M:%S"),
        )

    def is_squelched(self, conversation_id: Optional[str]) -> bool:
        """True if the conversation has an unexpired squelch window."""
        if not conversation_id:
            return False
        expires_at = self._expiry.get(conversation_id)
        return expires_at is not None and expires_at > self._clock()

    def expires_at(self, conversation_id: Optional[str]) -> Optional[float]:
        """Expiry timestamp of an active window, or None."""
        if not self.is_squelched(conversation_id):
            return None
        return self._expiry[conversation_id]

    def remaining(self, conversation_id: Optional[str]) -> float:
        """Seconds left in the active window (0 when not squelched)."""
        expires_at = self.expires_at(conversation_id)
        if expires_at is None:
            return 0.0
        return max(0.0, expires_at - self._clock())
