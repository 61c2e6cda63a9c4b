"""Shared fixtures: a route that records replies and a controllable clock."""

from typing import List, Optional, Tuple

import pytest

from intentwire.engine import DispatchEngine
from intentwire.route import Route
from intentwire.squelch import SquelchClock


class RecordingRoute(Route):
    """Route that stores every send as (direct, key_or_text, args)."""

    def __init__(self, conversation_id: Optional[str] = None, sent=None, is_direct=False):
        self.conversation_id = conversation_id
        self.sent: List[Tuple[bool, str, tuple]] = sent if sent is not None else []
        self.is_direct = is_direct

    def send(self, key_or_text, *args):
        self.sent.append((self.is_direct, key_or_text, args))

    def direct(self):
        # Shares the log so tests can see private replies too
        return RecordingRoute(None, self.sent, is_direct=True)

    @property
    def texts(self) -> List[str]:
        return [text for _, text, _ in self.sent]


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return DispatchEngine(responds_to=["bot", "robo"], squelch=SquelchClock(10, clock=clock))


@pytest.fixture
def room():
    return RecordingRoute("general")


@pytest.fixture
def dm():
    return RecordingRoute(None)
