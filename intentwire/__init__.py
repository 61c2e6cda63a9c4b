"""intentwire - message intent dispatch for chat bots."""

from .engine import DispatchEngine, DispatchOutcome
from .events import MessageEvents
from .isolation import FaultIsolator, IsolationScope, spawn
from .patterns import Command, Listener, RegexTrigger, Trigger
from .route import Route
from .squelch import SquelchClock
from .tokenizer import split_args

__version__ = "0.1.0"

__all__ = [
    "Command",
    "DispatchEngine",
    "DispatchOutcome",
    "FaultIsolator",
    "IsolationScope",
    "Listener",
    "MessageEvents",
    "RegexTrigger",
    "Route",
    "SquelchClock",
    "Trigger",
    "spawn",
    "split_args",
]
