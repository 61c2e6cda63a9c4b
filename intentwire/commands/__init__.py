"""Built-in command handlers for intentwire."""

from .core import CoreCommandHandler

__all__ = [
    "CoreCommandHandler",
]
