"""Custom exception hierarchy for intentwire.

Matching, tokenizing and squelch bookkeeping never raise; the errors
below cover the parts of the bot that can genuinely fail: configuration,
plugin loading, and untrusted handler code.
"""

from typing import Any, Optional


class IntentwireError(Exception):
    """Base exception for all intentwire errors.

    Attributes:
        message: Human-readable error description.
        module: Originating module name (e.g. "plugin_loader").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.module = module
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return f"{cls}({self.message!r}, module={self.module!r})"


class ConfigurationError(IntentwireError):
    """Invalid or missing configuration."""

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(message, module=module or "config", **context)


class PluginError(IntentwireError):
    """A plugin could not be loaded or supplied an invalid spec.

    Attributes:
        plugin: Name of the plugin directory.
    """

    def __init__(
        self,
        message: str = "",
        *,
        plugin: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.plugin = plugin
        super().__init__(message, module=module or "plugin_loader", **context)


class HandlerFault(IntentwireError):
    """An exception escaped a command or listener handler.

    The original exception is chained as ``__cause__``.

    Attributes:
        phase: "sync" when raised during the dispatch pass, "async" when
            raised from a task spawned inside the isolation scope.
        conversation_id: Conversation the message arrived in (None for DMs).
        text: The inbound message being processed.
    """

    def __init__(
        self,
        message: str = "",
        *,
        phase: str = "sync",
        conversation_id: Optional[str] = None,
        text: str = "",
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.phase = phase
        self.conversation_id = conversation_id
        self.text = text
        super().__init__(message, module=module or "isolation", **context)
