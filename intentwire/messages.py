"""Reply phrasebook.

Replies sent by the engine are message keys (``?command_not_found``)
rather than literal text, so transports can localize or restyle them.
Anything not starting with ``?`` is sent as-is.
"""

from typing import Dict, Mapping, Optional

KEY_PREFIX = "?"

COMMAND_NOT_FOUND = "?command_not_found"
COMMAND_BUT_SILENCED = "?command_but_silenced"
GENERIC_ERROR = "?generic_error"
SQUELCHED = "?squelched"
UNSQUELCHED = "?unsquelched"
SQUELCH_STATUS = "?squelch_status"
NOT_SQUELCHED = "?not_squelched"

DEFAULT_PHRASES: Dict[str, str] = {
    COMMAND_NOT_FOUND: "Sorry, I didn't understand that.",
    COMMAND_BUT_SILENCED: "I'm squelched in {0}, so I can't respond there right now.",
    GENERIC_ERROR: "Something went wrong while handling that message.",
    SQUELCHED: "OK, I'll be quiet for {0} minutes.",
    UNSQUELCHED: "I'm back.",
    SQUELCH_STATUS: "Squelched for another {0} minutes.",
    NOT_SQUELCHED: "Not squelched.",
}


class Phrasebook:
    """Resolves message keys to reply text.

    Args:
        overrides: Phrases from config, merged over the defaults.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self._phrases = dict(DEFAULT_PHRASES)
        if overrides:
            self._phrases.update(overrides)

    def render(self, key_or_text: str, *args) -> str:
        """Render a key with positional args; unknown keys come back verbatim."""
        if not key_or_text.startswith(KEY_PREFIX):
            return key_or_text
        template = self._phrases.get(key_or_text, key_or_text)
        try:
            return template.format(*args)
        except (IndexError, KeyError):
            return template
