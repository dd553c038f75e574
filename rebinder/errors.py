"""Exception hierarchy for the control-binding registry.

    RebinderError (base)
    ├── DuplicateActionError - same (player, name) registered twice
    ├── UnknownActionError - action was never registered for the player
    ├── PlayerSlotError - player slot outside the configured arena
    └── ConfigError - config file unreadable or malformed
"""

from __future__ import annotations

from typing import Any


class RebinderError(Exception):
    """Base exception for all binding registry errors.

    Keyword arguments are kept as ``context`` and appended to the message.
    """

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class DuplicateActionError(RebinderError):
    def __init__(self, message: str = "Action already registered", **context: Any) -> None:
        super().__init__(message, **context)


class UnknownActionError(RebinderError):
    def __init__(self, message: str = "Action not registered", **context: Any) -> None:
        super().__init__(message, **context)


class PlayerSlotError(RebinderError, IndexError):
    def __init__(self, message: str = "Player slot out of range", **context: Any) -> None:
        super().__init__(message, **context)


class ConfigError(RebinderError):
    def __init__(self, message: str = "Invalid config", **context: Any) -> None:
        super().__init__(message, **context)
