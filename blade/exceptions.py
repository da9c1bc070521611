"""Custom exceptions for Blade.

All exceptions inherit from BladeError, so callers can catch every
Blade-related error in one place.

Example:
    from blade import ContextManager, BladeError, ConfigurationError

    try:
        manager = ContextManager(ContextStrategy.from_dict(raw_config))
    except ConfigurationError as e:
        print(f"Configuration problem: {e}")
    except BladeError as e:
        print(f"Blade error: {e}")
"""

from __future__ import annotations

from typing import Any


class BladeError(Exception):
    """Base exception for all Blade errors.

    Carries an optional ``details`` mapping that is rendered after the
    message:

        try:
            manager.process_conversation(messages)
        except BladeError as e:
            log.warning("turn failed: %s", e.details)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(BladeError):
    """Raised when retention rules or the context strategy are invalid.

    This includes:
    - Negative ``keep_recent_messages``
    - Non-boolean retention flags
    - Non-positive token or message limits

    Example:
        ConfigurationError(
            "keep_recent_messages must be >= 0",
            details={"keep_recent_messages": -1}
        )
    """

    pass


class CompressionError(BladeError):
    """Raised when a history cannot be compressed.

    This is an input problem (for example a history item that is not a
    Message), never a runtime failure: compression does no I/O.
    """

    pass


class MessageError(BladeError):
    """Raised when a message dict or a message list is malformed.

    This includes:
    - A ``sequence_index`` that is not an integer
    - Sequence indices that do not strictly increase

    Example:
        MessageError(
            "Sequence indices must be strictly increasing",
            details={"position": 1, "sequence_index": 2, "previous": 5}
        )
    """

    pass


class SessionError(BladeError):
    """Raised when an operation names a session that does not exist."""

    pass


class ModelError(BladeError):
    """Raised when the chat model is missing or the call to it fails.

    Example:
        ModelError(
            "Chat model call failed",
            details={"session_id": "session_1718000000000_ab12cd34"}
        )
    """

    pass


class TokenizationError(BladeError):
    """Raised when a token counting backend cannot be loaded."""

    pass
