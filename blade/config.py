"""Configuration models for Blade."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .messages import Message


# Share of the history (by importance score) kept when keep_important_messages
# is on. Fixed; not part of RetentionRules.
IMPORTANT_FRACTION = 0.3

# camelCase keys used by the original Blade configuration files
_CAMEL_CASE_KEYS = {
    "keepRecentMessages": "keep_recent_messages",
    "keepSystemMessages": "keep_system_messages",
    "keepImportantMessages": "keep_important_messages",
    "maxMessages": "max_messages",
    "maxTokens": "max_tokens",
    "compressionThreshold": "compression_threshold",
    "retentionRules": "retention_rules",
}


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {_CAMEL_CASE_KEYS.get(key, key): value for key, value in data.items()}


def _require_bool(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigurationError(
            f"{name} must be a boolean",
            details={name: value, "type": type(value).__name__},
        )


def _require_int(name: str, value: Any, minimum: int) -> None:
    # bool is an int subclass; True is not a message count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"{name} must be an integer",
            details={name: value, "type": type(value).__name__},
        )
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}", details={name: value})


class CompressionStrategy(str, Enum):
    """How a compression pass treated the history."""

    NONE = "none"  # Under the recency floor, history returned as-is
    RETAIN_SUMMARIZE = "retain_summarize"  # Retained subset plus summary message
    RETAIN_ONLY = "retain_only"  # Retained subset, nothing to summarize


@dataclass(frozen=True)
class RetentionRules:
    """Rules deciding which messages survive a compression pass verbatim.

    The retained set is the union of:
    - every system message (keep_system_messages)
    - the last keep_recent_messages messages
    - the top 30% of messages by importance score (keep_important_messages)

    GOTCHAS:
    - keep_system_messages pins ALL system messages. A history made only of
      system messages is never shortened.
    - keep_recent_messages doubles as the compression gate: histories at or
      below it are returned unchanged.
    - With keep_recent_messages=0 and both flags off, everything is folded
      into the summary.
    """

    keep_recent_messages: int = 10
    keep_system_messages: bool = True
    keep_important_messages: bool = True

    def __post_init__(self) -> None:
        """Validate rules eagerly so compress() never sees bad values."""
        _require_int("keep_recent_messages", self.keep_recent_messages, minimum=0)
        _require_bool("keep_system_messages", self.keep_system_messages)
        _require_bool("keep_important_messages", self.keep_important_messages)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RetentionRules:
        """Build rules from snake_case or camelCase keys."""
        normalized = _normalize_keys(data)
        unknown = set(normalized) - {
            "keep_recent_messages",
            "keep_system_messages",
            "keep_important_messages",
        }
        if unknown:
            raise ConfigurationError(
                "Unknown retention rule keys", details={"keys": sorted(unknown)}
            )
        return cls(**normalized)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ContextStrategy:
    """When and how a session's history is compressed.

    compression_threshold is measured in estimated tokens. A session is
    compressed before a model call when its history exceeds the threshold
    or holds more than max_messages messages.
    """

    max_messages: int = 50
    max_tokens: int = 8000
    compression_threshold: int = 6000
    retention_rules: RetentionRules = field(default_factory=RetentionRules)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if isinstance(self.retention_rules, dict):
            self.retention_rules = RetentionRules.from_dict(self.retention_rules)
        if not isinstance(self.retention_rules, RetentionRules):
            raise ConfigurationError(
                "retention_rules must be a RetentionRules instance",
                details={"type": type(self.retention_rules).__name__},
            )
        _require_int("max_messages", self.max_messages, minimum=1)
        _require_int("max_tokens", self.max_tokens, minimum=1)
        _require_int("compression_threshold", self.compression_threshold, minimum=1)
        if self.compression_threshold > self.max_tokens:
            raise ConfigurationError(
                "compression_threshold must not exceed max_tokens",
                details={
                    "compression_threshold": self.compression_threshold,
                    "max_tokens": self.max_tokens,
                },
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContextStrategy:
        """Build a strategy from snake_case or camelCase keys."""
        normalized = _normalize_keys(data)
        unknown = set(normalized) - {
            "max_messages",
            "max_tokens",
            "compression_threshold",
            "retention_rules",
        }
        if unknown:
            raise ConfigurationError(
                "Unknown context strategy keys", details={"keys": sorted(unknown)}
            )
        return cls(**normalized)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CompressionResult:
    """Output of a compression pass."""

    original_messages: list[Message]
    compressed_messages: list[Message]
    compression_ratio: float
    preserved_messages: int
    removed_messages: int
    compression_strategy: str

    @property
    def summary_inserted(self) -> bool:
        return any(m.is_compressed for m in self.compressed_messages)


@dataclass
class ContextWindow:
    """The message list handed to the chat model for one turn."""

    messages: list[Message]
    token_count: int
    max_tokens: int
    compression_level: int  # Compressions applied to the session so far
    compression: CompressionResult | None = None  # Set when this turn compressed


@dataclass
class SessionMetadata:
    """Bookkeeping for one conversation session. Times are epoch seconds."""

    created_at: float
    last_updated: float
    total_tokens_used: int = 0
    message_count: int = 0
    compression_count: int = 0
