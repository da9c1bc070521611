"""Chat model interface consumed by the conversation layer.

Blade does not implement provider clients here. Anything with an
``invoke`` method returning text or a ChatResponse can drive
ContextManager.process_conversation.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass
class TokenUsage:
    """Token accounting reported by a provider for one call."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatResponse:
    """Result of a single chat completion call."""

    content: str
    usage: TokenUsage | None = None
    model: str | None = None


@runtime_checkable
class ChatModel(Protocol):
    """Protocol for chat completion backends.

    Messages are chat-completion dicts with ``role`` and ``content``.
    """

    def invoke(self, messages: list[dict[str, Any]]) -> ChatResponse | str:
        """Run one completion and return the full reply."""
        ...

    def stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        """Yield the reply as text deltas."""
        ...


def coerce_response(raw: ChatResponse | str) -> ChatResponse:
    """Normalize whatever ``invoke`` returned into a ChatResponse."""
    if isinstance(raw, ChatResponse):
        return raw
    return ChatResponse(content=str(raw))
