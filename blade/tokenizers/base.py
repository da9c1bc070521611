"""Base classes for tokenizer implementations.

Defines the TokenCounter protocol and BaseTokenizer class that all
tokenizer backends implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Protocol, Union, runtime_checkable

from ..messages import Message

MessageLike = Union[Message, dict[str, Any]]


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for token counting implementations.

    Any class implementing this protocol can be handed to ContextManager
    to decide when a session crosses its compression threshold.
    """

    def count_text(self, text: str) -> int:
        """Count tokens in a text string."""
        ...

    def count_messages(self, messages: Iterable[MessageLike]) -> int:
        """Count tokens in a list of chat messages, including overhead."""
        ...


class BaseTokenizer(ABC):
    """Abstract base class for tokenizer implementations.

    Provides message counting on top of ``count_text``. Messages may be
    Message objects or chat-completion dicts.
    """

    # Token overhead per message (role, formatting, etc.)
    MESSAGE_OVERHEAD = 4
    REPLY_OVERHEAD = 3  # Assistant reply start tokens
    COUNT_ROLE = True

    @abstractmethod
    def count_text(self, text: str) -> int:
        """Count tokens in a text string. Must be implemented by subclasses."""
        pass

    def count_message(self, message: MessageLike) -> int:
        """Count tokens in one message, including its overhead."""
        if isinstance(message, Message):
            role, content = message.role, message.content
        else:
            role = message.get("role", "")
            content = message.get("content") or ""
            if not isinstance(content, str):
                content = str(content)

        total = self.MESSAGE_OVERHEAD
        if self.COUNT_ROLE:
            total += self.count_text(role)
        return total + self.count_text(content)

    def count_messages(self, messages: Iterable[MessageLike]) -> int:
        """Count tokens in a list of chat messages.

        Args:
            messages: Message objects or dicts.

        Returns:
            Total token count.
        """
        total = sum(self.count_message(m) for m in messages)
        return total + self.REPLY_OVERHEAD
