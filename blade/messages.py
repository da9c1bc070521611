"""Conversation message model for Blade."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .exceptions import MessageError


class Role(str, Enum):
    """Roles a conversation turn can have."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A single conversation turn.

    ``sequence_index`` is the message's position in the full, unbounded
    history of its session. It is assigned when the message is appended and
    is never reused, even after the message is folded into a summary.
    Synthesized summary messages have no sequence index.
    """

    role: str
    content: str
    sequence_index: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_system(self) -> bool:
        return self.role == Role.SYSTEM.value

    @property
    def is_compressed(self) -> bool:
        """True for summary messages produced by a compression pass."""
        return bool(self.metadata.get("compressed", False))

    def to_dict(self, include_metadata: bool = False) -> dict[str, Any]:
        """Convert to a chat-completion style message dict."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if include_metadata:
            data["sequence_index"] = self.sequence_index
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Build a message from a dict.

        Accepts the chat-completion shape (``role``/``content``) plus the
        optional ``sequence_index`` (or ``sequenceIndex``) and ``metadata``
        keys written by ``to_dict(include_metadata=True)``.

        Raises:
            MessageError: If the sequence index is not an integer.
        """
        role = data.get("role")
        content = data.get("content")
        sequence_index = data.get("sequence_index", data.get("sequenceIndex"))
        # bool is an int subclass; True is not a position
        if sequence_index is not None and (
            isinstance(sequence_index, bool) or not isinstance(sequence_index, int)
        ):
            raise MessageError(
                "sequence_index must be an integer",
                details={"sequence_index": sequence_index},
            )
        return cls(
            role="" if role is None else str(role),
            content="" if content is None else str(content),
            sequence_index=sequence_index,
            metadata=dict(data.get("metadata") or {}),
        )


def messages_from_dicts(items: Iterable[dict[str, Any] | Message], start: int = 0) -> list[Message]:
    """Convert dicts to messages, filling in missing sequence indices.

    Missing indices continue from the highest index seen so far (or
    ``start``), so the result stays strictly increasing when the input is
    partially indexed in order.

    Args:
        items: Message dicts or Message instances.
        start: First index to assign when none has been seen yet.

    Returns:
        List of Message objects.

    Raises:
        MessageError: If an index is not an integer, or an explicit index is
            not greater than the one before it.
    """
    messages: list[Message] = []
    next_index = start
    previous: int | None = None
    for position, item in enumerate(items):
        message = item if isinstance(item, Message) else Message.from_dict(item)
        if message.sequence_index is None:
            message = replace(message, sequence_index=next_index)
        elif previous is not None and message.sequence_index <= previous:
            raise MessageError(
                "Sequence indices must be strictly increasing",
                details={
                    "position": position,
                    "sequence_index": message.sequence_index,
                    "previous": previous,
                },
            )
        previous = message.sequence_index
        next_index = previous + 1
        messages.append(message)
    return messages


def messages_to_dicts(
    messages: Iterable[Message], include_metadata: bool = False
) -> list[dict[str, Any]]:
    return [m.to_dict(include_metadata=include_metadata) for m in messages]
