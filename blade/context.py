"""Conversation session management for Blade.

ContextManager owns the message history of every conversation session and
decides, before each model call, whether the history has to be compressed.

Concurrency model:
- The session map is guarded by one RLock.
- Each session has its own Lock. Appends, compression and the model call
  for a turn all happen while holding it, so a session never has two
  compressions in flight and is never read mid-compression.
- Different sessions never wait on each other.
- Event callbacks run after the session lock is released.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import ContextStrategy, ContextWindow, SessionMetadata
from .exceptions import ConfigurationError, ModelError, SessionError
from .messages import Message, Role, messages_to_dicts
from .providers.base import ChatModel, coerce_response
from .tokenizers import BaseTokenizer, EstimatingTokenCounter
from .transforms.context_compressor import ContextCompressor

logger = logging.getLogger(__name__)

DEFAULT_SESSION_MAX_AGE = 24 * 60 * 60  # seconds

# Called as callback(event_name, event_data)
EventCallback = Callable[[str, dict[str, Any]], None]


class ContextEvent(str, Enum):
    """Events reported to the ``on_event`` callback of a ContextManager.

    Payloads:
    - INITIALIZED: empty
    - CONTEXT_COMPRESSED: ``session_id``, ``original_tokens``, ``compressed_tokens``
    - CONVERSATION_PROCESSED: ``session_id``, ``message_count`` (messages
      passed in for the turn), ``response_tokens``
    """

    INITIALIZED = "initialized"
    CONTEXT_COMPRESSED = "context_compressed"
    CONVERSATION_PROCESSED = "conversation_processed"


@dataclass
class ConversationSession:
    """One conversation. ``messages`` only ever grows."""

    id: str
    metadata: SessionMetadata
    messages: list[Message] = field(default_factory=list)
    next_sequence_index: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class ContextManager:
    """
    Session store plus the per-turn context window decision.

    Example:
        manager = ContextManager(chat_model=my_model)
        reply = manager.process_conversation(
            [{"role": "user", "content": "Why does this test fail?"}],
            session_id="debugging",
        )

    A session's history is kept in full. Compression produces the window
    sent to the model for the current turn and never rewrites the history,
    so later turns are always compressed from the complete record.
    """

    def __init__(
        self,
        strategy: ContextStrategy | None = None,
        tokenizer: BaseTokenizer | None = None,
        compressor: ContextCompressor | None = None,
        chat_model: ChatModel | None = None,
        clock: Callable[[], float] = time.time,
        on_event: EventCallback | None = None,
    ):
        """
        Initialize the manager.

        Args:
            strategy: Compression thresholds and retention rules.
            tokenizer: Token counter for threshold checks. Defaults to the
                mixed CJK/English estimator.
            compressor: Compressor shared by all sessions.
            chat_model: Default model for process_conversation.
            clock: Time source in epoch seconds.
            on_event: Optional callback receiving ``(event_name, event_data)``
                for every ContextEvent. Failures are logged, never raised.
        """
        self.strategy = strategy or ContextStrategy()
        self.tokenizer = tokenizer or EstimatingTokenCounter()
        self.compressor = compressor or ContextCompressor()
        self.chat_model = chat_model
        self.on_event = on_event
        self._clock = clock

        self._sessions: dict[str, ConversationSession] = {}
        self._current_session_id: str | None = None
        self._lock = threading.RLock()

        self._emit(ContextEvent.INITIALIZED, {})

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def create_session(self, session_id: str | None = None) -> str:
        """Create a session (or reuse an existing id) and make it current."""
        with self._lock:
            session = self._get_or_create_session(session_id)
            self._current_session_id = session.id
            return session.id

    def switch_session(self, session_id: str) -> bool:
        with self._lock:
            if session_id not in self._sessions:
                return False
            self._current_session_id = session_id
        logger.info("Switched to session %s", session_id)
        return True

    def get_session(self, session_id: str) -> ConversationSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def get_current_session(self) -> ConversationSession | None:
        with self._lock:
            if self._current_session_id is None:
                return None
            return self._sessions.get(self._current_session_id)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            if self._current_session_id == session_id:
                self._current_session_id = None
        logger.info("Deleted session %s", session_id)
        return True

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def cleanup_expired_sessions(self, max_age_seconds: float = DEFAULT_SESSION_MAX_AGE) -> int:
        """Delete sessions idle for longer than ``max_age_seconds``.

        Returns:
            Number of sessions deleted.
        """
        now = self._clock()
        with self._lock:
            expired = [
                sid
                for sid, session in self._sessions.items()
                if now - session.metadata.last_updated > max_age_seconds
            ]
            for sid in expired:
                self.delete_session(sid)

        if expired:
            logger.info("Cleaned up %d expired sessions", len(expired))
        return len(expired)

    # =========================================================================
    # History and context window
    # =========================================================================

    def add_messages(
        self,
        messages: Iterable[Message | dict[str, Any]],
        session_id: str | None = None,
    ) -> ConversationSession:
        """Append messages to a session, creating it if needed.

        Sequence indices and timestamps are assigned here. Incoming Message
        objects are copied, never modified.
        """
        session = self._resolve_session(session_id)
        with session.lock:
            self._append(session, messages)
        return session

    def get_history(self, session_id: str) -> list[Message]:
        """Copy of the full, uncompressed history of a session."""
        session = self._require_session(session_id)
        with session.lock:
            return list(session.messages)

    def prepare_context_window(self, session_id: str) -> ContextWindow:
        """Build the window for the next model call of a session.

        Raises:
            SessionError: If the session does not exist.
        """
        session = self._require_session(session_id)
        with session.lock:
            window = self._prepare_window(session)
        self._emit_compression(session.id, window)
        return window

    def process_conversation(
        self,
        messages: Iterable[Message | dict[str, Any]],
        session_id: str | None = None,
        model: ChatModel | None = None,
    ) -> str:
        """Run one conversation turn.

        Appends ``messages`` to the session, prepares the context window,
        calls the model and appends its reply.

        Args:
            messages: New messages for this turn.
            session_id: Target session. None means the current session, or a
                new one when there is no current session.
            model: Chat model for this call; defaults to ``chat_model``.

        Returns:
            The assistant reply text.

        Raises:
            ModelError: If no model is available or the call fails.
        """
        chat_model = model or self.chat_model
        if chat_model is None:
            raise ModelError("No chat model configured")

        messages = list(messages)
        session = self._resolve_session(session_id)
        with session.lock:
            self._append(session, messages)
            window = self._prepare_window(session)

            try:
                raw = chat_model.invoke(messages_to_dicts(window.messages))
            except Exception as e:
                logger.exception("Chat model call failed for session %s", session.id)
                raise ModelError(
                    "Chat model call failed",
                    details={"session_id": session.id, "error": str(e)},
                ) from e

            response = coerce_response(raw)
            self._append(session, [Message(role=Role.ASSISTANT.value, content=response.content)])

            if response.usage is not None:
                response_tokens = response.usage.completion_tokens
                session.metadata.total_tokens_used += response.usage.total_tokens
            else:
                response_tokens = self.tokenizer.count_text(response.content)
                session.metadata.total_tokens_used += window.token_count + response_tokens

        self._emit_compression(session.id, window)
        self._emit(
            ContextEvent.CONVERSATION_PROCESSED,
            {
                "session_id": session.id,
                "message_count": len(messages),
                "response_tokens": response_tokens,
            },
        )
        return response.content

    # =========================================================================
    # Strategy and stats
    # =========================================================================

    def update_strategy(self, **changes: Any) -> ContextStrategy:
        """Replace strategy fields. The new strategy is validated in full.

        Raises:
            ConfigurationError: If a field is unknown or a value is invalid.
        """
        valid = {f.name for f in dataclasses.fields(ContextStrategy)}
        unknown = set(changes) - valid
        if unknown:
            raise ConfigurationError(
                "Unknown context strategy fields", details={"fields": sorted(unknown)}
            )
        strategy = dataclasses.replace(self.strategy, **changes)
        with self._lock:
            self.strategy = strategy
        logger.info("Context strategy updated: %s", strategy)
        return strategy

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            sessions = list(self._sessions.values())

        total_sessions = len(sessions)
        total_messages = sum(s.metadata.message_count for s in sessions)
        total_tokens = sum(s.metadata.total_tokens_used for s in sessions)
        total_compressions = sum(s.metadata.compression_count for s in sessions)

        return {
            "total_sessions": total_sessions,
            "total_messages": total_messages,
            "total_tokens": total_tokens,
            "total_compressions": total_compressions,
            "average_messages_per_session": (
                total_messages / total_sessions if total_sessions else 0
            ),
            "average_tokens_per_session": total_tokens / total_sessions if total_sessions else 0,
            "context_strategy": self.strategy.to_dict(),
            "compressor": self.compressor.get_compression_stats(),
        }

    # =========================================================================
    # Internals
    # =========================================================================

    def _emit(self, event: ContextEvent, event_data: dict[str, Any]) -> None:
        if self.on_event is None:
            return
        try:
            self.on_event(event.value, event_data)
        except Exception:
            # A failing listener never breaks the manager
            logger.warning("Event callback failed for %s", event.value, exc_info=True)

    def _emit_compression(self, session_id: str, window: ContextWindow) -> None:
        if window.compression is None:
            return
        self._emit(
            ContextEvent.CONTEXT_COMPRESSED,
            {
                "session_id": session_id,
                "original_tokens": self.tokenizer.count_messages(
                    window.compression.original_messages
                ),
                "compressed_tokens": window.token_count,
            },
        )

    def _needs_compression(self, messages: list[Message], token_count: int) -> bool:
        return (
            token_count > self.strategy.compression_threshold
            or len(messages) > self.strategy.max_messages
        )

    def _prepare_window(self, session: ConversationSession) -> ContextWindow:
        # Caller holds session.lock
        strategy = self.strategy
        messages = list(session.messages)
        token_count = self.tokenizer.count_messages(messages)
        compression = None

        if self._needs_compression(messages, token_count):
            logger.debug(
                "Session %s over threshold (%d tokens, %d messages), compressing",
                session.id,
                token_count,
                len(messages),
            )
            original_tokens = token_count
            compression = self.compressor.compress_with_result(
                messages, strategy.retention_rules
            )
            messages = compression.compressed_messages
            token_count = self.tokenizer.count_messages(messages)
            session.metadata.compression_count += 1
            logger.info(
                "Session %s context compressed: %d -> %d tokens",
                session.id,
                original_tokens,
                token_count,
            )

        return ContextWindow(
            messages=messages,
            token_count=token_count,
            max_tokens=strategy.max_tokens,
            compression_level=session.metadata.compression_count,
            compression=compression,
        )

    def _append(
        self, session: ConversationSession, messages: Iterable[Message | dict[str, Any]]
    ) -> None:
        # Caller holds session.lock
        now = self._clock()
        for item in messages:
            source = item if isinstance(item, Message) else Message.from_dict(item)
            session.messages.append(
                Message(
                    role=source.role,
                    content=source.content,
                    sequence_index=session.next_sequence_index,
                    metadata={**source.metadata, "timestamp": now},
                )
            )
            session.next_sequence_index += 1

        session.metadata.last_updated = now
        session.metadata.message_count = len(session.messages)

    def _new_session_id(self) -> str:
        return f"session_{int(self._clock() * 1000)}_{uuid.uuid4().hex[:8]}"

    def _get_or_create_session(self, session_id: str | None) -> ConversationSession:
        """Return the named session, or create it and make it current."""
        # Caller holds self._lock
        if session_id is not None and session_id in self._sessions:
            return self._sessions[session_id]

        new_id = session_id or self._new_session_id()
        now = self._clock()
        session = ConversationSession(
            id=new_id,
            metadata=SessionMetadata(created_at=now, last_updated=now),
        )
        self._sessions[new_id] = session
        self._current_session_id = new_id
        logger.info("Created session %s", new_id)
        return session

    def _resolve_session(self, session_id: str | None) -> ConversationSession:
        with self._lock:
            if session_id is None and self._current_session_id is not None:
                current = self._sessions.get(self._current_session_id)
                if current is not None:
                    return current
            return self._get_or_create_session(session_id)

    def _require_session(self, session_id: str) -> ConversationSession:
        session = self.get_session(session_id)
        if session is None:
            raise SessionError("Unknown session", details={"session_id": session_id})
        return session
