"""
Blade - conversation context management for the Blade AI assistant.

Keeps long conversations inside a bounded context window by scoring
messages, keeping the ones that matter verbatim and folding the rest into
a short template summary. No model call is involved in compression.

Quick Start:

    from blade import ContextCompressor, Message, RetentionRules

    history = [
        Message("system", "You are helpful", sequence_index=0),
        Message("user", "hi", sequence_index=1),
        Message("assistant", "hello", sequence_index=2),
        Message("user", "what is 2+2?", sequence_index=3),
        Message("assistant", "4", sequence_index=4),
    ]
    rules = RetentionRules(
        keep_recent_messages=2,
        keep_system_messages=True,
        keep_important_messages=False,
    )
    compacted = ContextCompressor().compress(history, rules)

Sessions:

    from blade import ContextManager

    manager = ContextManager(chat_model=my_model)
    reply = manager.process_conversation([{"role": "user", "content": "hi"}])

Enable logging to see compression decisions:

    import logging
    logging.basicConfig(level=logging.INFO)
    # INFO:blade.transforms.context_compressor:ContextCompressor: 60 -> 19 messages ...
"""

from .config import (
    IMPORTANT_FRACTION,
    CompressionResult,
    CompressionStrategy,
    ContextStrategy,
    ContextWindow,
    RetentionRules,
    SessionMetadata,
)
from .context import ContextEvent, ContextManager, ConversationSession
from .exceptions import (
    BladeError,
    CompressionError,
    ConfigurationError,
    MessageError,
    ModelError,
    SessionError,
    TokenizationError,
)
from .messages import Message, Role, messages_from_dicts, messages_to_dicts
from .providers import ChatModel, ChatResponse, ModelCache, TokenUsage
from .tokenizers import EstimatingTokenCounter, TiktokenCounter, TokenCounter, get_tokenizer
from .transforms import (
    ContextCompressor,
    ImportanceScore,
    ImportanceScorer,
    RetentionPlanner,
    compress_messages,
)

__version__ = "0.2.0"

__all__ = [
    # Compression
    "ContextCompressor",
    "RetentionPlanner",
    "ImportanceScorer",
    "ImportanceScore",
    "compress_messages",
    # Sessions
    "ContextManager",
    "ConversationSession",
    "ContextEvent",
    # Messages
    "Message",
    "Role",
    "messages_from_dicts",
    "messages_to_dicts",
    # Config
    "RetentionRules",
    "ContextStrategy",
    "ContextWindow",
    "CompressionResult",
    "CompressionStrategy",
    "SessionMetadata",
    "IMPORTANT_FRACTION",
    # Models
    "ChatModel",
    "ChatResponse",
    "TokenUsage",
    "ModelCache",
    # Tokenizers
    "TokenCounter",
    "EstimatingTokenCounter",
    "TiktokenCounter",
    "get_tokenizer",
    # Exceptions
    "BladeError",
    "ConfigurationError",
    "CompressionError",
    "MessageError",
    "SessionError",
    "ModelError",
    "TokenizationError",
]
