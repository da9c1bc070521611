"""Chat model interfaces for Blade."""

from .base import ChatModel, ChatResponse, TokenUsage, coerce_response
from .cache import ModelCache

__all__ = [
    "ChatModel",
    "ChatResponse",
    "TokenUsage",
    "coerce_response",
    "ModelCache",
]
