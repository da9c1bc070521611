"""Tiktoken-based token counter.

Tiktoken is OpenAI's BPE tokenizer. The Qwen and VolcEngine chat models
Blade talks to use different vocabularies, but cl100k_base is a close
enough proxy for threshold decisions and is far more accurate than the
estimator on code-heavy conversations.
"""

from __future__ import annotations

from functools import lru_cache

from ..exceptions import TokenizationError
from .base import BaseTokenizer

# Model prefix to encoding mapping, checked in order
MODEL_PREFIX_TO_ENCODING: tuple[tuple[str, str], ...] = (
    ("gpt-4o", "o200k_base"),
    ("o1", "o200k_base"),
    ("o3", "o200k_base"),
    ("gpt-4", "cl100k_base"),
    ("gpt-3.5", "cl100k_base"),
    ("text-embedding", "cl100k_base"),
)

DEFAULT_ENCODING = "cl100k_base"


@lru_cache(maxsize=8)
def _get_encoding(encoding_name: str):
    """Get tiktoken encoding, cached for performance."""
    try:
        import tiktoken
    except ImportError as e:
        raise TokenizationError(
            "tiktoken is not installed. Run: pip install blade-context[tiktoken]",
            details={"encoding": encoding_name},
        ) from e

    return tiktoken.get_encoding(encoding_name)


def get_encoding_for_model(model: str | None) -> str:
    """Get the tiktoken encoding name for a model, or the default."""
    if model:
        for prefix, encoding in MODEL_PREFIX_TO_ENCODING:
            if model.startswith(prefix):
                return encoding
    return DEFAULT_ENCODING


def is_tiktoken_available() -> bool:
    try:
        import tiktoken  # noqa: F401
    except ImportError:
        return False
    return True


class TiktokenCounter(BaseTokenizer):
    """Token counter using tiktoken.

    Example:
        counter = TiktokenCounter("gpt-4o")
        tokens = counter.count_text("Hello, world!")
    """

    def __init__(self, model: str | None = None, encoding_name: str | None = None):
        """Initialize the counter.

        Args:
            model: Model name used to pick the encoding.
            encoding_name: Explicit encoding, overrides ``model``.

        Raises:
            TokenizationError: If tiktoken is not installed.
        """
        self.model = model
        self.encoding_name = encoding_name or get_encoding_for_model(model)
        self._encoding = _get_encoding(self.encoding_name)

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        return len(self._encoding.encode(text, disallowed_special=()))

    def __repr__(self) -> str:
        return f"TiktokenCounter(encoding={self.encoding_name!r})"
