"""Token counting for context window decisions.

Two backends are available:

1. Estimation - mixed CJK/English heuristic, no dependencies (default)
2. tiktoken - BPE counts, requires ``pip install blade-context[tiktoken]``

Usage:
    from blade.tokenizers import get_tokenizer

    tokenizer = get_tokenizer()
    tokens = tokenizer.count_messages(messages)

    # Exact counts when tiktoken is installed
    tokenizer = get_tokenizer("gpt-4o", backend="tiktoken")
"""

from __future__ import annotations

import logging
from typing import Literal

from ..exceptions import TokenizationError
from .base import BaseTokenizer, TokenCounter
from .estimator import EstimatingTokenCounter
from .tiktoken_counter import (
    TiktokenCounter,
    get_encoding_for_model,
    is_tiktoken_available,
)

logger = logging.getLogger(__name__)

_OPENAI_PREFIXES = ("gpt-", "o1", "o3", "text-embedding")


def get_tokenizer(
    model: str | None = None,
    backend: Literal["auto", "estimate", "tiktoken"] = "auto",
) -> BaseTokenizer:
    """Get a token counter for a model.

    Args:
        model: Model name. Only used to pick a tiktoken encoding.
        backend: ``estimate`` always uses the heuristic, ``tiktoken``
            requires tiktoken, ``auto`` uses tiktoken for OpenAI-style model
            names when it is installed and the estimator otherwise.

    Returns:
        A tokenizer instance.

    Raises:
        TokenizationError: If ``backend="tiktoken"`` and tiktoken is missing,
            or the backend name is unknown.
    """
    if backend == "estimate":
        return EstimatingTokenCounter()
    if backend == "tiktoken":
        return TiktokenCounter(model)
    if backend != "auto":
        raise TokenizationError("Unknown tokenizer backend", details={"backend": backend})

    if model and model.startswith(_OPENAI_PREFIXES) and is_tiktoken_available():
        return TiktokenCounter(model)

    logger.debug("Using estimating tokenizer for model %s", model)
    return EstimatingTokenCounter()


__all__ = [
    "TokenCounter",
    "BaseTokenizer",
    "EstimatingTokenCounter",
    "TiktokenCounter",
    "get_tokenizer",
    "get_encoding_for_model",
    "is_tiktoken_available",
]
