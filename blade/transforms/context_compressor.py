"""Context compression for Blade conversations.

ContextCompressor is the single entry point the conversation layer calls
before every model request. A pass:

1. Returns the history unchanged when it is at or below the recency floor
2. Plans the retained set with RetentionPlanner
3. Folds everything else into one template summary message
4. Splices the summary in after the leading system messages

Compression is a pure function of (history, rules). The input list and its
messages are never modified; the output reuses the retained Message objects.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any

from ..config import CompressionResult, CompressionStrategy, RetentionRules
from ..exceptions import CompressionError
from ..messages import Message
from .retention import RetentionPlanner
from .scoring import ImportanceScorer
from .summary import build_summary_message, insert_summary

logger = logging.getLogger(__name__)


class ContextCompressor:
    """
    Compress a conversation history to a retained subset plus a summary.

    Guarantees:
    - Histories with len <= keep_recent_messages come back unchanged
    - The last keep_recent_messages messages are always kept
    - System messages are always kept when keep_system_messages=True
    - Retained messages keep their original relative order
    - At most one summary message is added per pass
    - Same input, same output

    The compressor keeps running statistics across passes. Statistics are
    the only state it holds and are guarded by a lock, so one instance can
    be shared between sessions.
    """

    name = "context_compressor"

    def __init__(
        self,
        planner: RetentionPlanner | None = None,
        scorer: ImportanceScorer | None = None,
    ):
        """
        Initialize the compressor.

        Args:
            planner: Retention planner. Built from ``scorer`` when omitted.
            scorer: Importance scorer for the default planner.
        """
        self.planner = planner or RetentionPlanner(scorer)
        self._stats_lock = threading.Lock()
        self._total_compressions = 0
        self._ratio_sum = 0.0
        self._messages_saved = 0

    def compress(self, history: Sequence[Message], rules: RetentionRules) -> list[Message]:
        """Return the compacted message list for ``history``."""
        return self.compress_with_result(history, rules).compressed_messages

    def compress_with_result(
        self, history: Sequence[Message], rules: RetentionRules
    ) -> CompressionResult:
        """
        Compress a history and report what happened.

        Args:
            history: Messages in original order. Treated as read-only.
            rules: Validated retention rules.

        Returns:
            CompressionResult with the compacted messages.

        Raises:
            CompressionError: If ``rules`` is not a RetentionRules or the
                history contains non-Message items.
        """
        self._check_inputs(history, rules)
        original = list(history)

        if len(original) <= rules.keep_recent_messages:
            return CompressionResult(
                original_messages=original,
                compressed_messages=list(original),
                compression_ratio=1.0,
                preserved_messages=len(original),
                removed_messages=0,
                compression_strategy=CompressionStrategy.NONE.value,
            )

        retained_indices = self.planner.plan_indices(original, rules)
        retained_set = set(retained_indices)
        retained = [original[i] for i in retained_indices]
        discarded = [m for i, m in enumerate(original) if i not in retained_set]

        compressed = retained
        strategy = CompressionStrategy.RETAIN_ONLY
        if discarded:
            summary = build_summary_message(discarded)
            if summary is not None:
                compressed = insert_summary(retained, summary)
                strategy = CompressionStrategy.RETAIN_SUMMARIZE

        ratio = len(compressed) / len(original)
        self._record(ratio, len(discarded))

        logger.info(
            "ContextCompressor: %d -> %d messages (%d retained, %d summarized, strategy=%s)",
            len(original),
            len(compressed),
            len(retained),
            len(discarded),
            strategy.value,
        )

        return CompressionResult(
            original_messages=original,
            compressed_messages=compressed,
            compression_ratio=ratio,
            preserved_messages=len(retained),
            removed_messages=len(discarded),
            compression_strategy=strategy.value,
        )

    def get_compression_stats(self) -> dict[str, Any]:
        """Totals across every pass that actually compressed."""
        with self._stats_lock:
            average = (
                self._ratio_sum / self._total_compressions if self._total_compressions else 0.0
            )
            return {
                "total_compressions": self._total_compressions,
                "average_compression_ratio": average,
                "total_messages_saved": self._messages_saved,
            }

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._total_compressions = 0
            self._ratio_sum = 0.0
            self._messages_saved = 0

    def _record(self, ratio: float, removed: int) -> None:
        with self._stats_lock:
            self._total_compressions += 1
            self._ratio_sum += ratio
            self._messages_saved += removed

    @staticmethod
    def _check_inputs(history: Sequence[Message], rules: RetentionRules) -> None:
        if not isinstance(rules, RetentionRules):
            raise CompressionError(
                "rules must be a RetentionRules instance",
                details={"type": type(rules).__name__},
            )
        for position, message in enumerate(history):
            if not isinstance(message, Message):
                raise CompressionError(
                    "History items must be Message instances",
                    details={"position": position, "type": type(message).__name__},
                )


def compress_messages(
    messages: Sequence[Message],
    rules: RetentionRules | None = None,
) -> list[Message]:
    """
    Convenience function to compress a history with default settings.

    Args:
        messages: History in original order.
        rules: Retention rules; defaults to RetentionRules().

    Returns:
        The compacted message list.
    """
    return ContextCompressor().compress(messages, rules or RetentionRules())
