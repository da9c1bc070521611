"""Retention planning: which messages survive a compression pass verbatim."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from ..config import IMPORTANT_FRACTION, RetentionRules
from ..messages import Message, Role
from .scoring import ImportanceScorer

logger = logging.getLogger(__name__)


class RetentionPlanner:
    """Select the messages to keep verbatim under a set of RetentionRules.

    The retained set is the union of three subsets, deduplicated by
    position and returned in original order:

    1. System messages (keep_system_messages)
    2. The last keep_recent_messages messages
    3. The top floor(0.3 * N) messages by importance (keep_important_messages)

    Identity is positional: two messages with equal content at different
    positions are different messages.
    """

    def __init__(self, scorer: ImportanceScorer | None = None):
        self.scorer = scorer or ImportanceScorer()

    def plan(self, history: Sequence[Message], rules: RetentionRules) -> list[Message]:
        """Return the retained messages in ascending original order."""
        return [history[i] for i in self.plan_indices(history, rules)]

    def plan_indices(self, history: Sequence[Message], rules: RetentionRules) -> list[int]:
        """Return the positions of retained messages, ascending.

        Args:
            history: Full message history in original order.
            rules: Retention rules for this pass.

        Returns:
            Sorted list of positions into ``history``.
        """
        total = len(history)
        if total <= rules.keep_recent_messages:
            return list(range(total))

        retained: set[int] = set()

        if rules.keep_system_messages:
            retained.update(i for i, m in enumerate(history) if m.role == Role.SYSTEM.value)

        if rules.keep_recent_messages > 0:
            retained.update(range(total - rules.keep_recent_messages, total))

        if rules.keep_important_messages:
            important_count = math.floor(total * IMPORTANT_FRACTION)
            ranked = self.scorer.rank(self.scorer.score(history))
            retained.update(s.index for s in ranked[:important_count])

        logger.debug(
            "RetentionPlanner: retaining %d of %d messages (rules=%s)",
            len(retained),
            total,
            rules,
        )
        return sorted(retained)
