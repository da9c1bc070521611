"""Importance scoring for conversation messages.

Scores are only used to rank messages against each other when deciding
what survives a compression pass. Absolute values carry no meaning.

Signals (additive, clamped at zero after summing):
- Role: system messages dominate (+100)
- Recency: linear in position, (N - index) / N * 20, index 0 gets the full weight
- Length: long messages gain, very short ones lose
- Keywords: +2 per matched error/implementation/config/API/database term
- Q/A adjacency: a user message answered by the next message
- Code: any code indicator present
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..messages import Message, Role

SYSTEM_BONUS = 100.0
RECENCY_WEIGHT = 20.0
RECENT_TAG_THRESHOLD = 15.0

DETAILED_LENGTH = 500
DETAILED_BONUS = 10.0
BRIEF_LENGTH = 50
BRIEF_PENALTY = -5.0

KEYWORD_BONUS = 2.0
KEYWORD_TAG_THRESHOLD = 5.0
QA_PAIR_BONUS = 15.0
CODE_BONUS = 15.0

# Matched case-insensitively against lowercased content. Chinese and English
# forms are separate entries and score separately.
IMPORTANT_KEYWORDS: tuple[str, ...] = (
    "错误",
    "error",
    "bug",
    "问题",
    "issue",
    "实现",
    "implement",
    "解决",
    "solve",
    "配置",
    "config",
    "设置",
    "setting",
    "api",
    "接口",
    "interface",
    "数据库",
    "database",
    "数据",
    "data",
)

# Matched case-sensitively
CODE_INDICATORS: tuple[str, ...] = (
    "```",
    "function",
    "class",
    "const",
    "let",
    "var",
    "def ",
    "import ",
    "from ",
    "{",
    "}",
    "()",
    "=>",
    "console.log",
    "print(",
)


@dataclass(frozen=True)
class ImportanceScore:
    """Score for one message at one position in a history."""

    message: Message
    index: int
    score: float
    reasons: tuple[str, ...] = ()


def keyword_score(content: str) -> float:
    """Sum the keyword bonus over every keyword found in content."""
    lowered = content.lower()
    return sum(KEYWORD_BONUS for keyword in IMPORTANT_KEYWORDS if keyword in lowered)


def contains_code(content: str) -> bool:
    return any(indicator in content for indicator in CODE_INDICATORS)


class ImportanceScorer:
    """Deterministic multi-factor message scorer.

    Example:
        scorer = ImportanceScorer()
        scores = scorer.score(history)
        top = scorer.rank(scores)[:3]
    """

    def score(self, history: Sequence[Message]) -> list[ImportanceScore]:
        """Score every message in a history.

        Args:
            history: Messages in original order.

        Returns:
            One ImportanceScore per message, in the same order.
        """
        return [self.score_message(history, index) for index in range(len(history))]

    def score_message(self, history: Sequence[Message], index: int) -> ImportanceScore:
        """Score the message at ``index`` in the context of its history."""
        message = history[index]
        total = len(history)
        content = message.content or ""
        score = 0.0
        reasons: list[str] = []

        # Unknown roles contribute nothing here
        if message.role == Role.SYSTEM.value:
            score += SYSTEM_BONUS
            reasons.append("system")

        recency = max(0.0, (total - index) / total * RECENCY_WEIGHT)
        score += recency
        if recency > RECENT_TAG_THRESHOLD:
            reasons.append("recent")

        if len(content) > DETAILED_LENGTH:
            score += DETAILED_BONUS
            reasons.append("detailed")
        elif len(content) < BRIEF_LENGTH:
            score += BRIEF_PENALTY
            reasons.append("brief")

        keywords = keyword_score(content)
        score += keywords
        if keywords > KEYWORD_TAG_THRESHOLD:
            reasons.append("keyword")

        if (
            message.role == Role.USER.value
            and index + 1 < total
            and history[index + 1].role == Role.ASSISTANT.value
        ):
            score += QA_PAIR_BONUS
            reasons.append("qa-pair")

        if contains_code(content):
            score += CODE_BONUS
            reasons.append("code")

        return ImportanceScore(
            message=message,
            index=index,
            score=max(0.0, score),
            reasons=tuple(reasons),
        )

    @staticmethod
    def rank(scores: Sequence[ImportanceScore]) -> list[ImportanceScore]:
        """Order scores best first; ties go to the earlier message."""
        return sorted(scores, key=lambda s: (-s.score, s.index))
