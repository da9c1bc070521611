"""Template summaries for messages dropped by a compression pass.

Summaries are built from counts and a fixed topic table, never by a model
call, so a compression pass stays fast and repeatable.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..messages import Message, Role

SUMMARY_PREFIX = "[Context Summary] "
MAX_TOPICS = 3

# Checked in this order; the first MAX_TOPICS matches are reported
TOPIC_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "code development",
        ("代码", "code", "编程", "programming", "开发", "develop", "实现", "implement"),
    ),
    ("problem solving", ("错误", "error", "bug", "问题", "problem", "解决", "solve", "fix")),
    ("configuration", ("配置", "config", "设置", "setting")),
    ("documentation", ("文档", "document", "说明", "教程", "tutorial", "指南", "guide")),
    ("testing", ("测试", "test", "验证", "verify", "检查", "check")),
    ("performance", ("优化", "optimiz", "性能", "performance", "改进", "improve", "重构", "refactor")),
)


def extract_topics(contents: Sequence[str], limit: int = MAX_TOPICS) -> list[str]:
    """Return up to ``limit`` topic labels found in the given texts."""
    text = " ".join(contents).lower()
    topics = [
        topic for topic, keywords in TOPIC_KEYWORDS if any(keyword in text for keyword in keywords)
    ]
    return topics[:limit]


def summarize_messages(messages: Sequence[Message]) -> str:
    """Build the summary text (without prefix) for discarded messages.

    Returns an empty string when no clause applies, e.g. when only system
    messages were discarded.
    """
    user_messages = [m for m in messages if m.role == Role.USER.value]
    assistant_count = sum(1 for m in messages if m.role == Role.ASSISTANT.value)

    clauses: list[str] = []
    if user_messages:
        clauses.append(f"User asked {len(user_messages)} questions")
        topics = extract_topics([m.content for m in user_messages])
        if topics:
            clauses.append(f"Mainly concerning: {', '.join(topics)}")
    if assistant_count:
        clauses.append(f"Assistant provided {assistant_count} answers")

    return ", ".join(clauses)


def build_summary_message(discarded: Sequence[Message]) -> Message | None:
    """Synthesize the system message standing in for ``discarded``.

    Returns None when there is nothing worth summarizing.
    """
    summary = summarize_messages(discarded)
    if not summary:
        return None
    return Message(
        role=Role.SYSTEM.value,
        content=SUMMARY_PREFIX + summary,
        sequence_index=None,
        metadata={"compressed": True, "summarized_messages": len(discarded)},
    )


def insert_summary(retained: list[Message], summary: Message) -> list[Message]:
    """Splice ``summary`` before the first non-system message.

    Appends when every retained message is a system message. System
    messages that come after the first non-system message stay where they
    are, so the summary can end up between two system messages.
    """
    for position, message in enumerate(retained):
        if message.role != Role.SYSTEM.value:
            return retained[:position] + [summary] + retained[position:]
    return retained + [summary]
