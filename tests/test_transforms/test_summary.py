"""Tests for template summaries of discarded messages."""

from __future__ import annotations

from blade.messages import Message
from blade.transforms.summary import (
    SUMMARY_PREFIX,
    build_summary_message,
    extract_topics,
    insert_summary,
    summarize_messages,
)


class TestExtractTopics:
    """Tests for extract_topics."""

    def test_no_topics(self):
        assert extract_topics(["hi", "how are you"]) == []

    def test_table_order(self):
        """Topics come back in table order, not mention order."""
        topics = extract_topics(["please write a test", "the code has a bug"])
        assert topics == ["code development", "problem solving", "testing"]

    def test_limited_to_three(self):
        topics = extract_topics(["code bug config tutorial test performance"])
        assert topics == ["code development", "problem solving", "configuration"]

    def test_chinese_keywords(self):
        assert extract_topics(["请帮我优化性能"]) == ["performance"]

    def test_case_insensitive(self):
        assert extract_topics(["CONFIG"]) == ["configuration"]

    def test_messages_joined_with_space(self):
        """Keywords split across messages do not match."""
        assert extract_topics(["con", "fig"]) == []
        assert extract_topics(["documentation please"]) == ["documentation"]


class TestSummarizeMessages:
    """Tests for summarize_messages."""

    def test_counts_by_role(self, history_factory):
        discarded = history_factory(("user", "hi"), ("assistant", "hello"))
        assert summarize_messages(discarded) == "User asked 1 questions, Assistant provided 1 answers"

    def test_topics_clause(self, history_factory):
        discarded = history_factory(
            ("user", "There is a bug in my code"),
            ("assistant", "Let me look"),
            ("user", "Thanks"),
        )
        assert summarize_messages(discarded) == (
            "User asked 2 questions, "
            "Mainly concerning: code development, problem solving, "
            "Assistant provided 1 answers"
        )

    def test_assistant_only(self, history_factory):
        discarded = history_factory(("assistant", "one"), ("assistant", "two"))
        assert summarize_messages(discarded) == "Assistant provided 2 answers"

    def test_topics_only_from_user_messages(self, history_factory):
        discarded = history_factory(("assistant", "the config has a bug"))
        assert "Mainly concerning" not in summarize_messages(discarded)

    def test_system_only_is_empty(self, history_factory):
        discarded = history_factory(("system", "be brief"))
        assert summarize_messages(discarded) == ""

    def test_empty(self):
        assert summarize_messages([]) == ""


class TestBuildSummaryMessage:
    """Tests for build_summary_message."""

    def test_summary_message_shape(self, history_factory):
        discarded = history_factory(("user", "hi"), ("assistant", "hello"))
        summary = build_summary_message(discarded)

        assert summary is not None
        assert summary.role == "system"
        assert summary.content.startswith(SUMMARY_PREFIX)
        assert summary.content == (
            "[Context Summary] User asked 1 questions, Assistant provided 1 answers"
        )
        assert summary.sequence_index is None
        assert summary.metadata == {"compressed": True, "summarized_messages": 2}
        assert summary.is_compressed

    def test_nothing_to_summarize(self, history_factory):
        assert build_summary_message(history_factory(("system", "x"))) is None


class TestInsertSummary:
    """Tests for insert_summary placement."""

    def _summary(self) -> Message:
        return Message(role="system", content="[Context Summary] x", metadata={"compressed": True})

    def test_after_leading_system_messages(self, history_factory):
        retained = history_factory(("system", "a"), ("system", "b"), ("user", "c"))
        summary = self._summary()
        result = insert_summary(retained, summary)
        assert result.index(summary) == 2

    def test_first_when_no_system(self, history_factory):
        retained = history_factory(("user", "c"), ("assistant", "d"))
        summary = self._summary()
        assert insert_summary(retained, summary)[0] is summary

    def test_appended_when_all_system(self, history_factory):
        retained = history_factory(("system", "a"), ("system", "b"))
        summary = self._summary()
        assert insert_summary(retained, summary)[-1] is summary

    def test_appended_to_empty(self):
        summary = self._summary()
        assert insert_summary([], summary) == [summary]

    def test_later_system_message_stays_after_summary(self, history_factory):
        retained = history_factory(("system", "a"), ("user", "b"), ("system", "c"))
        summary = self._summary()
        result = insert_summary(retained, summary)
        assert [m.content for m in result] == ["a", summary.content, "b", "c"]

    def test_input_not_modified(self, history_factory):
        retained = history_factory(("user", "c"))
        insert_summary(retained, self._summary())
        assert len(retained) == 1
