"""Tests for configuration models and exceptions."""

from __future__ import annotations

import dataclasses

import pytest

from blade.config import (
    IMPORTANT_FRACTION,
    CompressionStrategy,
    ContextStrategy,
    RetentionRules,
)
from blade.exceptions import (
    BladeError,
    CompressionError,
    ConfigurationError,
    MessageError,
    ModelError,
    SessionError,
    TokenizationError,
)


class TestRetentionRules:
    """Tests for RetentionRules validation."""

    def test_defaults(self):
        rules = RetentionRules()
        assert rules.keep_recent_messages == 10
        assert rules.keep_system_messages is True
        assert rules.keep_important_messages is True

    def test_zero_recent_allowed(self):
        assert RetentionRules(keep_recent_messages=0).keep_recent_messages == 0

    def test_negative_recent_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            RetentionRules(keep_recent_messages=-1)
        assert exc_info.value.details == {"keep_recent_messages": -1}

    @pytest.mark.parametrize("value", [True, 2.5, "3", None])
    def test_non_integer_recent_rejected(self, value):
        with pytest.raises(ConfigurationError):
            RetentionRules(keep_recent_messages=value)

    @pytest.mark.parametrize("field_name", ["keep_system_messages", "keep_important_messages"])
    def test_non_boolean_flags_rejected(self, field_name):
        with pytest.raises(ConfigurationError):
            RetentionRules(**{field_name: 1})

    def test_frozen(self):
        rules = RetentionRules()
        with pytest.raises(dataclasses.FrozenInstanceError):
            rules.keep_recent_messages = 3

    def test_from_dict_camel_case(self):
        rules = RetentionRules.from_dict(
            {"keepRecentMessages": 4, "keepSystemMessages": False, "keepImportantMessages": False}
        )
        assert rules == RetentionRules(4, False, False)

    def test_from_dict_partial(self):
        assert RetentionRules.from_dict({"keep_recent_messages": 3}) == RetentionRules(3)

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            RetentionRules.from_dict({"keepRecent": 4})
        assert exc_info.value.details == {"keys": ["keepRecent"]}

    def test_to_dict(self):
        assert RetentionRules(2, True, False).to_dict() == {
            "keep_recent_messages": 2,
            "keep_system_messages": True,
            "keep_important_messages": False,
        }

    def test_important_fraction_fixed(self):
        assert IMPORTANT_FRACTION == 0.3
        assert "important_fraction" not in RetentionRules().to_dict()


class TestContextStrategy:
    """Tests for ContextStrategy validation."""

    def test_defaults(self):
        strategy = ContextStrategy()
        assert strategy.max_messages == 50
        assert strategy.max_tokens == 8000
        assert strategy.compression_threshold == 6000
        assert strategy.retention_rules == RetentionRules()

    def test_threshold_above_max_tokens(self):
        with pytest.raises(ConfigurationError):
            ContextStrategy(max_tokens=1000, compression_threshold=2000)

    def test_threshold_equal_to_max_tokens(self):
        assert ContextStrategy(max_tokens=1000, compression_threshold=1000).max_tokens == 1000

    @pytest.mark.parametrize("field_name", ["max_messages", "max_tokens", "compression_threshold"])
    def test_non_positive_limits(self, field_name):
        with pytest.raises(ConfigurationError):
            ContextStrategy(**{field_name: 0})

    def test_rules_from_dict(self):
        strategy = ContextStrategy(retention_rules={"keep_recent_messages": 5})
        assert strategy.retention_rules == RetentionRules(keep_recent_messages=5)

    def test_invalid_rules_type(self):
        with pytest.raises(ConfigurationError):
            ContextStrategy(retention_rules=[5, True, True])

    def test_from_dict_nested_camel_case(self):
        strategy = ContextStrategy.from_dict(
            {
                "maxMessages": 20,
                "maxTokens": 4000,
                "compressionThreshold": 3000,
                "retentionRules": {"keepRecentMessages": 6},
            }
        )
        assert strategy.max_messages == 20
        assert strategy.compression_threshold == 3000
        assert strategy.retention_rules.keep_recent_messages == 6

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigurationError):
            ContextStrategy.from_dict({"maxTurns": 5})

    def test_to_dict_nests_rules(self):
        data = ContextStrategy().to_dict()
        assert data["retention_rules"]["keep_recent_messages"] == 10


class TestCompressionStrategy:
    """Tests for CompressionStrategy values."""

    def test_values(self):
        assert CompressionStrategy.NONE.value == "none"
        assert CompressionStrategy.RETAIN_SUMMARIZE.value == "retain_summarize"
        assert CompressionStrategy.RETAIN_ONLY.value == "retain_only"

    def test_string_comparison(self):
        assert CompressionStrategy.NONE == "none"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_str_without_details(self):
        assert str(BladeError("boom")) == "boom"

    def test_str_with_details(self):
        error = ConfigurationError("bad value", details={"keep_recent_messages": -1})
        assert str(error) == "bad value (keep_recent_messages=-1)"
        assert error.message == "bad value"

    def test_details_default_empty(self):
        assert SessionError("missing").details == {}

    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, CompressionError, MessageError, SessionError, ModelError, TokenizationError],
    )
    def test_hierarchy(self, cls):
        assert issubclass(cls, BladeError)
        with pytest.raises(BladeError):
            raise cls("x")
