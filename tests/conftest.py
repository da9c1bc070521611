"""Shared pytest fixtures for Blade tests."""

from __future__ import annotations

import json

import pytest

from blade.config import RetentionRules
from blade.messages import Message, messages_from_dicts
from blade.providers import ChatResponse


def make_history(*turns: tuple[str, str]) -> list[Message]:
    """Build an indexed history from (role, content) pairs."""
    return messages_from_dicts({"role": role, "content": content} for role, content in turns)


# Sample history fixtures
@pytest.fixture
def sample_history():
    """Short conversation with a system prompt and two Q/A pairs."""
    return make_history(
        ("system", "You are helpful"),
        ("user", "hi"),
        ("assistant", "hello"),
        ("user", "what is 2+2?"),
        ("assistant", "4"),
    )


@pytest.fixture
def sample_rules():
    """Keep the last two turns and system messages, no importance slice."""
    return RetentionRules(
        keep_recent_messages=2,
        keep_system_messages=True,
        keep_important_messages=False,
    )


@pytest.fixture
def long_history():
    """System prompt followed by 20 Q/A pairs of mixed content."""
    turns: list[tuple[str, str]] = [("system", "You are a coding assistant.")]
    for i in range(20):
        if i % 5 == 0:
            turns.append(("user", f"I get an error in the database config, step {i}"))
            turns.append(("assistant", f"```python\nimport os\nprint(os.environ)  # {i}\n```"))
        else:
            turns.append(("user", f"Question number {i} about the weather today"))
            turns.append(("assistant", f"Answer number {i}, it should be sunny"))
    return make_history(*turns)


@pytest.fixture
def history_file(tmp_path, sample_history):
    """sample_history written as a JSON list of message dicts."""
    path = tmp_path / "history.json"
    path.write_text(
        json.dumps([m.to_dict() for m in sample_history], ensure_ascii=False),
        encoding="utf-8",
    )
    return path


# Chat model fixtures
class FakeChatModel:
    """Chat model double recording every call."""

    def __init__(self, reply: str = "Sure.", usage=None, error: Exception | None = None):
        self.reply = reply
        self.usage = usage
        self.error = error
        self.calls: list[list[dict]] = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return ChatResponse(content=self.reply, usage=self.usage, model="fake")

    async def stream(self, messages):
        for word in self.reply.split():
            yield word


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_model():
    return FakeChatModel()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def model_factory():
    """FakeChatModel class, for tests that need custom replies or errors."""
    return FakeChatModel


@pytest.fixture
def history_factory():
    """make_history helper: history_factory(("user", "hi"), ...)."""
    return make_history
