"""Tests for the append-only conversation transcript."""

from todo_agent.agent.conversation import ConversationState
from todo_agent.core.schema import (
    Message,
    Observation,
)


def test_seeded_with_system_prompt() -> None:
    state = ConversationState("be helpful")

    assert state.snapshot() == (Message(role="system", content="be helpful"),)


def test_append_preserves_order() -> None:
    state = ConversationState("sys")
    first = Message(role="user", content="a")
    second = Message(role="assistant", content="b")

    state.append(first)
    state.append(second)

    assert state.snapshot() == (Message(role="system", content="sys"), first, second)


def test_snapshot_is_read_only() -> None:
    state = ConversationState("sys")
    view = state.snapshot()

    state.append(Message(role="user", content="later"))

    assert len(view) == 1
    assert isinstance(view, tuple)


def test_observation_messages() -> None:
    ok = Observation(observation=[]).to_message()
    failed = Observation(error="boom").to_message()

    assert ok == Message(role="user", content='{"type":"observation","observation":[]}')
    assert failed == Message(role="user", content='{"type":"observation","error":"boom"}')
