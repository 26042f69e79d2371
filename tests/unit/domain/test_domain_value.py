"""
Tests for per-turn value types.

These tests demonstrate:
- Testing immutability patterns (append returns a new context)
- Testing business rules (usage increments are non-negative)
- Not testing Pydantic validation itself
"""

import pytest

from agentdesk.domain.domain_type import MessageRole
from agentdesk.domain.domain_value import ExecutionContext, Message, UsageRecord


def test_append_message_returns_new_context(context: ExecutionContext):
    """
    Demonstrates: Testing immutability pattern without testing frozen=True.

    The caller's context is unchanged; the returned one carries the message.
    """
    updated = context.append_message(Message.user("Hello"))

    assert updated is not context
    assert len(updated.conversation_history) == 1
    assert len(context.conversation_history) == 0


def test_append_message_preserves_order(context: ExecutionContext):
    """
    Demonstrates: Testing business logic (message ordering).

    Messages accumulate in insertion order, which is what the provider sees.
    """
    updated = (
        context.append_message(Message.user("first"))
        .append_message(Message.assistant("second"))
        .append_message(Message.user("third"))
    )

    assert [m.content for m in updated.conversation_history] == ["first", "second", "third"]
    assert [m.role for m in updated.conversation_history] == [
        MessageRole.USER,
        MessageRole.ASSISTANT,
        MessageRole.USER,
    ]


def test_append_message_keeps_identity_fields(context: ExecutionContext):
    """Demonstrates: Only the history changes on append."""
    updated = context.append_message(Message.user("Hello"))

    assert updated.user_id == context.user_id
    assert updated.session_id == context.session_id
    assert updated.agent_id == context.agent_id


def test_usage_add_accumulates():
    """Demonstrates: Functional accumulation of usage."""
    usage = UsageRecord().add(tokens=150, api_calls=1, cost=0.0045).add(api_calls=1, cost=0.04)

    assert usage.tokens == 150
    assert usage.api_calls == 2
    assert usage.cost == pytest.approx(0.0445)


def test_usage_rejects_negative_increment():
    """
    Demonstrates: Enforcing the monotonic-cost rule at the only mutation point.

    A refund-like negative cost would make cost decrease between calls.
    """
    with pytest.raises(ValueError):
        UsageRecord().add(cost=-0.01)


def test_usage_merge_sums_both_records():
    """Demonstrates: Merging two partial tallies."""
    merged = UsageRecord(tokens=10, api_calls=1, cost=0.1).merge(UsageRecord(tokens=5, api_calls=2, cost=0.2))

    assert (merged.tokens, merged.api_calls) == (15, 3)
    assert merged.cost == pytest.approx(0.3)
