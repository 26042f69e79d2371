"""Turn Values - Per-Turn State Passed Through the Orchestrator.

Everything here is created at the start of one user turn and discarded at its
end. The only state that outlives a turn is the conversation history, which
is owned by the caller and handed back inside AgentTurn.context.

Architecture:
    - Message: one conversation entry (what is literally sent upstream)
    - ExecutionContext: identity + history + metadata for one turn
    - AgentConfig: persona, model and enabled tools of an agent
    - UsageRecord: additive token/call/cost accumulator for one run
    - AgentResponse / AgentTurn: terminal artifacts of one orchestration run

All models are frozen; "appending" returns a new instance so a context can be
shared read-only with tool handlers while the turn builds its successor.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .domain_type import MessageRole

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


class Message(BaseModel):
    """Single Conversation Message.

    Ordering is insertion order and is semantically significant: the assembled
    sequence of Messages is exactly what the provider receives.
    """

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content)


class ExecutionContext(BaseModel):
    """Per-Turn Execution Context.

    Bundles the caller's identity, the conversation so far and free-form
    metadata. Tool handlers receive it read-only.

    Attributes:
        user_id: Requesting user
        session_id: Chat session the turn belongs to
        agent_id: Agent being executed (optional for direct chat)
        conversation_history: Ordered messages preceding this turn
        metadata: Caller-supplied extras (locale, plan, ...)

    Concurrency:
        At most one in-flight turn per session. The caller serializes turns
        for the same session; the core never locks.
    """

    user_id: str
    session_id: str
    agent_id: str | None = None
    conversation_history: tuple[Message, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def append_message(self, msg: Message) -> ExecutionContext:
        """Append Message Immutably.

        Returns:
            New ExecutionContext with msg at the end of the history; the
            original instance is unchanged.
        """
        return self.model_copy(update={"conversation_history": (*self.conversation_history, msg)})


class AgentConfig(BaseModel):
    """Agent Definition: persona, model and enabled tools."""

    id: str
    name: str = "AI Assistant"
    model: str = "gpt-4"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    tools: tuple[str, ...] = ()
    max_tokens: int = Field(default=1000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    model_config = ConfigDict(frozen=True)


class UsageRecord(BaseModel):
    """Running Usage Accumulator for One Orchestration Run.

    Not a ledger: it lives on one turn's call stack and is never shared.
    Increments must be non-negative, which keeps ``cost`` monotonically
    non-decreasing across successive accounted calls.
    """

    tokens: int = Field(default=0, ge=0)
    api_calls: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)

    model_config = ConfigDict(frozen=True)

    def add(self, *, tokens: int = 0, api_calls: int = 0, cost: float = 0.0) -> UsageRecord:
        if tokens < 0 or api_calls < 0 or cost < 0:
            raise ValueError("Usage increments must be non-negative")
        return UsageRecord(
            tokens=self.tokens + tokens,
            api_calls=self.api_calls + api_calls,
            cost=self.cost + cost,
        )

    def merge(self, other: UsageRecord) -> UsageRecord:
        return self.add(tokens=other.tokens, api_calls=other.api_calls, cost=other.cost)


class ResponseMetadata(BaseModel):
    """How the answer was produced."""

    model_used: str
    provider: str | None = None
    response_time_ms: float = Field(default=0.0, ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)
    fallback_used: bool = False
    attempts: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class AgentResponse(BaseModel):
    """Terminal Artifact of One Orchestration Run.

    Serialized as JSON for the UI layer. Failures are never raised to the
    caller; they surface here as low-confidence diagnostic content.
    """

    content: str
    tools_used: tuple[str, ...] = ()
    usage: UsageRecord = Field(default_factory=UsageRecord)
    metadata: ResponseMetadata

    model_config = ConfigDict(frozen=True)


class AgentTurn(BaseModel):
    """Response plus the caller-owned context with this turn appended."""

    response: AgentResponse
    context: ExecutionContext

    model_config = ConfigDict(frozen=True)


__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "AgentConfig",
    "AgentResponse",
    "AgentTurn",
    "ExecutionContext",
    "Message",
    "ResponseMetadata",
    "UsageRecord",
]
