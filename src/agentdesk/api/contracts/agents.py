"""Agent execution API contracts - use domain types directly."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ...domain.domain_type import MessageRole
from ...domain.domain_value import Message, ResponseMetadata, UsageRecord


class HistoryMessage(BaseModel):
    """One conversation entry as exchanged with the UI."""

    role: MessageRole = Field(examples=["user"])
    content: str = Field(max_length=50_000, examples=["What's the latest in AI?"])

    def to_domain(self) -> Message:
        return Message(role=self.role, content=self.content)

    @classmethod
    def from_domain(cls, message: Message) -> HistoryMessage:
        return cls(role=message.role, content=message.content)


class ExecuteAgentRequest(BaseModel):
    """Request to run one agent turn."""

    agent_id: str = Field(
        min_length=1,
        description="Agent to execute",
        examples=["research-assistant"],
    )
    message: str = Field(
        min_length=1,
        max_length=10_000,
        description="User message for this turn",
        examples=["Search for the latest AI news"],
    )
    user_id: str = Field(min_length=1, description="Requesting user", examples=["user-123"])
    session_id: str | None = Field(
        default=None,
        description="Chat session; defaults to 'default-session'",
        examples=["session-abc"],
    )
    history: list[HistoryMessage] = Field(
        default_factory=list,
        description="Conversation so far, oldest first (excluding this message)",
    )
    model: str | None = Field(
        default=None,
        description="Optional model override (e.g. 'claude-3-sonnet', 'meta-llama/Llama-3-70b')",
        examples=["gpt-4o-mini"],
    )
    tools: list[str] | None = Field(
        default=None,
        description="Optional enabled-tool override; None keeps the agent's default tools",
        examples=[["web_search", "analyze_data"]],
    )


class ExecuteAgentResponse(BaseModel):
    """Result of one agent turn; failures surface as low-confidence content."""

    success: bool = Field(description="False when the answer is a diagnostic message")
    response: str = Field(description="Assistant reply")
    tools_used: list[str] = Field(description="Tools executed this turn, in order")
    usage: UsageRecord
    metadata: ResponseMetadata
    history: list[HistoryMessage] = Field(description="History including this turn")


class ToolSummary(BaseModel):
    id: str
    name: str
    description: str


class AvailableToolsResponse(BaseModel):
    message: str
    available_tools: list[ToolSummary]
