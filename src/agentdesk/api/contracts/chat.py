"""Direct chat API contracts."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ...domain.domain_value import UsageRecord
from .agents import HistoryMessage


class ChatRequest(BaseModel):
    """Direct chat request; no tools run."""

    messages: list[HistoryMessage] = Field(
        min_length=1,
        description="Full conversation, oldest first, ending with the user's message",
    )
    model: str | None = Field(
        default=None,
        description="Model identifier; defaults to the configured DEFAULT_MODEL",
        examples=["meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"],
    )
    max_tokens: int | None = Field(default=None, gt=0, le=32_000)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)


class ChatResponse(BaseModel):
    success: bool
    content: str
    model_used: str
    provider: str | None = None
    fallback_used: bool = False
    attempts: list[str] = Field(default_factory=list)
    usage: UsageRecord
    confidence: float = Field(ge=0.0, le=1.0)
