"""Provider Call Contract - One Completion Request, Outcome as a Value.

The orchestrator treats upstream chat APIs as black boxes behind
ProviderClient. Implementations must never raise across this boundary:
every failure comes back as a ProviderFailure carrying its ErrorKind, so the
fallback executor can decide what to try next without exception plumbing.

ProviderOutcome = ProviderSuccess | ProviderFailure, discriminated on
``status``, mirroring ToolResult.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Annotated, Any, Literal, Protocol

import logfire
from pydantic import BaseModel, ConfigDict, Field

from .domain_type import ErrorKind, MessageRole, OutcomeStatus
from .domain_value import Message
from .errors import AgentDeskError, classify_exception
from .model_pool import ModelPool
from .provider_registry import Provider

if TYPE_CHECKING:
    from pydantic_ai.messages import ModelMessage


class ProviderRequest(BaseModel):
    messages: tuple[Message, ...]
    model: str
    max_tokens: int = Field(default=1000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout: float | None = Field(default=None, gt=0)

    model_config = ConfigDict(frozen=True)


class ProviderUsage(BaseModel):
    """Billed units reported by the provider for one call."""

    prompt_units: int = Field(default=0, ge=0)
    completion_units: int = Field(default=0, ge=0)
    total_units: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, prompt_units: int = 0, completion_units: int = 0) -> ProviderUsage:
        return cls(
            prompt_units=prompt_units,
            completion_units=completion_units,
            total_units=prompt_units + completion_units,
        )


class ProviderSuccess(BaseModel):
    status: Literal[OutcomeStatus.SUCCESS] = OutcomeStatus.SUCCESS
    content: str
    usage: ProviderUsage = Field(default_factory=ProviderUsage)
    model_echo: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        return True


class ProviderFailure(BaseModel):
    """Failed call; ``content`` holds the upstream error message."""

    status: Literal[OutcomeStatus.FAILURE] = OutcomeStatus.FAILURE
    kind: ErrorKind = ErrorKind.UNKNOWN
    content: str
    usage: ProviderUsage = Field(default_factory=ProviderUsage)

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        return False


ProviderOutcome = Annotated[ProviderSuccess | ProviderFailure, Field(discriminator="status")]


class ProviderClient(Protocol):
    """Anything that can turn a ProviderRequest into a ProviderOutcome."""

    async def complete(self, provider: Provider, request: ProviderRequest) -> ProviderSuccess | ProviderFailure: ...


def failure_from_exception(exc: BaseException) -> ProviderFailure:
    message = exc.message if isinstance(exc, AgentDeskError) else str(exc) or type(exc).__name__
    return ProviderFailure(kind=classify_exception(exc), content=message)


def to_model_messages(messages: Sequence[Message]) -> tuple[list[ModelMessage], list[str]]:
    """Split Messages into Pydantic AI History and the Prompt for This Run.

    The trailing run of user messages (the question plus, when tools ran, the
    tool-results message) becomes the user prompt. Everything before it is
    history: consecutive system/user messages merge into one ModelRequest,
    assistant messages become ModelResponses.

    Returns:
        (message_history, user_prompt_parts)
    """
    from pydantic_ai.messages import (
        ModelRequest,
        ModelResponse,
        SystemPromptPart,
        TextPart,
        UserPromptPart,
    )

    split = len(messages)
    while split > 0 and messages[split - 1].role == MessageRole.USER:
        split -= 1
    prompt = [m.content for m in messages[split:]]

    history: list[ModelMessage] = []
    pending: list[Any] = []
    for msg in messages[:split]:
        if msg.role == MessageRole.ASSISTANT:
            if pending:
                history.append(ModelRequest(parts=pending))
                pending = []
            history.append(ModelResponse(parts=[TextPart(content=msg.content)]))
        elif msg.role == MessageRole.SYSTEM:
            pending.append(SystemPromptPart(content=msg.content))
        else:
            pending.append(UserPromptPart(content=msg.content))
    if pending:
        history.append(ModelRequest(parts=pending))
    return history, prompt


class PydanticAIProviderClient:
    """ProviderClient Backed by Pydantic AI.

    Runs each request through the pooled Agent for (provider, model) and maps
    Pydantic AI / HTTP failures onto ErrorKind. Never raises.
    """

    def __init__(self, pool: ModelPool) -> None:
        self.pool = pool

    async def complete(self, provider: Provider, request: ProviderRequest) -> ProviderSuccess | ProviderFailure:
        from pydantic_ai.messages import ModelResponse
        from pydantic_ai.settings import ModelSettings

        settings = ModelSettings(max_tokens=request.max_tokens, temperature=request.temperature)
        if request.timeout is not None:
            settings["timeout"] = request.timeout

        try:
            agent = self.pool.get_agent(provider, request.model)
            history, prompt = to_model_messages(request.messages)
            result = await agent.run(
                prompt[0] if len(prompt) == 1 else (prompt or None),
                message_history=history or None,
                model_settings=settings,
            )
        except Exception as exc:
            failure = failure_from_exception(exc)
            logfire.warn(
                "provider call failed",
                provider=provider.id,
                model=request.model,
                error_kind=failure.kind,
                error=failure.content,
            )
            return failure

        usage = result.usage()
        model_echo = next(
            (m.model_name for m in reversed(result.all_messages()) if isinstance(m, ModelResponse) and m.model_name),
            None,
        )
        return ProviderSuccess(
            content=result.output,
            usage=ProviderUsage.of(usage.input_tokens or 0, usage.output_tokens or 0),
            model_echo=model_echo,
        )


__all__ = [
    "ProviderClient",
    "ProviderFailure",
    "ProviderOutcome",
    "ProviderRequest",
    "ProviderSuccess",
    "ProviderUsage",
    "PydanticAIProviderClient",
    "failure_from_exception",
    "to_model_messages",
]
