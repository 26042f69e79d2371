"""Agent Orchestrator - One User Turn, End to End.

Turn Sequence:
    1. append the user message to the caller's context
    2. classify   which enabled tools the message calls for
    3. dispatch   run them sequentially, failures contained
    4. assemble   system prompt + history + user message + tool results
    5. route      model identifier → credentialed provider
    6. execute    primary provider, then the fallback chain
    7. account    tokens, calls and cost across providers and tools
    8. append the assistant message and return

Failure Boundaries:
    Tool failures become ToolFailure values and never trigger provider
    fallback. Provider failures are retried by the FallbackExecutor and never
    re-run tools. ConfigurationError (no credentialed provider) and anything
    unexpected are converted here into a low-confidence diagnostic response;
    run() never raises to its caller.

Confidence:
    0.95 primary provider answered
    0.75 a fallback provider answered
    0.2  every candidate failed
    0.1  configuration or unexpected error
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import logfire
from pydantic import BaseModel, ConfigDict, Field

from .context_assembler import ContextAssembler
from .dispatcher import ToolDispatcher
from .domain_type import ErrorKind, TurnStep
from .domain_value import (
    AgentConfig,
    AgentResponse,
    AgentTurn,
    ExecutionContext,
    Message,
    ResponseMetadata,
    UsageRecord,
)
from .errors import ConfigurationError, classify_exception
from .fallback import FALLBACK_CHAIN, CallOptions, ChainEntry, FallbackExecutor, FallbackResult
from .intent import IntentClassifier
from .model_router import ModelRouter
from .provider_client import ProviderClient
from .provider_registry import ProviderRegistry
from .tool_registry import ToolInvocation, ToolRegistry
from .turn_trace import TurnTrace
from .usage import UsageAccountant

CONFIDENCE_PRIMARY = 0.95
CONFIDENCE_FALLBACK = 0.75
CONFIDENCE_EXHAUSTED = 0.2
CONFIDENCE_ERROR = 0.1

UNEXPECTED_ERROR_MESSAGE = (
    "Something went wrong while preparing a response. Please try again in a moment; "
    "if the problem persists, check the system status at /health."
)


class ChatResult(BaseModel):
    """Direct chat outcome (no tools)."""

    success: bool
    content: str
    model_used: str
    provider: str | None = None
    fallback_used: bool = False
    attempts: tuple[str, ...] = ()
    usage: UsageRecord = Field(default_factory=UsageRecord)
    confidence: float = Field(ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)


def _elapsed_ms(started: datetime) -> float:
    return (datetime.now(UTC) - started).total_seconds() * 1000


class AgentOrchestrator:
    """Coordinate Classifier, Dispatcher, Assembler, Router, Fallback and Accountant.

    All collaborators are injected; the orchestrator holds no state between
    turns, so one instance serves every session concurrently.
    """

    def __init__(
        self,
        *,
        tools: ToolRegistry,
        router: ModelRouter,
        classifier: IntentClassifier,
        dispatcher: ToolDispatcher,
        assembler: ContextAssembler,
        fallback: FallbackExecutor,
        accountant: UsageAccountant,
        call_timeout: float = 60.0,
    ) -> None:
        self.tools = tools
        self.router = router
        self.classifier = classifier
        self.dispatcher = dispatcher
        self.assembler = assembler
        self.fallback = fallback
        self.accountant = accountant
        self.call_timeout = call_timeout

    @classmethod
    def build(
        cls,
        providers: ProviderRegistry,
        tools: ToolRegistry,
        client: ProviderClient,
        *,
        chain: Sequence[ChainEntry] = FALLBACK_CHAIN,
        call_timeout: float = 60.0,
    ) -> AgentOrchestrator:
        """Wire the default collaborators around a registry pair and a client."""
        return cls(
            tools=tools,
            router=ModelRouter(providers),
            classifier=IntentClassifier(tools),
            dispatcher=ToolDispatcher(tools),
            assembler=ContextAssembler(tools),
            fallback=FallbackExecutor(providers, client, chain),
            accountant=UsageAccountant(),
            call_timeout=call_timeout,
        )

    async def execute(self, agent: AgentConfig, message: str, context: ExecutionContext) -> AgentResponse:
        return (await self.run(agent, message, context)).response

    async def run(self, agent: AgentConfig, message: str, context: ExecutionContext) -> AgentTurn:
        """Execute One Agent Turn.

        Args:
            agent: Persona, model and enabled tools
            message: Current user message
            context: Caller-owned context holding the history *before* this turn

        Returns:
            AgentTurn with the response and the context extended by this
            turn's user and assistant messages
        """
        started = datetime.now(UTC)
        turn_context = context.append_message(Message.user(message))
        trace = TurnTrace()
        invocations: list[ToolInvocation] = []

        with logfire.span(
            "agent turn {agent_id}",
            agent_id=agent.id,
            session_id=context.session_id,
            model=agent.model,
        ) as span:
            try:
                step_start = datetime.now(UTC)
                selections = self.classifier.classify(message, agent.tools)
                trace = trace.success(
                    TurnStep.CLASSIFY, step_start, ",".join(s.tool_id for s in selections) or "none"
                )

                if selections:
                    step_start = datetime.now(UTC)
                    invocations = await self.dispatcher.execute(selections, turn_context)
                    failed = sum(1 for inv in invocations if not inv.result.success)
                    trace = trace.success(TurnStep.DISPATCH, step_start, f"{len(invocations)} ran, {failed} failed")
                else:
                    trace = trace.skipped(TurnStep.DISPATCH, "no tools selected")

                step_start = datetime.now(UTC)
                messages = self.assembler.assemble(agent, context, invocations, message)
                trace = trace.success(TurnStep.ASSEMBLE, step_start, f"{len(messages)} messages")

                step_start = datetime.now(UTC)
                try:
                    route = self.router.resolve_route(agent.model)
                except ConfigurationError as exc:
                    trace = trace.failure(TurnStep.ROUTE, step_start, exc.kind, exc.message)
                    raise
                trace = trace.success(TurnStep.ROUTE, step_start, f"{route.provider.id}/{route.model}")

                step_start = datetime.now(UTC)
                result = await self.fallback.run(
                    messages,
                    route,
                    CallOptions(max_tokens=agent.max_tokens, temperature=agent.temperature, timeout=self.call_timeout),
                )
                if result.succeeded:
                    trace = trace.success(TurnStep.EXECUTE, step_start, f"{len(result.attempts)} attempt(s)")
                else:
                    trace = trace.failure(
                        TurnStep.EXECUTE, step_start, ErrorKind.NETWORK, "all provider attempts failed"
                    )

                step_start = datetime.now(UTC)
                usage = self.accountant.tally(result.attempts, invocations, self.tools)
                trace = trace.success(TurnStep.ACCOUNT, step_start, f"{usage.tokens} tokens, ${usage.cost:.6f}")

                response = self._response(result, usage, invocations, agent, started)

            except ConfigurationError as exc:
                logfire.error("agent turn not configured", error=exc.message)
                response = self._error_response(exc.message, invocations, agent, started)
            except Exception as exc:
                logfire.exception("agent turn failed", error_kind=classify_exception(exc))
                response = self._error_response(UNEXPECTED_ERROR_MESSAGE, invocations, agent, started)

            span.set_attributes(trace.to_logfire_attributes().root)
            span.set_attribute("confidence", response.metadata.confidence)

        return AgentTurn(
            response=response,
            context=turn_context.append_message(Message.assistant(response.content)),
        )

    def _response(
        self,
        result: FallbackResult,
        usage: UsageRecord,
        invocations: Sequence[ToolInvocation],
        agent: AgentConfig,
        started: datetime,
    ) -> AgentResponse:
        attempts = tuple(a.label for a in result.attempts)
        tools_used = tuple(inv.tool_id for inv in invocations)
        success = result.success
        final = result.final_attempt

        if success is None or final is None:
            return AgentResponse(
                content=result.diagnostic(),
                tools_used=tools_used,
                usage=usage,
                metadata=ResponseMetadata(
                    model_used=agent.model,
                    response_time_ms=_elapsed_ms(started),
                    confidence=CONFIDENCE_EXHAUSTED,
                    fallback_used=result.fallback_used,
                    attempts=attempts,
                ),
            )

        return AgentResponse(
            content=success.content,
            tools_used=tools_used,
            usage=usage,
            metadata=ResponseMetadata(
                model_used=success.model_echo or final.model,
                provider=final.provider_id,
                response_time_ms=_elapsed_ms(started),
                confidence=CONFIDENCE_FALLBACK if result.fallback_used else CONFIDENCE_PRIMARY,
                fallback_used=result.fallback_used,
                attempts=attempts,
            ),
        )

    def _error_response(
        self,
        content: str,
        invocations: Sequence[ToolInvocation],
        agent: AgentConfig,
        started: datetime,
    ) -> AgentResponse:
        return AgentResponse(
            content=content,
            tools_used=tuple(inv.tool_id for inv in invocations),
            usage=self.accountant.tally((), invocations, self.tools),
            metadata=ResponseMetadata(
                model_used=agent.model,
                response_time_ms=_elapsed_ms(started),
                confidence=CONFIDENCE_ERROR,
            ),
        )

    async def chat(
        self,
        messages: Sequence[Message],
        model: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> ChatResult:
        """Direct Chat: Route, Fall Back and Account, Without Tools.

        Never raises; an unconfigured deployment or an exhausted chain yields
        ``success=False`` with a diagnostic message as content.
        """
        with logfire.span("direct chat {model}", model=model):
            try:
                route = self.router.resolve_route(model)
                result = await self.fallback.run(
                    messages,
                    route,
                    CallOptions(max_tokens=max_tokens, temperature=temperature, timeout=self.call_timeout),
                )
            except ConfigurationError as exc:
                logfire.error("direct chat not configured", error=exc.message)
                return ChatResult(success=False, content=exc.message, model_used=model, confidence=CONFIDENCE_ERROR)
            except Exception as exc:
                logfire.exception("direct chat failed", error_kind=classify_exception(exc))
                return ChatResult(
                    success=False, content=UNEXPECTED_ERROR_MESSAGE, model_used=model, confidence=CONFIDENCE_ERROR
                )

            usage = self.accountant.tally(result.attempts, (), self.tools)
            attempts = tuple(a.label for a in result.attempts)
            success, final = result.success, result.final_attempt
            if success is None or final is None:
                return ChatResult(
                    success=False,
                    content=result.diagnostic(),
                    model_used=model,
                    fallback_used=result.fallback_used,
                    attempts=attempts,
                    usage=usage,
                    confidence=CONFIDENCE_EXHAUSTED,
                )
            return ChatResult(
                success=True,
                content=success.content,
                model_used=success.model_echo or final.model,
                provider=final.provider_id,
                fallback_used=result.fallback_used,
                attempts=attempts,
                usage=usage,
                confidence=CONFIDENCE_FALLBACK if result.fallback_used else CONFIDENCE_PRIMARY,
            )


__all__ = [
    "CONFIDENCE_ERROR",
    "CONFIDENCE_EXHAUSTED",
    "CONFIDENCE_FALLBACK",
    "CONFIDENCE_PRIMARY",
    "AgentOrchestrator",
    "ChatResult",
]
