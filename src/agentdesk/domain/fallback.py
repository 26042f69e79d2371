"""Fallback Executor - Ordered Retry Across Provider/Model Pairs.

The primary route is tried first, then each pair of the fallback chain in
order. A candidate is skipped when its provider has no credential or when the
exact (provider, model) pair was already attempted in this run. Attempts are
strictly sequential and each one is bounded by a per-call timeout; a timeout
counts as a network failure, and a client that raises is recorded as a
failure of the classified kind.

Every failure kind is retryable here. The only terminal condition of the
routing layer, "no credentialed provider at all", is raised earlier by the
ModelRouter as ConfigurationError.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import logfire
from pydantic import BaseModel, ConfigDict, Field

from .domain_type import ErrorKind, ProviderId
from .domain_value import Message
from .model_router import ResolvedRoute
from .provider_client import (
    ProviderClient,
    ProviderFailure,
    ProviderRequest,
    ProviderSuccess,
    failure_from_exception,
)
from .provider_registry import ProviderRegistry

HEALTH_CHECK_PATH = "/health"


class ChainEntry(BaseModel):
    provider_id: ProviderId
    model: str

    model_config = ConfigDict(frozen=True)


FALLBACK_CHAIN: tuple[ChainEntry, ...] = (
    ChainEntry(provider_id=ProviderId.TOGETHER, model="meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"),
    ChainEntry(provider_id=ProviderId.OPENAI, model="gpt-4o-mini"),
    ChainEntry(provider_id=ProviderId.ANTHROPIC, model="claude-3-haiku-20240307"),
    ChainEntry(provider_id=ProviderId.GROQ, model="llama-3.1-70b-versatile"),
    ChainEntry(provider_id=ProviderId.GOOGLE, model="gemini-1.5-flash"),
    ChainEntry(provider_id=ProviderId.AIMLAPI, model="gpt-4o"),
)


class CallOptions(BaseModel):
    max_tokens: int = Field(default=1000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout: float = Field(default=60.0, gt=0)

    model_config = ConfigDict(frozen=True)


class Attempt(BaseModel):
    """One provider call made during a fallback run."""

    provider_id: ProviderId
    model: str
    outcome: ProviderSuccess | ProviderFailure = Field(discriminator="status")
    duration_ms: float = Field(default=0.0, ge=0.0)

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        return f"{self.provider_id}/{self.model}"


class FallbackResult(BaseModel):
    """Outcome of a Fallback Run.

    Attributes:
        attempts: Every call made, in order (failed ones keep their billed units)
        primary: Route the run started from
    """

    attempts: tuple[Attempt, ...] = ()
    primary: ResolvedRoute

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> ProviderSuccess | None:
        last = self.attempts[-1] if self.attempts else None
        if last is not None and isinstance(last.outcome, ProviderSuccess):
            return last.outcome
        return None

    @property
    def succeeded(self) -> bool:
        return self.success is not None

    @property
    def final_attempt(self) -> Attempt | None:
        return self.attempts[-1] if self.attempts else None

    @property
    def fallback_used(self) -> bool:
        """True when the answer did not come from the first attempt."""
        return len(self.attempts) > 1

    def diagnostic(self) -> str:
        """User-Facing Explanation When Every Attempt Failed.

        Names the providers that were tried, points at the health check and
        offers an answer from built-in knowledge instead of a bare error.
        """
        tried = ", ".join(dict.fromkeys(str(a.provider_id) for a in self.attempts)) or "none available"
        kinds = {a.outcome.kind for a in self.attempts if isinstance(a.outcome, ProviderFailure)}
        hint = ""
        if ErrorKind.AUTHENTICATION in kinds:
            hint = " At least one provider rejected its API key."
        elif ErrorKind.RATE_LIMIT in kinds:
            hint = " At least one provider is rate limiting requests."
        return (
            "I'm currently experiencing technical difficulties connecting to the AI services. "
            f"Providers attempted: {tried}.{hint}\n\n"
            f"Please check the system status at {HEALTH_CHECK_PATH} or try again in a moment. "
            "In the meantime, I can still try to help based on my built-in knowledge if you "
            "rephrase your question."
        )


class FallbackExecutor:
    def __init__(
        self,
        registry: ProviderRegistry,
        client: ProviderClient,
        chain: Sequence[ChainEntry] = FALLBACK_CHAIN,
    ) -> None:
        self.registry = registry
        self.client = client
        self.chain = tuple(chain)

    def candidates(self, primary: ResolvedRoute) -> list[ChainEntry]:
        """Primary first, then the chain; credential-less and repeated pairs removed."""
        ordered = [ChainEntry(provider_id=primary.provider.id, model=primary.model), *self.chain]
        seen: set[tuple[ProviderId, str]] = set()
        result: list[ChainEntry] = []
        for entry in ordered:
            key = (entry.provider_id, entry.model)
            if key in seen or not self.registry.has_credential(entry.provider_id):
                continue
            seen.add(key)
            result.append(entry)
        return result

    async def run(
        self,
        messages: Sequence[Message],
        primary: ResolvedRoute,
        options: CallOptions | None = None,
    ) -> FallbackResult:
        """Try Candidates in Order Until One Succeeds.

        Args:
            messages: Assembled conversation payload
            primary: Route chosen by the ModelRouter
            options: Token limit, temperature and per-call timeout

        Returns:
            FallbackResult; ``succeeded`` is False when the chain is exhausted
        """
        options = options or CallOptions()
        attempts: list[Attempt] = []
        loop = asyncio.get_running_loop()

        for entry in self.candidates(primary):
            provider = self.registry.get(entry.provider_id)
            request = ProviderRequest(
                messages=tuple(messages),
                model=entry.model,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                timeout=options.timeout,
            )
            started = loop.time()
            try:
                async with asyncio.timeout(options.timeout):
                    outcome = await self.client.complete(provider, request)
            except TimeoutError:
                outcome = ProviderFailure(
                    kind=ErrorKind.NETWORK,
                    content=f"{provider.name} did not respond within {options.timeout:g}s",
                )
            except Exception as exc:
                outcome = failure_from_exception(exc)
            attempt = Attempt(
                provider_id=entry.provider_id,
                model=entry.model,
                outcome=outcome,
                duration_ms=(loop.time() - started) * 1000,
            )
            attempts.append(attempt)

            if isinstance(outcome, ProviderSuccess):
                if len(attempts) > 1:
                    logfire.info("fallback succeeded", provider=entry.provider_id, model=entry.model, attempts=len(attempts))
                break
            logfire.warn(
                "provider attempt failed",
                provider=entry.provider_id,
                model=entry.model,
                error_kind=outcome.kind,
                error=outcome.content,
            )
        else:
            logfire.error("fallback chain exhausted", attempts=[a.label for a in attempts])

        return FallbackResult(attempts=tuple(attempts), primary=primary)


__all__ = [
    "FALLBACK_CHAIN",
    "HEALTH_CHECK_PATH",
    "Attempt",
    "CallOptions",
    "ChainEntry",
    "FallbackExecutor",
    "FallbackResult",
]
