"""
Tests for ordered provider fallback.

These tests demonstrate:
- Testing candidate ordering, skipping and de-duplication
- Testing that failed attempts are kept with their billed units
- Testing per-call timeouts and raised client errors as failed attempts
"""

import httpx
import pytest

from agentdesk.domain.domain_type import ErrorKind, ProviderId
from agentdesk.domain.domain_value import Message
from agentdesk.domain.errors import NetworkError, RateLimitError
from agentdesk.domain.fallback import CallOptions, ChainEntry, FallbackExecutor
from agentdesk.domain.model_router import ModelRouter
from agentdesk.domain.provider_client import ProviderFailure, ProviderUsage

MESSAGES = (Message.system("You are helpful."), Message.user("Hello"))


def _failure(kind: ErrorKind = ErrorKind.NETWORK, units: int = 0) -> ProviderFailure:
    return ProviderFailure(kind=kind, content=f"{kind} failure", usage=ProviderUsage.of(units, 0))


@pytest.mark.asyncio
async def test_primary_success_makes_one_attempt(make_registry, make_client):
    """Demonstrates: No fallback when the primary answers."""
    registry = make_registry(ProviderId.OPENAI, ProviderId.TOGETHER)
    client = make_client()
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)

    assert client.attempted == [(ProviderId.OPENAI, "gpt-4")]
    assert result.succeeded
    assert result.fallback_used is False


@pytest.mark.asyncio
async def test_failures_walk_the_chain_in_order(make_registry, make_client):
    """
    Demonstrates: Primary, then chain order, skipping uncredentialed providers.

    Together and Groq have no credential here, so the chain goes
    openai → anthropic.
    """
    registry = make_registry(ProviderId.OPENAI, ProviderId.ANTHROPIC)
    client = make_client({ProviderId.OPENAI: [_failure(ErrorKind.RATE_LIMIT), _failure(ErrorKind.AUTHENTICATION)]})
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)

    assert client.attempted == [
        (ProviderId.OPENAI, "gpt-4"),
        (ProviderId.OPENAI, "gpt-4o-mini"),
        (ProviderId.ANTHROPIC, "claude-3-haiku-20240307"),
    ]
    assert result.succeeded
    assert result.fallback_used is True
    assert result.final_attempt.provider_id == ProviderId.ANTHROPIC


@pytest.mark.asyncio
async def test_pair_already_attempted_is_not_revisited(make_registry, make_client):
    """Demonstrates: The primary equal to a chain entry is tried once."""
    registry = make_registry(ProviderId.TOGETHER)
    client = make_client({ProviderId.TOGETHER: [_failure(), _failure()]})
    primary = ModelRouter(registry).resolve_route("meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)

    assert len(client.calls) == 1
    assert result.succeeded is False


@pytest.mark.asyncio
async def test_exhausted_chain_keeps_failed_units(make_registry, make_client):
    """Demonstrates: Billed units of failed calls are preserved for usage."""
    registry = make_registry(ProviderId.OPENAI)
    client = make_client({ProviderId.OPENAI: [_failure(units=40), _failure(units=7)]})
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)

    assert result.succeeded is False
    assert result.success is None
    assert [a.outcome.usage.total_units for a in result.attempts] == [40, 7]


@pytest.mark.asyncio
async def test_timeout_is_a_network_failure(make_registry, make_client, hang):
    """
    Demonstrates: A hung provider is abandoned after the per-call timeout.
    """
    registry = make_registry(ProviderId.OPENAI, ProviderId.ANTHROPIC)
    client = make_client({ProviderId.OPENAI: [hang]})
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary, CallOptions(timeout=0.05))

    first = result.attempts[0]
    assert first.outcome.kind == ErrorKind.NETWORK
    assert "did not respond" in first.outcome.content
    assert result.succeeded


@pytest.mark.asyncio
async def test_raising_client_continues_the_chain(make_registry, make_client):
    """
    Demonstrates: An exception from the client is a failed attempt, not an abort.

    The error is classified like any other failure and the next candidate runs.
    """
    registry = make_registry(ProviderId.OPENAI, ProviderId.ANTHROPIC)
    client = make_client(
        {
            ProviderId.OPENAI: [
                NetworkError("connection reset by peer"),
                httpx.ConnectError("refused"),
            ]
        }
    )
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)

    assert [a.label for a in result.attempts] == [
        "openai/gpt-4",
        "openai/gpt-4o-mini",
        "anthropic/claude-3-haiku-20240307",
    ]
    assert result.attempts[0].outcome.kind == ErrorKind.NETWORK
    assert result.attempts[0].outcome.content == "connection reset by peer"
    assert result.attempts[1].outcome.kind == ErrorKind.NETWORK
    assert result.succeeded


@pytest.mark.asyncio
async def test_raising_client_exhausts_into_diagnostic(make_registry, make_client):
    registry = make_registry(ProviderId.OPENAI)
    client = make_client({ProviderId.OPENAI: [RateLimitError("slow down"), RuntimeError("boom")]})
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)

    assert result.succeeded is False
    assert [a.outcome.kind for a in result.attempts] == [ErrorKind.RATE_LIMIT, ErrorKind.UNKNOWN]
    assert "rate limiting" in result.diagnostic()


@pytest.mark.asyncio
async def test_custom_chain(make_registry, make_client):
    """Demonstrates: The chain is data; deployments can pass their own."""
    registry = make_registry(ProviderId.GROQ, ProviderId.DEEPSEEK)
    client = make_client({ProviderId.GROQ: [_failure()]})
    primary = ModelRouter(registry).resolve_route("mixtral-8x7b")
    chain = [ChainEntry(provider_id=ProviderId.DEEPSEEK, model="deepseek-chat")]

    result = await FallbackExecutor(registry, client, chain).run(MESSAGES, primary)

    assert client.attempted == [(ProviderId.GROQ, "llama-3.1-70b-versatile"), (ProviderId.DEEPSEEK, "deepseek-chat")]
    assert result.succeeded


@pytest.mark.asyncio
async def test_diagnostic_names_providers_and_health_check(make_registry, make_client):
    """Demonstrates: Exhaustion produces guidance, not a bare error."""
    registry = make_registry(ProviderId.OPENAI, ProviderId.ANTHROPIC)
    client = make_client(
        {
            ProviderId.OPENAI: [_failure(ErrorKind.AUTHENTICATION), _failure()],
            ProviderId.ANTHROPIC: [_failure()],
        }
    )
    primary = ModelRouter(registry).resolve_route("gpt-4")

    result = await FallbackExecutor(registry, client).run(MESSAGES, primary)
    message = result.diagnostic()

    assert "Providers attempted: openai, anthropic." in message
    assert "rejected its API key" in message
    assert "/health" in message
