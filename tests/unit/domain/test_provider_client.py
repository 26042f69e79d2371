"""
Tests for the Pydantic AI provider client and the agent pool.

These tests demonstrate:
- Testing message conversion into Pydantic AI history and prompt
- Testing the client against FunctionModel (no network)
- Testing that upstream errors come back as values, never raised
"""

import pytest
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from agentdesk.domain.domain_type import ErrorKind, ProviderId
from agentdesk.domain.domain_value import Message
from agentdesk.domain.errors import ConfigurationError
from agentdesk.domain.model_pool import ModelPool, build_model
from agentdesk.domain.provider_client import (
    ProviderFailure,
    ProviderRequest,
    ProviderSuccess,
    PydanticAIProviderClient,
    to_model_messages,
)


class StaticPool:
    """Duck-typed ModelPool handing out one prepared Agent."""

    def __init__(self, agent: Agent):
        self.agent = agent
        self.requested: list[tuple[ProviderId, str]] = []

    def get_agent(self, provider, model_name):
        self.requested.append((provider.id, model_name))
        return self.agent


def test_to_model_messages_splits_history_and_prompt():
    """
    Demonstrates: Trailing user messages form the prompt.

    The question and the tool-results message are both sent as this run's
    prompt; everything earlier is history.
    """
    messages = [
        Message.system("persona"),
        Message.user("earlier question"),
        Message.assistant("earlier answer"),
        Message.user("current question"),
        Message.user("Tool Results: ..."),
    ]

    history, prompt = to_model_messages(messages)

    assert prompt == ["current question", "Tool Results: ..."]
    assert len(history) == 2
    request, response = history
    assert isinstance(request, ModelRequest)
    assert [type(p) for p in request.parts] == [SystemPromptPart, UserPromptPart]
    assert isinstance(response, ModelResponse)
    assert response.parts[0].content == "earlier answer"


def test_to_model_messages_first_turn():
    history, prompt = to_model_messages([Message.system("persona"), Message.user("hi")])

    assert prompt == ["hi"]
    assert len(history) == 1
    assert isinstance(history[0].parts[0], SystemPromptPart)


@pytest.mark.asyncio
async def test_complete_returns_success_with_usage(make_registry):
    """Demonstrates: Content, units and model echo from a real Agent run."""
    seen: list = []

    def answer(messages, info: AgentInfo) -> ModelResponse:
        seen.extend(messages)
        return ModelResponse(parts=[TextPart(content="Paris")])

    registry = make_registry(ProviderId.OPENAI)
    pool = StaticPool(Agent(FunctionModel(answer), output_type=str))
    request = ProviderRequest(
        messages=(Message.system("persona"), Message.user("Capital of France?")),
        model="gpt-4o-mini",
    )

    outcome = await PydanticAIProviderClient(pool).complete(registry.get(ProviderId.OPENAI), request)

    assert isinstance(outcome, ProviderSuccess)
    assert outcome.content == "Paris"
    assert outcome.usage.total_units > 0
    assert outcome.model_echo
    assert pool.requested == [(ProviderId.OPENAI, "gpt-4o-mini")]
    sent_prompts = [p.content for m in seen if isinstance(m, ModelRequest) for p in m.parts if isinstance(p, UserPromptPart)]
    assert "Capital of France?" in sent_prompts


@pytest.mark.asyncio
async def test_complete_maps_http_errors_to_failures(make_registry):
    """Demonstrates: A 429 upstream becomes a RATE_LIMIT value."""

    def overloaded(messages, info: AgentInfo) -> ModelResponse:
        raise ModelHTTPError(status_code=429, model_name="gpt-4o-mini", body="slow down")

    registry = make_registry(ProviderId.OPENAI)
    pool = StaticPool(Agent(FunctionModel(overloaded), output_type=str))
    request = ProviderRequest(messages=(Message.user("hi"),), model="gpt-4o-mini")

    outcome = await PydanticAIProviderClient(pool).complete(registry.get(ProviderId.OPENAI), request)

    assert isinstance(outcome, ProviderFailure)
    assert outcome.kind == ErrorKind.RATE_LIMIT


@pytest.mark.asyncio
async def test_complete_without_credential_is_configuration_failure(make_registry):
    """Demonstrates: The real pool refuses uncredentialed providers, as a value."""
    registry = make_registry()
    client = PydanticAIProviderClient(ModelPool(registry=registry))

    outcome = await client.complete(
        registry.get(ProviderId.OPENAI),
        ProviderRequest(messages=(Message.user("hi"),), model="gpt-4o-mini"),
    )

    assert isinstance(outcome, ProviderFailure)
    assert outcome.kind == ErrorKind.CONFIGURATION
    assert "OPENAI_API_KEY" in outcome.content


def test_pool_caches_agents_per_provider_and_model(make_registry):
    """Demonstrates: One Agent per (provider, model) pair."""
    registry = make_registry(ProviderId.OPENAI)
    pool = ModelPool(registry=registry)
    openai = registry.get(ProviderId.OPENAI)

    first = pool.get_agent(openai, "gpt-4o-mini")
    second = pool.get_agent(openai, "gpt-4o-mini")
    pool.get_agent(openai, "gpt-4o")

    assert first is second
    assert pool.cached_count == 2


def test_build_model_rejects_tool_only_providers():
    with pytest.raises(ConfigurationError):
        build_model(ProviderId.RESEND, "anything", "key")
