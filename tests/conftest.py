"""
Shared test fixtures and configuration.

Environment strategy:
- All tests load .env.test: no provider credentials, so nothing can reach a
  real upstream API. Tests that need credentials build their own
  ProviderRegistry with fake keys.
- Provider calls go through FakeProviderClient, a scripted stand-in for the
  ProviderClient protocol.
"""

import asyncio
from pathlib import Path
from typing import Any

import logfire
import pytest
from dotenv import load_dotenv

ENV_FILE = Path(__file__).parent.parent / ".env.test"

load_dotenv(ENV_FILE, override=True)

logfire.configure(send_to_logfire=False, console=False)

from agentdesk.domain.domain_type import ProviderId
from agentdesk.domain.domain_value import AgentConfig, ExecutionContext
from agentdesk.domain.provider_client import (
    ProviderFailure,
    ProviderRequest,
    ProviderSuccess,
    ProviderUsage,
)
from agentdesk.domain.provider_registry import DEFAULT_PROVIDERS, Provider, ProviderRegistry
from agentdesk.domain.tool_registry import ParamSpec, Tool, ToolBilling, ToolRegistry

FAKE_KEYS: dict[str, str] = {
    "OPENAI_API_KEY": "sk-test-openai",
    "ANTHROPIC_API_KEY": "sk-ant-test",
    "REPLICATE_API_TOKEN": "r8_test",
}

HANG = object()
"""Scripted outcome that never completes (exercises per-call timeouts)."""


class FakeProviderClient:
    """Scripted ProviderClient.

    ``script`` maps provider id → queue of outcomes. Each call pops the next
    one; an empty queue answers with a default success. Queue entries may be
    ProviderSuccess, ProviderFailure, HANG, or an exception instance, which is
    raised from ``complete``.
    """

    def __init__(self, script: dict[ProviderId, list[Any]] | None = None):
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.calls: list[tuple[ProviderId, str, ProviderRequest]] = []

    @property
    def attempted(self) -> list[tuple[ProviderId, str]]:
        return [(provider_id, model) for provider_id, model, _ in self.calls]

    async def complete(self, provider: Provider, request: ProviderRequest) -> ProviderSuccess | ProviderFailure:
        self.calls.append((provider.id, request.model, request))
        queue = self.script.get(provider.id)
        outcome = queue.pop(0) if queue else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is HANG:
            await asyncio.sleep(10)
        if outcome is None or outcome is HANG:
            return ProviderSuccess(
                content=f"answer from {provider.id}",
                usage=ProviderUsage.of(100, 50),
                model_echo=request.model,
            )
        return outcome


def registry_with(*provider_ids: ProviderId) -> ProviderRegistry:
    """ProviderRegistry where exactly the given providers have a credential."""
    credentials = {}
    for provider in DEFAULT_PROVIDERS:
        if provider.id in provider_ids:
            credentials[provider.credential_env] = FAKE_KEYS.get(provider.credential_env, f"test-{provider.id}")
    return ProviderRegistry(DEFAULT_PROVIDERS, credentials)


@pytest.fixture
def make_registry():
    """Factory fixture: make_registry(ProviderId.TOGETHER, ...) -> ProviderRegistry."""
    return registry_with


@pytest.fixture
def fake_client() -> FakeProviderClient:
    return FakeProviderClient()


@pytest.fixture
def make_client():
    """Factory fixture: make_client({ProviderId.OPENAI: [failure, ...]})."""
    return FakeProviderClient


@pytest.fixture
def hang() -> object:
    """Outcome marker for a provider call that never returns."""
    return HANG


@pytest.fixture
def context() -> ExecutionContext:
    return ExecutionContext(user_id="user-1", session_id="session-1", agent_id="agent-1")


@pytest.fixture
def agent() -> AgentConfig:
    return AgentConfig(
        id="agent-1",
        name="Research Assistant",
        model="gpt-4",
        system_prompt="You are a research assistant.",
        tools=("web_search", "analyze_data"),
    )


@pytest.fixture
def search_tool() -> Tool:
    """Deterministic stand-in for web_search (same id, no network)."""

    async def handler(params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        return {"query": params["query"], "results": [{"title": "AI news", "url": "https://example.com/ai"}]}

    return Tool(
        id="web_search",
        name="Web Search",
        description="Search the internet for current information",
        parameters=(ParamSpec(name="query", required=True),),
        handler=handler,
    )


@pytest.fixture
def failing_tool() -> Tool:
    """Stand-in for generate_image whose upstream is down."""

    async def handler(params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        raise RuntimeError("upstream image service unavailable")

    return Tool(
        id="generate_image",
        name="Generate Image",
        description="Create images using AI (DALL-E 3)",
        parameters=(ParamSpec(name="prompt", required=True),),
        handler=handler,
        billing=ToolBilling(unit_cost=0.04, provider=ProviderId.OPENAI),
    )


@pytest.fixture
def tool_registry(search_tool: Tool, failing_tool: Tool) -> ToolRegistry:
    return ToolRegistry([search_tool, failing_tool])
