"""
Integration tests for direct chat and setup status.

Demonstrates:
- Testing the no-tools chat path with routing and fallback
- Testing contract validation on the conversation shape
- Testing the setup status surface against a known credential set
"""

import pytest
from fastapi.testclient import TestClient

from agentdesk.domain.domain_type import ErrorKind, ProviderId
from agentdesk.domain.provider_client import ProviderFailure


def test_chat_uses_default_model(api_client: TestClient, provider_client):
    """
    Demonstrates: Default model comes from settings and routes to Together.
    """
    response = api_client.post("/ai/chat", json={"messages": [{"role": "user", "content": "Hi"}]})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["provider"] == "together"
    assert data["model_used"] == "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"
    assert data["fallback_used"] is False
    assert provider_client.calls[0][2].max_tokens == 1000


def test_chat_passes_generation_options(api_client: TestClient, provider_client):
    api_client.post(
        "/ai/chat",
        json={"messages": [{"role": "user", "content": "Hi"}], "max_tokens": 64, "temperature": 0.1},
    )

    request = provider_client.calls[0][2]
    assert (request.max_tokens, request.temperature) == (64, 0.1)


@pytest.mark.parametrize("credentials", [{"TOGETHER_API_KEY": "tg-test", "OPENAI_API_KEY": "sk-test"}])
def test_chat_falls_back(api_client: TestClient, provider_client):
    """Demonstrates: Primary failure answered by the next chain entry."""
    provider_client.script[ProviderId.OPENAI] = [ProviderFailure(kind=ErrorKind.RATE_LIMIT, content="429")]

    response = api_client.post(
        "/ai/chat",
        json={"messages": [{"role": "user", "content": "Hi"}], "model": "gpt-4o-mini"},
    )

    data = response.json()
    assert data["success"] is True
    assert data["fallback_used"] is True
    assert data["provider"] == "together"
    assert data["attempts"][0] == "openai/gpt-4o-mini"
    assert data["confidence"] == 0.75


def test_chat_requires_user_last(api_client: TestClient):
    response = api_client.post(
        "/ai/chat",
        json={"messages": [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello"}]},
    )

    assert response.status_code == 400


def test_chat_requires_messages(api_client: TestClient):
    """Demonstrates: An empty conversation is a schema error."""
    assert api_client.post("/ai/chat", json={"messages": []}).status_code == 422


def test_setup_status(api_client: TestClient):
    """
    Demonstrates: Setup surface for a Together-only deployment.
    """
    response = api_client.get("/ai/setup/status")

    assert response.status_code == 200
    data = response.json()
    assert data["configured_providers"] == 1
    assert data["total_providers"] == 11
    assert data["capabilities"]["chat"] is True
    assert data["capabilities"]["email"] is False
    assert any("RESEND_API_KEY" in step for step in data["next_steps"])
    configured = [p["id"] for p in data["providers"] if p["configured"]]
    assert configured == ["together"]


@pytest.mark.parametrize("credentials", [{}])
def test_setup_status_unconfigured(api_client: TestClient):
    data = api_client.get("/ai/setup/status").json()

    assert data["setup_progress"] == 0
    assert data["capabilities"]["chat"] is False
    assert data["next_steps"][0].startswith("Add a chat provider key")
