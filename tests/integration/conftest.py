"""
Integration fixtures: the real FastAPI app with a scripted provider client.

The AgentService is built by the production factory from Settings, so routing,
tools and accounting are real; only the upstream chat call is faked.
"""

import pytest
from fastapi.testclient import TestClient

from agentdesk.api.deps import get_agent_service
from agentdesk.config import Settings
from agentdesk.main import app
from agentdesk.service import create_agent_service


@pytest.fixture
def provider_client(make_client):
    return make_client()


@pytest.fixture
def credentials() -> dict[str, str]:
    """Credentials the service is built with; override per module or test."""
    return {"TOGETHER_API_KEY": "tg-test"}


@pytest.fixture
def api_client(credentials, provider_client):
    """TestClient with get_agent_service overridden."""
    service = create_agent_service(Settings.model_validate(credentials), client=provider_client)
    app.dependency_overrides[get_agent_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
