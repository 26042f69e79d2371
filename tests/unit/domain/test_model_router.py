"""
Tests for model routing and credential-driven substitution.

These tests demonstrate:
- Testing the ordered pattern table (first match wins)
- Testing substitution instead of configuration errors
- Testing determinism (same input, same route)
"""

import pytest

from agentdesk.domain.domain_type import ModelFamily, ProviderId
from agentdesk.domain.errors import ConfigurationError
from agentdesk.domain.model_router import ModelRouter

ALL_CHAT = (
    ProviderId.OPENAI,
    ProviderId.ANTHROPIC,
    ProviderId.GOOGLE,
    ProviderId.DEEPSEEK,
    ProviderId.TOGETHER,
    ProviderId.GROQ,
    ProviderId.AIMLAPI,
)


@pytest.mark.parametrize(
    ("model_id", "provider_id"),
    [
        ("gpt-4", ProviderId.OPENAI),
        ("GPT-4o-mini", ProviderId.OPENAI),
        ("dall-e-3", ProviderId.OPENAI),
        ("o1-preview", ProviderId.OPENAI),
        ("claude-3-sonnet", ProviderId.ANTHROPIC),
        ("gemini-1.5-pro", ProviderId.GOOGLE),
        ("grok-3", ProviderId.AIMLAPI),
        ("kimi-k2", ProviderId.AIMLAPI),
        ("deepseek-chat", ProviderId.DEEPSEEK),
        ("meta-llama/Llama-3-70b", ProviderId.TOGETHER),
        ("mistral-7b", ProviderId.TOGETHER),
        ("Qwen2-72B", ProviderId.TOGETHER),
        ("totally-unknown-model", ProviderId.TOGETHER),
    ],
)
def test_resolve_with_all_credentials(make_registry, model_id, provider_id):
    """Demonstrates: Table-driven routing when every provider is configured."""
    router = ModelRouter(make_registry(*ALL_CHAT))

    route = router.resolve_route(model_id)

    assert route.provider.id == provider_id
    assert route.model == model_id
    assert route.substituted is False


def test_open_source_model_substitutes_in_family_order(make_registry):
    """
    Demonstrates: Together missing → next open-source host (Groq).

    The substitute cannot serve Together's model id, so its default model is sent.
    """
    router = ModelRouter(make_registry(ProviderId.GROQ, ProviderId.OPENAI))

    route = router.resolve_route("meta-llama/Llama-3-70b")

    assert route.provider.id == ProviderId.GROQ
    assert route.model == "llama-3.1-70b-versatile"
    assert route.family == ModelFamily.OPEN_SOURCE
    assert route.substituted is True


def test_premium_model_prefers_aggregator_and_keeps_model_id(make_registry):
    """Demonstrates: Aggregators accept foreign model ids unchanged."""
    router = ModelRouter(make_registry(ProviderId.AIMLAPI, ProviderId.OPENAI))

    route = router.resolve_route("claude-3-sonnet")

    assert route.provider.id == ProviderId.AIMLAPI
    assert route.model == "claude-3-sonnet"
    assert route.substituted is True


def test_scenario_gpt_with_only_together_configured(make_registry):
    """
    Demonstrates: gpt-4 requested, only Together configured.

    Routing substitutes rather than failing with ConfigurationError.
    """
    router = ModelRouter(make_registry(ProviderId.TOGETHER))

    route = router.resolve_route("gpt-4")

    assert route.provider.id == ProviderId.TOGETHER
    assert route.model == "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"


def test_premium_model_without_premium_provider_uses_fallback_provider(make_registry):
    """
    Demonstrates: claude requested, neither Anthropic nor the aggregator configured.
    """
    router = ModelRouter(make_registry(ProviderId.TOGETHER))

    provider = router.resolve("claude-3-sonnet")

    assert provider.id == ProviderId.TOGETHER


def test_falls_back_to_any_credentialed_chat_provider(make_registry):
    """Demonstrates: Outside the preference list, registry order decides."""
    router = ModelRouter(make_registry(ProviderId.GOOGLE, ProviderId.TAVILY))

    assert router.resolve("gpt-4").id == ProviderId.GOOGLE


def test_non_chat_credentials_do_not_count(make_registry):
    """Demonstrates: Tool-only providers never answer chat requests."""
    router = ModelRouter(make_registry(ProviderId.TAVILY, ProviderId.RESEND))

    with pytest.raises(ConfigurationError):
        router.resolve("gpt-4")


def test_no_credentials_raises_configuration_error(make_registry):
    """Demonstrates: The only terminal routing failure."""
    with pytest.raises(ConfigurationError):
        ModelRouter(make_registry()).resolve_route("claude-3-sonnet")


def test_resolution_is_deterministic(make_registry):
    """Demonstrates: Idempotence for fixed credentials."""
    router = ModelRouter(make_registry(ProviderId.GROQ, ProviderId.DEEPSEEK))

    first = router.resolve_route("mixtral-8x7b")
    second = router.resolve_route("mixtral-8x7b")

    assert first == second
