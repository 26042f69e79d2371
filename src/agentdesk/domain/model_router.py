"""Model Router - Map a Model Identifier to a Credentialed Provider.

Routing is a two-step decision:

    1. Match: the lowercased model identifier is tested against an ordered
       table of substring patterns; the first match names the provider and
       the model family. No match routes to Together (open-source family).
    2. Substitute: if the matched provider has no usable credential, walk the
       family's preference order, then OpenAI, then any credentialed chat
       provider in registry order.

Only when no chat-capable provider has a credential does routing fail with
ConfigurationError. For fixed credentials the result is deterministic, so
resolving the same identifier twice yields the same provider.
"""

from __future__ import annotations

import logfire
from pydantic import BaseModel, ConfigDict

from .domain_type import Capability, ModelFamily, ProviderId
from .errors import ConfigurationError
from .provider_registry import Provider, ProviderRegistry


class ModelRoute(BaseModel):
    """One row of the routing table: substring pattern → provider."""

    model_pattern: str
    provider_id: ProviderId
    family: ModelFamily

    model_config = ConfigDict(frozen=True)

    def matches(self, model_id: str) -> bool:
        return self.model_pattern in model_id.lower()


class ResolvedRoute(BaseModel):
    """Routing Decision for One Request.

    Attributes:
        provider: Credentialed provider that will be called
        model: Model identifier actually sent upstream
        requested_model: Identifier the caller asked for
        family: Family of the matched rule
        substituted: True when the matched provider lacked a credential
    """

    provider: Provider
    model: str
    requested_model: str
    family: ModelFamily
    substituted: bool = False

    model_config = ConfigDict(frozen=True)


def _route(pattern: str, provider_id: ProviderId, family: ModelFamily) -> ModelRoute:
    return ModelRoute(model_pattern=pattern, provider_id=provider_id, family=family)


DEFAULT_ROUTES: tuple[ModelRoute, ...] = (
    _route("gpt", ProviderId.OPENAI, ModelFamily.STANDARD),
    _route("dall-e", ProviderId.OPENAI, ModelFamily.STANDARD),
    _route("o1-", ProviderId.OPENAI, ModelFamily.STANDARD),
    _route("claude", ProviderId.ANTHROPIC, ModelFamily.PREMIUM),
    _route("gemini", ProviderId.GOOGLE, ModelFamily.PREMIUM),
    _route("grok", ProviderId.AIMLAPI, ModelFamily.PREMIUM),
    _route("kimi", ProviderId.AIMLAPI, ModelFamily.PREMIUM),
    _route("deepseek", ProviderId.DEEPSEEK, ModelFamily.OPEN_SOURCE),
    _route("llama", ProviderId.TOGETHER, ModelFamily.OPEN_SOURCE),
    _route("mistral", ProviderId.TOGETHER, ModelFamily.OPEN_SOURCE),
    _route("mixtral", ProviderId.TOGETHER, ModelFamily.OPEN_SOURCE),
    _route("qwen", ProviderId.TOGETHER, ModelFamily.OPEN_SOURCE),
)

DEFAULT_ROUTE = _route("", ProviderId.TOGETHER, ModelFamily.OPEN_SOURCE)

SUBSTITUTION_PREFERENCE: dict[ModelFamily, tuple[ProviderId, ...]] = {
    ModelFamily.OPEN_SOURCE: (
        ProviderId.TOGETHER,
        ProviderId.GROQ,
        ProviderId.DEEPSEEK,
        ProviderId.AIMLAPI,
        ProviderId.OPENAI,
    ),
    ModelFamily.PREMIUM: (ProviderId.AIMLAPI, ProviderId.OPENAI, ProviderId.TOGETHER),
    ModelFamily.STANDARD: (ProviderId.OPENAI, ProviderId.AIMLAPI, ProviderId.TOGETHER),
}


class ModelRouter:
    """Resolve model identifiers against a ProviderRegistry.

    Example:
        >>> router = ModelRouter(registry)
        >>> route = router.resolve_route("claude-3-sonnet")
        >>> route.provider.id, route.substituted
        (<ProviderId.ANTHROPIC: 'anthropic'>, False)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        routes: tuple[ModelRoute, ...] = DEFAULT_ROUTES,
        default_route: ModelRoute = DEFAULT_ROUTE,
    ) -> None:
        self.registry = registry
        self.routes = routes
        self.default_route = default_route

    def match(self, model_id: str) -> ModelRoute:
        """First matching route, or the default route."""
        for route in self.routes:
            if route.matches(model_id):
                return route
        return self.default_route

    def resolve(self, model_id: str) -> Provider:
        return self.resolve_route(model_id).provider

    def resolve_route(self, model_id: str) -> ResolvedRoute:
        """Resolve Provider and Upstream Model for a Requested Identifier.

        Args:
            model_id: Caller-supplied model identifier (any case)

        Returns:
            ResolvedRoute naming a provider that has a usable credential

        Raises:
            ConfigurationError: No chat-capable provider has a credential
        """
        route = self.match(model_id)
        matched = self.registry.get(route.provider_id)

        if self.registry.has_credential(matched.id):
            return ResolvedRoute(
                provider=matched,
                model=model_id.strip() or (matched.default_model or ""),
                requested_model=model_id,
                family=route.family,
            )

        substitute = self._substitute(route.family)
        if substitute is None:
            raise ConfigurationError(
                "No AI provider is configured. Add at least one provider API key (see /ai/setup/status)."
            )

        model = model_id.strip() if substitute.accepts_foreign_models and model_id.strip() else substitute.default_model
        logfire.info(
            "model route substituted",
            requested_model=model_id,
            matched_provider=matched.id,
            provider=substitute.id,
            model=model,
        )
        return ResolvedRoute(
            provider=substitute,
            model=model or "",
            requested_model=model_id,
            family=route.family,
            substituted=True,
        )

    def _substitute(self, family: ModelFamily) -> Provider | None:
        known = [p.id for p in self.registry.list()]
        order = [*SUBSTITUTION_PREFERENCE.get(family, ()), ProviderId.OPENAI, *known]
        for provider_id in order:
            if provider_id not in known:
                continue
            provider = self.registry.get(provider_id)
            if provider.supports(Capability.CHAT) and self.registry.has_credential(provider_id):
                return provider
        return None


__all__ = [
    "DEFAULT_ROUTE",
    "DEFAULT_ROUTES",
    "SUBSTITUTION_PREFERENCE",
    "ModelRoute",
    "ModelRouter",
    "ResolvedRoute",
]
