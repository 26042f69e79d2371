"""Model Pool - Cached Pydantic AI Agents per Provider and Model.

Pydantic AI Agents are stateless executors: the conversation is passed per
run via ``message_history``, never stored on the Agent. One Agent per
(provider, model) pair can therefore serve every turn, and building it once
avoids re-creating the vendor SDK client and its HTTP connection pool.

Vendor Mapping:
    openai     OpenAIChatModel + OpenAIProvider
    aimlapi    OpenAIChatModel + OpenAIProvider(base_url=AI/ML API)
    together   OpenAIChatModel + TogetherProvider
    deepseek   OpenAIChatModel + DeepSeekProvider
    anthropic  AnthropicModel + AnthropicProvider
    google     GoogleModel + GoogleProvider
    groq       GroqModel + GroqProvider
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, PrivateAttr

from .domain_type import ProviderId
from .errors import ConfigurationError
from .provider_registry import Provider, ProviderRegistry

if TYPE_CHECKING:
    from pydantic_ai import Agent
    from pydantic_ai.models import Model

AIMLAPI_BASE_URL = "https://api.aimlapi.com/v1"


def build_model(provider_id: ProviderId, model_name: str, api_key: str) -> Model:
    """Construct the Pydantic AI Model for a provider/model pair.

    Raises:
        ConfigurationError: Provider does not serve chat completions
    """
    if provider_id in (ProviderId.OPENAI, ProviderId.AIMLAPI, ProviderId.TOGETHER, ProviderId.DEEPSEEK):
        from pydantic_ai.models.openai import OpenAIChatModel

        if provider_id == ProviderId.TOGETHER:
            from pydantic_ai.providers.together import TogetherProvider

            return OpenAIChatModel(model_name, provider=TogetherProvider(api_key=api_key))
        if provider_id == ProviderId.DEEPSEEK:
            from pydantic_ai.providers.deepseek import DeepSeekProvider

            return OpenAIChatModel(model_name, provider=DeepSeekProvider(api_key=api_key))

        from pydantic_ai.providers.openai import OpenAIProvider

        base_url = AIMLAPI_BASE_URL if provider_id == ProviderId.AIMLAPI else None
        return OpenAIChatModel(model_name, provider=OpenAIProvider(base_url=base_url, api_key=api_key))

    if provider_id == ProviderId.ANTHROPIC:
        from pydantic_ai.models.anthropic import AnthropicModel
        from pydantic_ai.providers.anthropic import AnthropicProvider

        return AnthropicModel(model_name, provider=AnthropicProvider(api_key=api_key))

    if provider_id == ProviderId.GOOGLE:
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        return GoogleModel(model_name, provider=GoogleProvider(api_key=api_key))

    if provider_id == ProviderId.GROQ:
        from pydantic_ai.models.groq import GroqModel
        from pydantic_ai.providers.groq import GroqProvider

        return GroqModel(model_name, provider=GroqProvider(api_key=api_key))

    raise ConfigurationError(f"Provider '{provider_id}' does not serve chat completions")


class ModelPool(BaseModel):
    """LLM Client Connection Pool.

    Caches Pydantic AI Agent instances by (provider, model). Credentials come
    from the registry snapshot, so the pool never reads the environment.

    Attributes:
        registry: Provider table plus credential snapshot
        _cache: Private mutable cache inside the frozen model

    Example:
        >>> pool = ModelPool(registry=registry)
        >>> a1 = pool.get_agent(registry.get("openai"), "gpt-4o-mini")
        >>> a2 = pool.get_agent(registry.get("openai"), "gpt-4o-mini")
        >>> assert a1 is a2
    """

    registry: ProviderRegistry
    _cache: dict[tuple[ProviderId, str], Agent[None, str]] = PrivateAttr(default_factory=dict)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def get_agent(self, provider: Provider, model_name: str) -> Agent[None, str]:
        """Get or Create the Cached Agent for a Provider/Model Pair.

        Raises:
            ConfigurationError: Provider has no usable credential or no chat API
        """
        from pydantic_ai import Agent

        cache_key = (provider.id, model_name)
        if cache_key not in self._cache:
            api_key = self.registry.credential(provider.id)
            if api_key is None:
                raise ConfigurationError(f"{provider.credential_env} is not configured")
            self._cache[cache_key] = Agent(build_model(provider.id, model_name, api_key), output_type=str)
        return self._cache[cache_key]

    @property
    def cached_count(self) -> int:
        return len(self._cache)


__all__ = ["AIMLAPI_BASE_URL", "ModelPool", "build_model"]
