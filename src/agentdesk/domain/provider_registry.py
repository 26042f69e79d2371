"""Provider Registry - Upstream Services and Credential Presence.

Holds the static provider table and a snapshot of credentials taken once at
startup. A provider without a usable credential is simply not routable; the
registry never raises because a credential is missing.

Credential Validity:
    - non-empty
    - not the ``NEED-API-KEY`` placeholder shipped in example env files
    - starts with the provider's key prefix, where one is known
      (OpenAI ``sk-``, Anthropic ``sk-ant-``, Replicate ``r8_``)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from .domain_type import Capability, ProviderId

if TYPE_CHECKING:
    from ..config import Settings

PLACEHOLDER_CREDENTIAL = "NEED-API-KEY"


class Provider(BaseModel):
    """Upstream Service Definition.

    Attributes:
        id: Stable provider identifier used by routes and the fallback chain
        name: Human-readable name
        credential_env: Environment variable holding the credential
        capabilities: What the provider can be asked to do
        default_model: Model sent when a request is substituted onto this provider
        accepts_foreign_models: Aggregators serve other vendors' model ids as-is
        credential_prefix: Expected key prefix, if the vendor uses one
    """

    id: ProviderId
    name: str
    credential_env: str
    capabilities: frozenset[Capability]
    default_model: str | None = None
    accepts_foreign_models: bool = False
    credential_prefix: str | None = None

    model_config = ConfigDict(frozen=True)

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities


class ProviderStatus(BaseModel):
    """Configuration status of one provider, for the setup surface."""

    id: ProviderId
    name: str
    configured: bool
    credential_env: str
    capabilities: tuple[Capability, ...]

    model_config = ConfigDict(frozen=True)


DEFAULT_PROVIDERS: tuple[Provider, ...] = (
    Provider(
        id=ProviderId.OPENAI,
        name="OpenAI",
        credential_env="OPENAI_API_KEY",
        capabilities=frozenset({Capability.CHAT, Capability.CODING, Capability.IMAGE_GENERATION}),
        default_model="gpt-4o-mini",
        credential_prefix="sk-",
    ),
    Provider(
        id=ProviderId.ANTHROPIC,
        name="Anthropic",
        credential_env="ANTHROPIC_API_KEY",
        capabilities=frozenset({Capability.CHAT, Capability.CODING}),
        default_model="claude-3-haiku-20240307",
        credential_prefix="sk-ant-",
    ),
    Provider(
        id=ProviderId.GOOGLE,
        name="Google AI",
        credential_env="GOOGLE_AI_API_KEY",
        capabilities=frozenset({Capability.CHAT, Capability.CODING}),
        default_model="gemini-1.5-flash",
    ),
    Provider(
        id=ProviderId.DEEPSEEK,
        name="DeepSeek",
        credential_env="DEEPSEEK_API_KEY",
        capabilities=frozenset({Capability.CHAT, Capability.CODING}),
        default_model="deepseek-chat",
    ),
    Provider(
        id=ProviderId.TOGETHER,
        name="Together AI",
        credential_env="TOGETHER_API_KEY",
        capabilities=frozenset({Capability.CHAT, Capability.CODING}),
        default_model="meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo",
    ),
    Provider(
        id=ProviderId.GROQ,
        name="Groq",
        credential_env="GROQ_API_KEY",
        capabilities=frozenset({Capability.CHAT}),
        default_model="llama-3.1-70b-versatile",
    ),
    Provider(
        id=ProviderId.AIMLAPI,
        name="AI/ML API",
        credential_env="AIML_API_KEY",
        capabilities=frozenset({Capability.CHAT, Capability.CODING, Capability.IMAGE_GENERATION}),
        default_model="gpt-4o",
        accepts_foreign_models=True,
    ),
    Provider(
        id=ProviderId.REPLICATE,
        name="Replicate",
        credential_env="REPLICATE_API_TOKEN",
        capabilities=frozenset({Capability.MUSIC_GENERATION, Capability.IMAGE_GENERATION}),
        credential_prefix="r8_",
    ),
    Provider(
        id=ProviderId.RUNWAY,
        name="Runway",
        credential_env="RUNWAY_API_KEY",
        capabilities=frozenset({Capability.VIDEO_GENERATION}),
    ),
    Provider(
        id=ProviderId.RESEND,
        name="Resend",
        credential_env="RESEND_API_KEY",
        capabilities=frozenset({Capability.EMAIL}),
    ),
    Provider(
        id=ProviderId.TAVILY,
        name="Tavily",
        credential_env="TAVILY_API_KEY",
        capabilities=frozenset({Capability.WEB_SEARCH}),
    ),
)


def is_usable_credential(value: str | None, prefix: str | None = None) -> bool:
    """Check a raw credential string the way the setup surface reports it."""
    if not value or not value.strip():
        return False
    if value.strip() == PLACEHOLDER_CREDENTIAL:
        return False
    return prefix is None or value.startswith(prefix)


class ProviderRegistry:
    """Static Provider Table Plus Credential Snapshot.

    Shared read-only between turns. Credentials are captured at construction;
    rotating a key means building a new registry.

    Example:
        >>> registry = ProviderRegistry(DEFAULT_PROVIDERS, {"TOGETHER_API_KEY": "tg-123"})
        >>> registry.has_credential(ProviderId.TOGETHER)
        True
        >>> registry.has_credential(ProviderId.OPENAI)
        False
    """

    def __init__(
        self,
        providers: Iterable[Provider] = DEFAULT_PROVIDERS,
        credentials: Mapping[str, str | None] | None = None,
    ) -> None:
        self._providers: dict[ProviderId, Provider] = {p.id: p for p in providers}
        self._credentials: dict[str, str | None] = dict(credentials or {})

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderRegistry:
        """Build the default table with credentials read from Settings."""
        values = settings.model_dump(by_alias=True)
        credentials = {p.credential_env: values.get(p.credential_env) for p in DEFAULT_PROVIDERS}
        return cls(DEFAULT_PROVIDERS, credentials)

    def get(self, provider_id: ProviderId | str) -> Provider:
        try:
            return self._providers[ProviderId(provider_id)]
        except (KeyError, ValueError) as exc:
            raise KeyError(f"Unknown provider '{provider_id}'") from exc

    def list(self) -> list[Provider]:
        return list(self._providers.values())

    def has_credential(self, provider_id: ProviderId | str) -> bool:
        try:
            provider = self.get(provider_id)
        except KeyError:
            return False
        return is_usable_credential(self._credentials.get(provider.credential_env), provider.credential_prefix)

    def credential(self, provider_id: ProviderId | str) -> str | None:
        """Return the usable credential for a provider, or None."""
        if not self.has_credential(provider_id):
            return None
        return self._credentials[self.get(provider_id).credential_env]

    def credentialed(self, capability: Capability | None = None) -> list[Provider]:
        """Providers with a usable credential, optionally filtered by capability."""
        return [
            p
            for p in self._providers.values()
            if self.has_credential(p.id) and (capability is None or p.supports(capability))
        ]

    def status(self) -> list[ProviderStatus]:
        return [
            ProviderStatus(
                id=p.id,
                name=p.name,
                configured=self.has_credential(p.id),
                credential_env=p.credential_env,
                capabilities=tuple(sorted(p.capabilities)),
            )
            for p in self._providers.values()
        ]

    def capability_status(self) -> dict[Capability, bool]:
        """Whether at least one credentialed provider offers each capability."""
        return {cap: bool(self.credentialed(cap)) for cap in Capability}


__all__ = [
    "DEFAULT_PROVIDERS",
    "PLACEHOLDER_CREDENTIAL",
    "Provider",
    "ProviderRegistry",
    "ProviderStatus",
    "is_usable_credential",
]
