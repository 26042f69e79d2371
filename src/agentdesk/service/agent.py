"""Thin agent service - presets, setup status and orchestrator construction."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from ..config import Settings
from ..domain.domain_type import Capability, ToolId
from ..domain.domain_value import AgentConfig, AgentTurn, ExecutionContext, Message
from ..domain.model_pool import ModelPool
from ..domain.orchestrator import AgentOrchestrator, ChatResult
from ..domain.provider_client import ProviderClient, PydanticAIProviderClient
from ..domain.provider_registry import ProviderRegistry, ProviderStatus
from ..domain.tool_registry import Tool, ToolRegistry
from ..domain.tools import build_default_tool_registry

DEFAULT_AGENT_PROMPT = (
    "You are a helpful AI assistant with access to various tools. "
    "Use them when appropriate to provide better responses."
)

DEFAULT_AGENT_TOOLS: tuple[str, ...] = (
    ToolId.WEB_SEARCH,
    ToolId.GENERATE_IMAGE,
    ToolId.SEND_EMAIL,
    ToolId.CODE_INTERPRETER,
    ToolId.ANALYZE_DATA,
)

DEFAULT_SESSION_ID = "default-session"


class SetupStatus(BaseModel):
    """Which providers are configured and what that enables."""

    setup_progress: int
    configured_providers: int
    total_providers: int
    providers: tuple[ProviderStatus, ...]
    capabilities: dict[Capability, bool]
    next_steps: tuple[str, ...]

    model_config = ConfigDict(frozen=True)


class AgentService:
    """
    Pure infrastructure orchestrator - zero business logic.

    Service responsibilities:
    1. Resolve agent presets (agents are not persisted; one default preset)
    2. Build the caller's ExecutionContext from request data
    3. Delegate the turn to AgentOrchestrator
    4. Report provider setup status
    """

    def __init__(
        self,
        orchestrator: AgentOrchestrator,
        providers: ProviderRegistry,
        tools: ToolRegistry,
        default_model: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ):
        self.orchestrator = orchestrator
        self.providers = providers
        self.tools = tools
        self.default_model = default_model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def agent_for(
        self,
        agent_id: str,
        model: str | None = None,
        tools: Sequence[str] | None = None,
    ) -> AgentConfig:
        """Default agent preset, with optional per-request model/tool overrides."""
        return AgentConfig(
            id=agent_id,
            name="AI Assistant",
            model=model or "gpt-4",
            system_prompt=DEFAULT_AGENT_PROMPT,
            tools=tuple(DEFAULT_AGENT_TOOLS if tools is None else tools),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    async def execute(
        self,
        agent_id: str,
        message: str,
        user_id: str,
        session_id: str | None = None,
        history: Sequence[Message] = (),
        model: str | None = None,
        tools: Sequence[str] | None = None,
    ) -> AgentTurn:
        """
        Run one agent turn.

        Returns:
            AgentTurn whose context carries the history extended by this turn;
            the caller owns persisting it
        """
        context = ExecutionContext(
            user_id=user_id,
            session_id=session_id or DEFAULT_SESSION_ID,
            agent_id=agent_id,
            conversation_history=tuple(history),
        )
        return await self.orchestrator.run(self.agent_for(agent_id, model, tools), message, context)

    async def chat(
        self,
        messages: Sequence[Message],
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> ChatResult:
        return await self.orchestrator.chat(
            messages,
            model or self.default_model,
            max_tokens=max_tokens or self.max_tokens,
            temperature=self.temperature if temperature is None else temperature,
        )

    def available_tools(self) -> list[Tool]:
        return self.tools.list()

    def setup_status(self) -> SetupStatus:
        statuses = self.providers.status()
        capabilities = self.providers.capability_status()
        configured = sum(1 for s in statuses if s.configured)

        next_steps: list[str] = []
        if not capabilities[Capability.CHAT]:
            next_steps.append("Add a chat provider key (TOGETHER_API_KEY, OPENAI_API_KEY or ANTHROPIC_API_KEY)")
        for capability, available in capabilities.items():
            if available or capability == Capability.CHAT:
                continue
            envs = [s.credential_env for s in statuses if capability in s.capabilities]
            if envs:
                next_steps.append(f"Configure {' or '.join(envs)} to enable {capability}")

        return SetupStatus(
            setup_progress=round(configured / len(statuses) * 100) if statuses else 0,
            configured_providers=configured,
            total_providers=len(statuses),
            providers=tuple(statuses),
            capabilities=capabilities,
            next_steps=tuple(next_steps),
        )


def create_agent_service(settings: Settings, client: ProviderClient | None = None) -> AgentService:
    """
    Factory function for creating AgentService.

    Service owns its own construction logic - deps.py just calls this.

    Args:
        settings: Application settings (credential snapshot is taken here)
        client: Provider client; defaults to the Pydantic AI client over a ModelPool

    Returns:
        Configured AgentService ready for use
    """
    providers = ProviderRegistry.from_settings(settings)
    tools = build_default_tool_registry(providers, timeout=settings.tool_timeout)
    if client is None:
        client = PydanticAIProviderClient(ModelPool(registry=providers))
    orchestrator = AgentOrchestrator.build(providers, tools, client, call_timeout=settings.provider_timeout)
    return AgentService(
        orchestrator=orchestrator,
        providers=providers,
        tools=tools,
        default_model=settings.default_model,
        max_tokens=settings.default_max_tokens,
        temperature=settings.default_temperature,
    )


__all__ = [
    "DEFAULT_AGENT_PROMPT",
    "DEFAULT_AGENT_TOOLS",
    "AgentService",
    "SetupStatus",
    "create_agent_service",
]
