"""Domain Layer - The Agent Orchestration Core.

Pure domain code: no FastAPI, no settings lookups. Everything a turn needs is
injected through constructors, and every value type is an immutable Pydantic
model.

Key Components:
    - ProviderRegistry / ModelRouter: which credentialed provider answers
    - ToolRegistry / IntentClassifier / ToolDispatcher: which tools run first
    - ContextAssembler: the exact message sequence sent upstream
    - FallbackExecutor: ordered retry across provider/model pairs
    - UsageAccountant: tokens, calls and cost across billing schemes
    - AgentOrchestrator: one user turn, end to end

Design Principles:
    - Failures as values: ToolResult and ProviderOutcome are tagged unions
    - Immutable by default: "appending" returns a new instance
    - Explicit dependencies: no module-level singletons in the core
"""

from .context_assembler import ContextAssembler
from .dispatcher import ToolDispatcher
from .domain_type import (
    Capability,
    ErrorKind,
    MessageRole,
    ModelFamily,
    OutcomeStatus,
    ParamType,
    ProviderId,
    StepStatus,
    ToolId,
    TurnStep,
)
from .domain_value import (
    AgentConfig,
    AgentResponse,
    AgentTurn,
    ExecutionContext,
    Message,
    ResponseMetadata,
    UsageRecord,
)
from .errors import (
    AgentDeskError,
    AuthenticationError,
    ConfigurationError,
    InvalidRequestError,
    NetworkError,
    RateLimitError,
    ToolExecutionError,
    UnknownError,
    classify_exception,
)
from .fallback import FALLBACK_CHAIN, Attempt, CallOptions, ChainEntry, FallbackExecutor, FallbackResult
from .intent import KEYWORD_RULES, IntentClassifier, IntentRule, ToolSelection
from .model_pool import ModelPool
from .model_router import DEFAULT_ROUTES, ModelRoute, ModelRouter, ResolvedRoute
from .orchestrator import AgentOrchestrator, ChatResult
from .provider_client import (
    ProviderClient,
    ProviderFailure,
    ProviderOutcome,
    ProviderRequest,
    ProviderSuccess,
    ProviderUsage,
    PydanticAIProviderClient,
)
from .provider_registry import DEFAULT_PROVIDERS, Provider, ProviderRegistry, ProviderStatus
from .tool_registry import ParamSpec, Tool, ToolBilling, ToolFailure, ToolInvocation, ToolRegistry, ToolResult, ToolSuccess
from .tools import BuiltinToolkit, build_default_tool_registry
from .turn_trace import TurnTrace
from .usage import PRICING, UsageAccountant

__all__ = [
    "DEFAULT_PROVIDERS",
    "DEFAULT_ROUTES",
    "FALLBACK_CHAIN",
    "KEYWORD_RULES",
    "PRICING",
    "AgentConfig",
    "AgentDeskError",
    "AgentOrchestrator",
    "AgentResponse",
    "AgentTurn",
    "Attempt",
    "AuthenticationError",
    "BuiltinToolkit",
    "CallOptions",
    "Capability",
    "ChainEntry",
    "ChatResult",
    "ConfigurationError",
    "ContextAssembler",
    "ErrorKind",
    "ExecutionContext",
    "FallbackExecutor",
    "FallbackResult",
    "IntentClassifier",
    "IntentRule",
    "InvalidRequestError",
    "Message",
    "MessageRole",
    "ModelFamily",
    "ModelPool",
    "ModelRoute",
    "ModelRouter",
    "NetworkError",
    "OutcomeStatus",
    "ParamSpec",
    "ParamType",
    "Provider",
    "ProviderClient",
    "ProviderFailure",
    "ProviderId",
    "ProviderOutcome",
    "ProviderRegistry",
    "ProviderRequest",
    "ProviderStatus",
    "ProviderSuccess",
    "ProviderUsage",
    "PydanticAIProviderClient",
    "RateLimitError",
    "ResolvedRoute",
    "ResponseMetadata",
    "StepStatus",
    "Tool",
    "ToolBilling",
    "ToolDispatcher",
    "ToolExecutionError",
    "ToolFailure",
    "ToolId",
    "ToolInvocation",
    "ToolRegistry",
    "ToolResult",
    "ToolSelection",
    "ToolSuccess",
    "TurnStep",
    "TurnTrace",
    "UnknownError",
    "UsageAccountant",
    "UsageRecord",
    "build_default_tool_registry",
    "classify_exception",
]
