"""Domain Type System - Core Enumerations.

Defines type-safe constants using Python's StrEnum for domain concepts.
Using StrEnum instead of plain Enum provides automatic string coercion
and better JSON serialization without custom encoders.
"""

from enum import StrEnum


class ProviderId(StrEnum):
    """Upstream Service Identifiers.

    Chat providers answer completion requests; the remaining providers back
    individual tools (search, media generation, email). Values match the
    identifiers used in routing tables and in the setup-status surface.

    Note:
        Adding a provider requires an entry in the default provider table
        (provider_registry.DEFAULT_PROVIDERS) and a credential in Settings.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    DEEPSEEK = "deepseek"
    TOGETHER = "together"
    GROQ = "groq"
    AIMLAPI = "aimlapi"
    REPLICATE = "replicate"
    RUNWAY = "runway"
    RESEND = "resend"
    TAVILY = "tavily"


class Capability(StrEnum):
    """What a provider can be asked to do."""

    CHAT = "chat"
    CODING = "coding"
    IMAGE_GENERATION = "image-generation"
    VIDEO_GENERATION = "video-generation"
    MUSIC_GENERATION = "music-generation"
    WEB_SEARCH = "web-search"
    EMAIL = "email"


class ModelFamily(StrEnum):
    """Billing/positioning class of a model family.

    Drives the substitution preference order when the provider a model
    identifier routes to has no credential.

    Families:
        OPEN_SOURCE: Llama, Mistral, Qwen, DeepSeek - prefer cheap/fast hosts
        PREMIUM: Claude, Gemini, Grok - prefer the multi-backend aggregator
        STANDARD: GPT family - prefer OpenAI itself
    """

    OPEN_SOURCE = "open-source"
    PREMIUM = "premium"
    STANDARD = "standard"


class MessageRole(StrEnum):
    """Conversation message roles sent upstream."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ToolId(StrEnum):
    """Identifiers of the built-in tools, in declaration order."""

    WEB_SEARCH = "web_search"
    GENERATE_IMAGE = "generate_image"
    GENERATE_VIDEO = "generate_video"
    GENERATE_MUSIC = "generate_music"
    SEND_EMAIL = "send_email"
    CODE_INTERPRETER = "code_interpreter"
    ANALYZE_DATA = "analyze_data"


class ParamType(StrEnum):
    """JSON-ish types accepted by tool parameter specs."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class ErrorKind(StrEnum):
    """Classification of orchestration failures.

    Mirrors the exception hierarchy in errors.py so failures that are carried
    as values (ToolFailure, ProviderFailure) and failures that are raised
    share one vocabulary for logging and grouping.
    """

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    INVALID_REQUEST = "invalid_request"
    NETWORK = "network"
    TOOL_EXECUTION = "tool_execution"
    UNKNOWN = "unknown"


class OutcomeStatus(StrEnum):
    """Discriminator for success/failure result unions."""

    SUCCESS = "success"
    FAILURE = "failure"


class StepStatus(StrEnum):
    """Outcome of one orchestration step."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class TurnStep(StrEnum):
    """Orchestration steps in execution order.

    Used by TurnTrace to show the turn's flow in Logfire.
    """

    CLASSIFY = "classify"
    DISPATCH = "dispatch"
    ASSEMBLE = "assemble"
    ROUTE = "route"
    EXECUTE = "execute"
    ACCOUNT = "account"


__all__ = [
    "Capability",
    "ErrorKind",
    "MessageRole",
    "ModelFamily",
    "OutcomeStatus",
    "ParamType",
    "ProviderId",
    "StepStatus",
    "ToolId",
    "TurnStep",
]
