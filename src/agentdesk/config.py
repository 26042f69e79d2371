"""Application Configuration

Type-safe configuration using Pydantic Settings for environment variable handling.

Patterns:
- One optional credential variable per upstream provider; a missing key
  removes that provider from routing instead of failing startup
- Sensible defaults for everything that is not a secret
- Read once per process (lru_cache); the domain layer receives values through
  constructors and never imports this module
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # =============================================================================
    # APPLICATION
    # =============================================================================

    app_name: str = Field(default="agentdesk", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    app_description: str = Field(
        default="Agent orchestration: provider routing, tool dispatch, fallback and usage accounting",
        alias="APP_DESCRIPTION",
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # =============================================================================
    # API CONFIGURATION
    # =============================================================================

    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")

    # CORS Settings
    cors_origins: str = Field(default="", alias="CORS_ORIGINS")
    cors_credentials: bool = Field(default=True, alias="CORS_CREDENTIALS")
    cors_methods: str = Field(default="*", alias="CORS_METHODS")
    cors_headers: str = Field(default="*", alias="CORS_HEADERS")

    # =============================================================================
    # OBSERVABILITY
    # =============================================================================

    logfire_token: str | None = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_console: bool = Field(default=True, alias="LOGFIRE_CONSOLE")

    # =============================================================================
    # ORCHESTRATION DEFAULTS
    # =============================================================================

    default_model: str = Field(default="meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo", alias="DEFAULT_MODEL")
    default_max_tokens: int = Field(default=1000, gt=0, alias="DEFAULT_MAX_TOKENS")
    default_temperature: float = Field(default=0.7, ge=0.0, le=2.0, alias="DEFAULT_TEMPERATURE")
    provider_timeout: float = Field(default=60.0, gt=0, alias="PROVIDER_TIMEOUT")
    tool_timeout: float = Field(default=60.0, gt=0, alias="TOOL_TIMEOUT")

    # =============================================================================
    # PROVIDER CREDENTIALS (all optional)
    # =============================================================================

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    google_ai_api_key: str | None = Field(default=None, alias="GOOGLE_AI_API_KEY")
    deepseek_api_key: str | None = Field(default=None, alias="DEEPSEEK_API_KEY")
    together_api_key: str | None = Field(default=None, alias="TOGETHER_API_KEY")
    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")
    aiml_api_key: str | None = Field(default=None, alias="AIML_API_KEY")
    replicate_api_token: str | None = Field(default=None, alias="REPLICATE_API_TOKEN")
    runway_api_key: str | None = Field(default=None, alias="RUNWAY_API_KEY")
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    tavily_api_key: str | None = Field(default=None, alias="TAVILY_API_KEY")

    model_config = {"env_file": ".env", "case_sensitive": False, "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.model_validate({})


settings = get_settings()
