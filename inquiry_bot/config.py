"""Configuration management using pydantic-settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Instances are immutable and handed to each component at construction.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Slack Configuration
    slack_bot_token: str | None = Field(None, description="Slack bot user OAuth token")
    slack_signing_secret: str | None = Field(
        None, description="Slack signing secret used to verify webhook requests"
    )
    slack_channel_id: str | None = Field(None, description="Channel searched for past discussions")
    trigger_emoji: str = Field(default="eyes", description="Reaction name that triggers an inquiry")

    # Confluence Configuration
    confluence_base_url: str | None = Field(None, description="Confluence base URL")
    confluence_username: str | None = Field(None, description="Confluence account email")
    confluence_api_token: str | None = Field(None, description="Confluence API token")
    confluence_space_key: str = Field(default="DOCS", description="Confluence space to search")

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/inquiries.db",
        description="SQLAlchemy async database URL",
    )

    # Search Configuration
    similarity_threshold: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Minimum keyword-overlap score for a result to be kept",
    )
    max_search_results: int = Field(default=10, gt=0, description="Maximum ranked results")
    search_days_back: int = Field(default=90, gt=0, description="Slack search window in days")

    # LLM Provider Configuration
    llm_provider: LLMProvider = Field(
        default=LLMProvider.OPENAI,
        description="LLM provider used for answer generation",
    )
    llm_model: str = Field(default="gpt-4o-mini", description="Model name sent to the provider")
    llm_temperature: float = Field(default=0.3, description="Sampling temperature")
    llm_max_tokens: int = Field(default=1000, description="Maximum tokens in a generated answer")

    # OpenAI-compatible Configuration (OpenAI or a LiteLLM proxy)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible gateways such as LiteLLM",
    )

    # Anthropic Configuration
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )

    # Deadlines (seconds)
    source_search_timeout: float = Field(default=10.0, description="Per-source search deadline")
    generation_timeout: float = Field(default=30.0, description="Answer generation deadline")
    reply_timeout: float = Field(default=10.0, description="Thread reply deadline")
    signature_max_age: int = Field(default=300, description="Replay window for signed requests")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8080, description="HTTP port")
    max_concurrent_inquiries: int = Field(
        default=8, gt=0, description="Inquiries processed at the same time"
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )

    @property
    def confluence_configured(self) -> bool:
        """Whether enough Confluence settings are present to search."""
        return bool(self.confluence_base_url and self.confluence_api_token)

    def validate_provider_config(self) -> None:
        """Validate that required API keys are set for the selected provider."""
        if self.llm_provider == LLMProvider.OPENAI and not self.openai_api_key:
            raise ValueError("OpenAI API key is required when using OpenAI provider")
        elif self.llm_provider == LLMProvider.ANTHROPIC and not self.anthropic_api_key:
            raise ValueError("Anthropic API key is required when using Anthropic provider")


# Global settings instance - lazy loaded, only used by the entry point
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
