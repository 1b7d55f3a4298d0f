"""Application configuration using Pydantic Settings.

Environment variables are loaded with the LLM_CONVERSATION_ prefix, from the
process environment or a local .env file. Validation runs once, up front:
a Settings instance that constructs successfully is safe to hand to the
orchestrator without further checks.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from llm_conversation.config.models import get_model_list_for_error, is_model_supported
from llm_conversation.core.constants import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_MAX_TURNS,
    DEFAULT_VIEWER_BASE_URL,
    MAX_TURNS,
    MIN_TURNS,
    RetryDefaults,
)
from llm_conversation.core.exceptions import ConfigurationError


ProviderName = Literal["openai", "anthropic"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    service_name: str = "llm-conversation"
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Per-session file directory")
    session_log_files: bool = Field(default=True, description="Write per-session log files to log_dir")

    # Participants
    llm1_provider: ProviderName = Field(default="openai", description="Provider of the first speaker")
    llm2_provider: ProviderName = Field(default="anthropic", description="Provider of the second speaker")
    llm1_model: Optional[str] = Field(default=None, description="Model override for the first speaker")
    llm2_model: Optional[str] = Field(default=None, description="Model override for the second speaker")

    # OpenAI
    openai_api_key: Optional[SecretStr] = None
    openai_model: str = Field(default="gpt-4o-mini", description="Default OpenAI model")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL"
    )

    # Anthropic
    anthropic_api_key: Optional[SecretStr] = None
    anthropic_model: str = Field(default="claude-3-5-sonnet-20241022", description="Default Anthropic model")
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1",
        description="Anthropic API base URL"
    )

    # Conversation
    conversation_topic: str = Field(default="", description="Default conversation topic")
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=MIN_TURNS, le=MAX_TURNS)
    delay_between_messages: float = Field(
        default=DEFAULT_DELAY_SECONDS,
        ge=0.0,
        description="Seconds to wait between turns"
    )

    # Retry policy for provider calls
    retry_max_attempts: int = Field(default=RetryDefaults.MAX_ATTEMPTS, ge=1)
    retry_min_delay_ms: int = Field(default=RetryDefaults.MIN_DELAY_MS, ge=0)
    retry_max_delay_ms: int = Field(default=RetryDefaults.MAX_DELAY_MS, ge=0)
    retry_factor: float = Field(default=RetryDefaults.FACTOR, ge=1.0)
    retry_randomize: bool = True

    # Request timeouts
    http_timeout_seconds: float = Field(default=120.0, description="Provider request timeout")

    # Upload to the conversation viewer
    upload_enabled: bool = False
    upload_api_url: Optional[str] = None
    auto_upload: bool = False
    upload_max_retries: int = Field(default=3, ge=0)
    upload_retry_delay_ms: int = Field(default=1000, ge=0)
    upload_timeout_seconds: float = 30.0
    viewer_base_url: str = DEFAULT_VIEWER_BASE_URL

    model_config = SettingsConfigDict(
        env_prefix="LLM_CONVERSATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_participants(self) -> "Settings":
        """Require credentials for every provider in use and known model overrides."""
        for provider in sorted({self.llm1_provider, self.llm2_provider}):
            for suffix in ("api_key", "model", "base_url"):
                value = getattr(self, f"{provider}_{suffix}")
                if isinstance(value, SecretStr):
                    value = value.get_secret_value()
                if not value:
                    raise ValueError(
                        f"Missing required setting {provider}_{suffix} for provider: {provider}"
                    )

        for slot in ("llm1", "llm2"):
            provider = getattr(self, f"{slot}_provider")
            model = getattr(self, f"{slot}_model")
            if model and not is_model_supported(provider, model):
                raise ValueError(
                    f"Invalid {slot}_model '{model}' for provider '{provider}'. "
                    f"Supported models: {get_model_list_for_error(provider)}"
                )

        if self.upload_enabled and not self.upload_api_url:
            raise ValueError("upload_api_url is required when upload_enabled is true")

        return self

    def api_key_for(self, provider: str) -> str:
        """Plain-text API key for a provider."""
        secret = getattr(self, f"{provider}_api_key")
        return secret.get_secret_value() if secret else ""

    def base_url_for(self, provider: str) -> str:
        return getattr(self, f"{provider}_base_url")

    def provider_for(self, slot: str) -> str:
        """Provider name configured for a participant slot ("llm1"/"llm2")."""
        return getattr(self, f"{slot}_provider")

    def model_for(self, slot: str) -> str:
        """Resolved model for a slot: the override, else the provider default."""
        override = getattr(self, f"{slot}_model")
        return override or getattr(self, f"{self.provider_for(slot)}_model")


def validate_max_turns(value: object) -> int:
    """Validate a turn budget supplied outside Settings (e.g. on the CLI).

    Raises:
        ConfigurationError: If the value is not an integer in [MIN_TURNS, MAX_TURNS].
    """
    if isinstance(value, bool):
        raise ConfigurationError("max_turns must be an integer", field="max_turns", value=value)
    try:
        turns = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"max_turns must be an integer, got {value!r}", field="max_turns", value=value
        ) from e
    if isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(
            f"max_turns must be an integer, got {value!r}", field="max_turns", value=value
        )
    if not MIN_TURNS <= turns <= MAX_TURNS:
        raise ConfigurationError(
            f"max_turns must be between {MIN_TURNS} and {MAX_TURNS}, got {turns}",
            field="max_turns",
            value=value,
        )
    return turns


def load_settings(**overrides: object) -> Settings:
    """Build Settings, converting validation failures to ConfigurationError.

    Args:
        **overrides: Explicit values that take precedence over the environment.

    Raises:
        ConfigurationError: If any setting is missing or invalid.
    """
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        errors = e.errors(include_url=False)
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', str(e))}",
            field=field,
            errors=[dict(err) for err in errors],
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return load_settings()
