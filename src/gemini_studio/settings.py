"""Gemini Studio configuration settings.

Environment-based configuration for model selection, transports and the
local credential cache. Settings can also be injected directly.
"""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from gemini_studio.models import MODEL_FALLBACK_LIST, CallMode

TransportKind = Literal["genai", "rest", "relay"]


class StudioSettings(BaseSettings):
    """Configuration for Gemini Studio.

    All settings can be configured via environment variables or .env file.

    Attributes:
        gemini_api_key: API key used when no cached credential exists
        fallback_models: Model ids tried in priority order
        call_mode: Issue the calls of one model attempt sequentially or concurrently
        call_delay: Seconds between sequential calls
        transport: Which transport carries generation calls
        api_base_url: Base URL of the Generative Language REST API
        relay_url: Full URL of the relay endpoint used by the relay transport
        request_timeout: HTTP timeout in seconds for a single call
        response_modalities: Output modalities requested from the model
        credential_path: JSON file holding the cached API key
        log_level: Logging level for the gemini_studio logger
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    gemini_api_key: SecretStr | None = Field(
        default=None,
        alias="GEMINI_API_KEY",
        description="Gemini API key (fallback when no cached key exists)",
    )

    # Generation
    fallback_models: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(MODEL_FALLBACK_LIST),
        alias="STUDIO_FALLBACK_MODELS",
        description="Comma-separated model ids in priority order",
    )
    call_mode: CallMode = Field(
        default=CallMode.SEQUENTIAL,
        alias="STUDIO_CALL_MODE",
        description="sequential or concurrent calls within one model attempt",
    )
    call_delay: float = Field(
        default=2.0,
        ge=0,
        alias="STUDIO_CALL_DELAY",
        description="Seconds between sequential calls",
    )
    response_modalities: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["IMAGE", "TEXT"],
        alias="STUDIO_RESPONSE_MODALITIES",
    )

    # Transport
    transport: TransportKind = Field(default="genai", alias="STUDIO_TRANSPORT")
    api_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_API_BASE_URL",
    )
    relay_url: str = Field(
        default="http://localhost:8000/api/generate",
        alias="STUDIO_RELAY_URL",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0,
        alias="STUDIO_REQUEST_TIMEOUT",
        description="HTTP request timeout in seconds",
    )

    # Relay server
    relay_path: str = Field(default="/api/generate", alias="STUDIO_RELAY_PATH")
    relay_host: str = Field(default="127.0.0.1", alias="STUDIO_RELAY_HOST")
    relay_port: int = Field(default=8000, alias="STUDIO_RELAY_PORT")

    # Local state
    credential_path: Path = Field(
        default_factory=lambda: Path.home() / ".gemini_studio.json",
        alias="STUDIO_CREDENTIAL_PATH",
    )
    log_level: str = Field(default="INFO", alias="STUDIO_LOG_LEVEL")

    @field_validator("fallback_models", "response_modalities", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str] | None) -> list[str]:
        """Parse comma-separated string into list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v or []

    @field_validator("fallback_models")
    @classmethod
    def validate_fallback_models(cls, v: list[str]) -> list[str]:
        """Require at least one model."""
        if not v:
            msg = "At least one fallback model must be configured"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            msg = f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return v.upper()

    def get_api_key_value(self) -> str | None:
        """Get the environment API key as a plain string, if set."""
        if self.gemini_api_key is None:
            return None
        return self.gemini_api_key.get_secret_value() or None


_settings_instance: StudioSettings | None = None


def get_studio_settings() -> StudioSettings:
    """Get default settings (singleton, reads from environment).

    Returns:
        StudioSettings instance.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = StudioSettings()
    return _settings_instance


def reset_settings() -> None:
    """Reset singleton (for testing)."""
    global _settings_instance
    _settings_instance = None
