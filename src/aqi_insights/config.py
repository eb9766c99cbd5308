"""Typed settings loader for the air-quality insights service."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")

    iqair_api_key: str | None = Field(default=None, alias="IQAIR_API_KEY", repr=False)
    iqair_base_url: AnyUrl = Field(
        default=AnyUrl("http://api.airvisual.com/v2"),
        alias="IQAIR_BASE_URL",
    )
    ground_sensor_timeout_seconds: float = Field(
        default=15.0,
        alias="GROUND_SENSOR_TIMEOUT_SECONDS",
    )

    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY", repr=False)
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    generation_timeout_seconds: float = Field(default=60.0, alias="GENERATION_TIMEOUT_SECONDS")
    generation_max_tool_rounds: int = Field(default=5, alias="GENERATION_MAX_TOOL_ROUNDS")
    generation_max_attempts: int = Field(default=3, alias="GENERATION_MAX_ATTEMPTS")
    generation_retry_base_delay_seconds: float = Field(
        default=1.0,
        alias="GENERATION_RETRY_BASE_DELAY_SECONDS",
    )

    location_suggestion_limit: int = Field(default=5, alias="LOCATION_SUGGESTION_LIMIT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("iqair_api_key", "gemini_api_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset credentials."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_limits(self) -> Settings:
        """Validate numeric bounds and free-text fields."""
        if self.ground_sensor_timeout_seconds <= 0:
            raise ValueError("GROUND_SENSOR_TIMEOUT_SECONDS must be > 0.")
        if self.generation_timeout_seconds <= 0:
            raise ValueError("GENERATION_TIMEOUT_SECONDS must be > 0.")
        if self.generation_max_tool_rounds <= 0:
            raise ValueError("GENERATION_MAX_TOOL_ROUNDS must be > 0.")
        if self.generation_max_attempts < 1:
            raise ValueError("GENERATION_MAX_ATTEMPTS must be >= 1.")
        if self.generation_retry_base_delay_seconds < 0:
            raise ValueError("GENERATION_RETRY_BASE_DELAY_SECONDS must be >= 0.")
        if self.location_suggestion_limit <= 0:
            raise ValueError("LOCATION_SUGGESTION_LIMIT must be > 0.")
        if not self.gemini_model.strip():
            raise ValueError("GEMINI_MODEL must not be empty.")
        if self.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "app_env": self.app_env,
            "iqair_base_url": str(self.iqair_base_url),
            "iqair_api_key_configured": self.iqair_api_key is not None,
            "ground_sensor_timeout_seconds": self.ground_sensor_timeout_seconds,
            "gemini_model": self.gemini_model,
            "gemini_api_key_configured": self.gemini_api_key is not None,
            "generation_timeout_seconds": self.generation_timeout_seconds,
            "generation_max_tool_rounds": self.generation_max_tool_rounds,
            "generation_max_attempts": self.generation_max_attempts,
            "generation_retry_base_delay_seconds": self.generation_retry_base_delay_seconds,
            "location_suggestion_limit": self.location_suggestion_limit,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
