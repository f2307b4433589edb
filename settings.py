"""Application configuration.

Requires: SUPABASE_URL, SUPABASE_ANON_KEY
Optional: SESSION_SECRET, SERVICE_NAME, LOG_FORMAT, LOG_LEVEL, TERMINAL_LINE_DELAY
"""

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when required environment values are missing or invalid."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Required
    supabase_url: str = Field(..., min_length=1, description="Base URL of the hosted backend")
    supabase_anon_key: str = Field(..., min_length=1, description="Public (anon) API key")

    # Signed session cookie; a per-process key logs everyone out on restart
    session_secret: str = Field(default_factory=lambda: secrets.token_urlsafe(32))

    service_name: str = "portfolio"
    log_format: Literal["json", "console"] = "console"
    log_level: str = "INFO"

    terminal_line_delay: float = Field(default=0.05, ge=0, description="Seconds between terminal output lines")

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v


def load_settings() -> Settings:
    """Build settings from the environment.

    Raises ConfigurationError naming the offending variables instead of the
    raw pydantic ValidationError.
    """
    try:
        return Settings()
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]).upper() for err in e.errors() if err["loc"]})
        raise ConfigurationError(
            f"Missing or invalid configuration: {', '.join(fields)}. Check your .env file."
        ) from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
