"""Typed settings loader for stack-tail."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator
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

    poll_interval_seconds: float = Field(
        default=5.0, alias="STACK_TAIL_POLL_INTERVAL_SECONDS"
    )
    max_retries: int = Field(default=3, alias="STACK_TAIL_MAX_RETRIES")
    retry_base_seconds: float = Field(default=1.0, alias="STACK_TAIL_RETRY_BASE_SECONDS")
    retry_max_seconds: float = Field(default=8.0, alias="STACK_TAIL_RETRY_MAX_SECONDS")
    retry_jitter_seconds: float = Field(
        default=0.25, alias="STACK_TAIL_RETRY_JITTER_SECONDS"
    )
    connect_timeout_seconds: float = Field(
        default=5.0, alias="STACK_TAIL_CONNECT_TIMEOUT_SECONDS"
    )
    read_timeout_seconds: float = Field(default=30.0, alias="STACK_TAIL_READ_TIMEOUT_SECONDS")

    timezone: str | None = Field(default=None, alias="STACK_TAIL_TIMEZONE")
    log_level: str = Field(default="WARNING", alias="STACK_TAIL_LOG_LEVEL")

    aws_profile: str | None = Field(default=None, alias="AWS_PROFILE")
    aws_region: str | None = Field(default=None, alias="AWS_REGION")

    @field_validator("timezone", "aws_profile", "aws_region", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric bounds and the log level name."""
        if self.poll_interval_seconds <= 0:
            raise ValueError("STACK_TAIL_POLL_INTERVAL_SECONDS must be > 0.")
        if self.max_retries < 0:
            raise ValueError("STACK_TAIL_MAX_RETRIES must be >= 0.")
        if self.retry_base_seconds < 0:
            raise ValueError("STACK_TAIL_RETRY_BASE_SECONDS must be >= 0.")
        if self.retry_max_seconds < self.retry_base_seconds:
            raise ValueError(
                "STACK_TAIL_RETRY_MAX_SECONDS cannot be less than "
                "STACK_TAIL_RETRY_BASE_SECONDS."
            )
        if self.retry_jitter_seconds < 0:
            raise ValueError("STACK_TAIL_RETRY_JITTER_SECONDS must be >= 0.")
        if self.connect_timeout_seconds <= 0:
            raise ValueError("STACK_TAIL_CONNECT_TIMEOUT_SECONDS must be > 0.")
        if self.read_timeout_seconds <= 0:
            raise ValueError("STACK_TAIL_READ_TIMEOUT_SECONDS must be > 0.")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"STACK_TAIL_LOG_LEVEL is not a logging level: {self.log_level}")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "poll_interval_seconds": self.poll_interval_seconds,
            "max_retries": self.max_retries,
            "retry_base_seconds": self.retry_base_seconds,
            "retry_max_seconds": self.retry_max_seconds,
            "connect_timeout_seconds": self.connect_timeout_seconds,
            "read_timeout_seconds": self.read_timeout_seconds,
            "timezone": self.timezone,
            "aws_profile": self.aws_profile,
            "aws_region": self.aws_region,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
