"""
Configuration management for prcapi.

Supports environment variables, .env files, and YAML configuration.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Settings for the PRC API endpoint and credentials."""

    model_config = SettingsConfigDict(
        env_prefix="PRC_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "https://api.policeroleplay.community"
    # Only large applications are issued one; requests work without it
    authorization_key: SecretStr | None = None
    timeout: float = 30.0

    @property
    def has_authorization(self) -> bool:
        """Check if an application authorization key is configured."""
        return self.authorization_key is not None


class QueueSettings(BaseSettings):
    """Defaults applied to queues created without explicit configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PRC_QUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_queue: str = "main"
    pace_interval_ms: float = Field(default=250.0, ge=0)
    capacity: int | None = Field(
        default=None,
        ge=0,
        description="Maximum pending requests per queue. None means unbounded.",
    )


class Settings(BaseSettings):
    """Combined application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PRC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api: ApiSettings = Field(default_factory=ApiSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'console'")
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
