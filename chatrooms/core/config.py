"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class StoreSettings(BaseSettings):
    """Key-value store connection settings.

    ``memory`` keeps everything in-process and is meant for local development
    and tests. ``redis`` is the shared store used by every deployed instance.
    """

    backend: str = Field(
        "memory",
        description="Store backend: redis or memory",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL (used when backend=redis)",
    )
    socket_timeout_seconds: float = Field(
        5.0,
        description="Socket timeout for store commands",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class ChatSettings(BaseSettings):
    """Chat room behaviour: history window, presence and burst protection."""

    admin_username: str = Field(
        "ryo",
        description="Single identity allowed to moderate public rooms",
    )
    max_message_length: int = Field(
        1000,
        description="Maximum message length after sanitization",
        ge=1,
    )
    history_size: int = Field(
        100,
        description="Number of most recent messages kept per room",
        ge=1,
    )
    default_list_limit: int = Field(
        20,
        description="Messages returned when no limit is given",
        ge=1,
    )
    max_list_limit: int = Field(
        500,
        description="Upper bound for the list limit",
        ge=1,
    )
    presence_ttl_seconds: int = Field(
        86400,
        description="Presence entries older than this are pruned on read",
        ge=1,
    )
    burst_short_window_seconds: int = Field(10, ge=1)
    burst_short_limit: int = Field(3, ge=1)
    burst_long_window_seconds: int = Field(60, ge=1)
    burst_long_limit: int = Field(20, ge=1)
    min_interval_seconds: int = Field(
        2,
        description="Minimum seconds between two messages in a public room",
        ge=0,
    )
    user_ttl_seconds: int = Field(
        90 * 24 * 60 * 60,
        description="Expiry applied to the user record on activity",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        case_sensitive=False,
    )


class QuotaSettings(BaseSettings):
    """Quotas for privileged features and unrelated API surfaces."""

    enabled: bool = Field(
        True,
        description="Enable route level quotas",
    )
    ai_anonymous_limit: int = Field(3, ge=1)
    ai_anonymous_window_seconds: int = Field(24 * 60 * 60, ge=1)
    ai_authenticated_limit: int = Field(15, ge=1)
    ai_authenticated_window_seconds: int = Field(5 * 60 * 60, ge=1)
    create_room_limit: int = Field(
        10,
        description="Rooms a single identity may create per window",
        ge=1,
    )
    create_room_window_seconds: int = Field(60 * 60, ge=1)
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="QUOTA_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file past this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    notifier: str = Field(
        "redis",
        description="Event dispatch: redis (pub/sub) or log",
    )
    profanity_words: str | None = Field(
        None,
        description="Comma-separated words added to the built-in blocklist",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    store: StoreSettings = Field(default_factory=StoreSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
