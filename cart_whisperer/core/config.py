"""Settings for the Cart Whisperer API.

Each concern (logging, rate limiting, LLM, Supabase, email) is its own
``BaseSettings`` group with an env prefix, and ``Settings`` composes them.
``APP_ENV`` picks the ``.env.<environment>`` file at the project root that is
loaded before any group reads the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENVIRONMENTS = ("development", "testing", "staging", "production")

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def env_file_for(app_env: str) -> Path | None:
    """``.env.<app_env>`` at the project root, if present.

    Unknown environments fall back to ``development``.
    """
    name = app_env if app_env in APP_ENVIRONMENTS else "development"
    path = PROJECT_ROOT / f".env.{name}"
    return path if path.is_file() else None


# Every settings group reads os.environ, so the file is applied once up front
_env_file = env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="Log line format",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Where log records are written",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Request rate limiting configuration.

    The storage backend is selected explicitly with ``RATE_LIMIT_BACKEND``;
    the presence of Redis credentials alone never switches backends.
    """

    enabled: bool = Field(True, description="Enable request rate limiting")
    backend: Literal["local", "remote"] = Field(
        "local",
        description="Bucket storage: process-local mapping or shared Redis store",
    )
    redis_url: str | None = Field(
        None,
        description="Redis URL for the remote backend (e.g. rediss://host:6379)",
    )
    redis_token: str | None = Field(
        None,
        description="Access token for the remote backend, sent as the Redis password",
    )
    default_limit: int = Field(
        10,
        description="Requests allowed per window when a route does not override it",
        ge=1,
    )
    default_window_seconds: int = Field(
        60,
        description="Window length in seconds when a route does not override it",
        ge=1,
    )
    sweep_threshold: int = Field(
        10000,
        description="Local backend evicts expired buckets once it holds more entries than this",
        ge=1,
    )
    sweep_interval_seconds: int | None = Field(
        None,
        description="If set, sweep the local backend periodically instead of only on size",
        ge=1,
    )
    signin_limit: int = Field(5, ge=1)
    signin_window_seconds: int = Field(60, ge=1)
    signup_limit: int = Field(3, ge=1)
    signup_window_seconds: int = Field(3600, ge=1)
    generate_email_limit: int = Field(20, ge=1)
    generate_email_window_seconds: int = Field(60, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LLMSettings(BaseSettings):
    """Completion provider used by AI mode.

    ``api_key`` stays optional so the service starts without it; AI mode then
    answers 502 ``llm_not_configured`` while templates keep working.
    """

    provider: str = Field("openai", description="Only \"openai\" is supported")
    model: str = Field("gpt-3.5-turbo", description="Chat completion model")
    api_key: str | None = None
    base_url: str | None = Field(
        None,
        description="OpenAI-compatible endpoint overriding the default",
    )
    timeout_seconds: float = Field(45.0, gt=0)
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Hosted auth/database (Supabase) configuration."""

    url: str | None = Field(
        None,
        description="Project URL, e.g. https://xyz.supabase.co",
    )
    anon_key: str | None = Field(
        None,
        description="Public anon API key sent as the apikey header",
    )
    timeout_seconds: float = Field(15.0)

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class EmailSettings(BaseSettings):
    """Transactional email (Resend) configuration."""

    resend_api_key: str | None = Field(None, description="Resend API key")
    from_address: str = Field(
        "Cart Whisperer <onboarding@resend.dev>",
        description="Default sender used when a request does not set one",
    )
    host: str | None = Field(
        None,
        description="Public base URL of this service, used for tracking links",
    )
    api_base_url: str = Field("https://api.resend.com")
    timeout_seconds: float = Field(15.0)

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All setting groups; built once at import as ``settings``."""

    app_env: str = APP_ENV
    debug: bool = False
    log: LogSettings = Field(default_factory=LogSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


settings = Settings()
