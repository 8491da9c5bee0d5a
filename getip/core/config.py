"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Rate limit values are read once when the application is built; changing the
environment afterwards has no effect on a running limiter.
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


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_geo_settings() -> "GeoSettings":
    return GeoSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the uvicorn server binds to",
    )
    port: int = Field(
        8787,
        description="Port the uvicorn server listens on",
    )
    debug_endpoint_enabled: bool = Field(
        True,
        description="Expose GET /debug with request headers and location data",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of Access-Control-Allow-Origin on every response",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on the IP lookup endpoint",
    )
    rate_limit_requests: int = Field(
        60,
        description="Maximum number of requests allowed per window (per client IP)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers when throttling (Retry-After is always sent)",
    )
    rate_limit_max_key_bytes: int = Field(
        256,
        description="Maximum UTF-8 length of a rate limit key",
        ge=1,
    )
    rate_limit_max_tracked_keys: int = Field(
        100_000,
        description="Number of tracked keys that triggers an eviction sweep",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: int = Field(
        60,
        description="Minimum seconds between opportunistic eviction sweeps",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class GeoSettings(BaseSettings):
    """Header names used to read the client IP and location metadata.

    Location is never computed here; an upstream proxy (e.g. Cloudflare with
    visitor location headers enabled) is expected to inject these headers.
    """

    client_ip_headers: list[str] = Field(
        default_factory=lambda: ["CF-Connecting-IP", "X-Real-IP", "X-Forwarded-For"],
        description="Headers checked in order for the client IP (JSON list in env)",
    )
    country_header: str = Field("CF-IPCountry")
    city_header: str = Field("CF-IPCity")
    region_header: str = Field("CF-Region")
    timezone_header: str = Field("CF-Timezone")
    asn_header: str = Field("X-Client-ASN")
    as_organization_header: str = Field("X-Client-AS-Organization")

    model_config = SettingsConfigDict(
        env_prefix="GEO_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate log file after N bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field("X-Request-ID", description="Header carrying the request id")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a value is invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    geo: GeoSettings = Field(default_factory=_build_geo_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
