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

from ratewarden.adapters.rate_limit.base import Algorithm, RateLimitConfig


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

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
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment."""

    return LogSettings()


class RateLimitSettings(BaseSettings):
    """Rate limiter configuration for the HTTP service."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting on protected routes",
    )
    algorithm: Algorithm = Field(
        Algorithm.FIXED_WINDOW,
        description="Counting discipline: fixed_window, sliding_window or token_bucket",
    )
    window_ms: int = Field(
        60_000,
        description="Window duration in milliseconds",
        ge=0,
    )
    max: int = Field(
        60,
        description="Requests per window, or bucket capacity for token_bucket",
    )
    cleanup_interval_ms: int = Field(
        30_000,
        description="Interval between eviction sweeps in milliseconds",
        gt=0,
    )
    enable_cleanup: bool = Field(
        True,
        description="Run the periodic eviction sweep",
    )
    refill_rate: float = Field(
        1,
        description="Tokens added per refill interval (token_bucket only)",
        ge=0,
    )
    refill_interval_ms: int = Field(
        1_000,
        description="Refill interval in milliseconds (token_bucket only)",
        gt=0,
    )
    precision_ms: int = Field(
        100,
        description="Bucket width in milliseconds (sliding_window only)",
        gt=0,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers on responses",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def to_config(self) -> RateLimitConfig:
        """Project the service settings onto a limiter configuration."""

        return RateLimitConfig(
            algorithm=self.algorithm,
            window_ms=self.window_ms,
            max=self.max,
            cleanup_interval_ms=self.cleanup_interval_ms,
            enable_cleanup=self.enable_cleanup,
            refill_rate=self.refill_rate,
            refill_interval_ms=self.refill_interval_ms,
            precision_ms=self.precision_ms,
        )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
