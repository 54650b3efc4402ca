"""Configuration using Pydantic Settings.

Configuration is environment-aware:
- RATEKEEPER_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

The core classes never read settings directly. They take plain values, and
the factories in ``ratekeeper.adapters.store.factory`` and
``ratekeeper.utils.ip_keys`` translate settings into instances.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


RATEKEEPER_ENV = os.getenv("RATEKEEPER_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(RATEKEEPER_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file and os.getenv("TESTING", "").lower() != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class StoreSettings(BaseSettings):
    """Counter store configuration."""

    window_ms: int = Field(
        60_000,
        description="Length of the fixed window in milliseconds",
        ge=1,
    )
    sweep_chunk_size: int = Field(
        1000,
        description="Maximum number of keys examined per lock acquisition during a sweep",
        ge=1,
    )
    prefix: str = Field(
        "",
        description="Namespace prepended to every client key",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATEKEEPER_STORE_",
        case_sensitive=False,
    )


class KeySettings(BaseSettings):
    """Client key derivation configuration."""

    ipv6_subnet: int | None = Field(
        56,
        description="IPv6 prefix length used to collapse addresses (unset disables collapsing)",
    )
    cache_max_entries: int = Field(
        10_000,
        description="Maximum number of memoized IPv6 subnet keys",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATEKEEPER_KEY_",
        case_sensitive=False,
    )

    @field_validator("ipv6_subnet")
    @classmethod
    def _check_subnet(cls, value: int | None) -> int | None:
        if value is not None and not 1 <= value <= 128:
            raise ValueError("ipv6_subnet must be between 1 and 128")
        return value


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="RATEKEEPER_LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Nested settings are created via default_factory so each section reads
    its own env prefix.
    """

    env: str = RATEKEEPER_ENV
    store: StoreSettings = Field(default_factory=StoreSettings)
    key: KeySettings = Field(default_factory=KeySettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
