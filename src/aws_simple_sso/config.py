"""Configuration management for the SSO credential helper."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = "~/.aws/aws-simple-sso"


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class CacheSettings(BaseModel):
    directory: str = Field(default=DEFAULT_CACHE_DIR)

    @field_validator("directory")
    @classmethod
    def _expand_directory(cls, value: str) -> str:
        return str(Path(value).expanduser())


class SSOSettings(BaseModel):
    """Device-authorization and API client settings.

    The poll loop stops after ``max_poll_attempts`` token exchanges or after
    ``poll_timeout_seconds`` of wall-clock time, whichever comes first.
    A timeout of ``0`` disables the wall-clock bound.
    """

    default_region: str = Field(default="us-east-1")
    client_name: str = Field(default="sso-client")
    scopes: tuple[str, ...] = Field(default=("aws.credential-provider",))
    poll_interval_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    max_poll_attempts: int = Field(default=120, ge=1, le=10_000)
    poll_timeout_seconds: float = Field(default=180.0, ge=0.0)
    open_browser: bool = Field(default=False)
    connect_timeout: int = Field(default=5, ge=1, le=300)
    read_timeout: int = Field(default=15, ge=1, le=300)


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    sso: SSOSettings = Field(default_factory=SSOSettings)


ENV_KEYS = {
    "log_level": "SSO_LOG_LEVEL",
    "log_file": "SSO_LOG_FILE",
    "cache_dir": "SSO_CACHE_DIR",
    "region": "SSO_DEFAULT_REGION",
    "client_name": "SSO_CLIENT_NAME",
    "scopes": "SSO_SCOPES",
    "poll_interval": "SSO_POLL_INTERVAL_SECONDS",
    "max_poll_attempts": "SSO_MAX_POLL_ATTEMPTS",
    "poll_timeout": "SSO_POLL_TIMEOUT_SECONDS",
    "open_browser": "SSO_OPEN_BROWSER",
    "connect_timeout": "SSO_CONNECT_TIMEOUT",
    "read_timeout": "SSO_READ_TIMEOUT",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def _default_region() -> str:
    return (
        os.getenv(ENV_KEYS["region"])
        or os.getenv("AWS_REGION")
        or os.getenv("AWS_DEFAULT_REGION")
        or SSOSettings().default_region
    )


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    defaults = SSOSettings()

    settings_data: dict[str, object] = {
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": os.getenv(ENV_KEYS["log_file"], "").strip() or None,
        },
        "cache": {
            "directory": os.getenv(ENV_KEYS["cache_dir"], DEFAULT_CACHE_DIR),
        },
        "sso": {
            "default_region": _default_region(),
            "client_name": os.getenv(ENV_KEYS["client_name"], defaults.client_name),
            "scopes": tuple(_split_csv(os.getenv(ENV_KEYS["scopes"]))) or defaults.scopes,
            "poll_interval_seconds": _env_float(
                ENV_KEYS["poll_interval"], defaults.poll_interval_seconds
            ),
            "max_poll_attempts": _env_int(
                ENV_KEYS["max_poll_attempts"], defaults.max_poll_attempts
            ),
            "poll_timeout_seconds": _env_float(
                ENV_KEYS["poll_timeout"], defaults.poll_timeout_seconds
            ),
            "open_browser": _env_bool(ENV_KEYS["open_browser"], defaults.open_browser),
            "connect_timeout": _env_int(ENV_KEYS["connect_timeout"], defaults.connect_timeout),
            "read_timeout": _env_int(ENV_KEYS["read_timeout"], defaults.read_timeout),
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
