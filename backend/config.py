"""Runtime configuration for the Ministry of Truth backend.

Every environment variable the service reads is resolved here, once, at
startup. The resulting :class:`Settings` is immutable and handed to the
FastAPI app, which passes it into each request handler.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger("backend.config")

DEFAULT_PORT = 8080
DEFAULT_NEWS_API_BASE_URL = "https://newsapi.org/v2"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"
DEFAULT_UPSTREAM_TIMEOUT = 30.0


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _require_env(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise ConfigurationError(f"{name} environment variable is required")
    return value


def _optional_env(env: Mapping[str, str], name: str, default: str) -> str:
    return env.get(name) or default


def _optional_env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {name}: {value}")


def _optional_env_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid number for {name}: {value}")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once from the environment."""

    news_api_key: str
    openai_api_key: str
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    news_api_base_url: str = DEFAULT_NEWS_API_BASE_URL
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_model: str = DEFAULT_OPENAI_MODEL
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT
    static_dir: str = "./public"
    log_dir: str = "./logs"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``env`` (``os.environ`` by default).

    Raises :class:`ConfigurationError` when either upstream credential is
    missing, so the server refuses to start rather than failing on the
    first request.
    """

    if env is None:
        env = os.environ

    settings = Settings(
        news_api_key=_require_env(env, "NEWS_API_KEY"),
        openai_api_key=_require_env(env, "OPENAI_API_KEY"),
        host=_optional_env(env, "HOST", "0.0.0.0"),
        port=_optional_env_int(env, "PORT", DEFAULT_PORT),
        news_api_base_url=_optional_env(
            env, "NEWS_API_BASE_URL", DEFAULT_NEWS_API_BASE_URL
        ).rstrip("/"),
        openai_base_url=_optional_env(
            env, "OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL
        ).rstrip("/"),
        openai_model=_optional_env(env, "OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        upstream_timeout=_optional_env_float(
            env, "UPSTREAM_TIMEOUT", DEFAULT_UPSTREAM_TIMEOUT
        ),
        static_dir=_optional_env(env, "STATIC_DIR", "./public"),
        log_dir=_optional_env(env, "LOG_DIR", "./logs"),
    )
    logger.debug("Loaded settings for port %d", settings.port)
    return settings


__all__ = ["ConfigurationError", "Settings", "load_settings"]
