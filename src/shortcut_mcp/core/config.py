from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_API_URL = "https://api.app.shortcut.com/api/v3"
DEFAULT_CACHE_TTL_SECONDS = 300.0  # 5 minutes
DEFAULT_TIMEOUT_SECONDS = 30.0


class MissingTokenError(ValueError):
    """Raised when SHORTCUT_API_TOKEN is not configured."""


@dataclass(frozen=True)
class ServerConfig:
    api_token: str
    api_url: str = DEFAULT_API_URL
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_env_config(*, use_dotenv: bool = True) -> ServerConfig:
    """Load server settings from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    api_token = os.getenv("SHORTCUT_API_TOKEN", "").strip()
    if not api_token:
        raise MissingTokenError("SHORTCUT_API_TOKEN environment variable is required")
    return ServerConfig(
        api_token=api_token,
        api_url=os.getenv("SHORTCUT_API_URL", "").strip() or DEFAULT_API_URL,
        cache_ttl_seconds=_float_env(
            "SHORTCUT_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS
        ),
        timeout_seconds=_float_env("SHORTCUT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        log_level=os.getenv("LOG_LEVEL", "").strip() or "INFO",
    )


__all__ = [
    "ServerConfig",
    "MissingTokenError",
    "load_env_config",
    "DEFAULT_API_URL",
    "DEFAULT_CACHE_TTL_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
]
