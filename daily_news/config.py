"""
Daily News Configuration

Centralized configuration. All environment variables are read here;
no os.getenv() calls elsewhere.
"""
from __future__ import annotations

import os
from dataclasses import dataclass


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _optional_env(name: str, default: str = "") -> str:
    """Get an optional environment variable with a default."""
    return os.environ.get(name, default)


def _optional_env_int(name: str, default: int) -> int:
    """Get an optional integer environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {name}: {value}")


def _positive_env_float(name: str, default: float) -> float:
    """Optional positive number; missing, malformed or non-positive values use the default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        number = float(value)
    except ValueError:
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class NewsApiConfig:
    """Upstream news provider configuration."""
    api_key: str
    base_url: str = "https://newsapi.org/v2"
    query: str = "India"
    language: str = "en"
    page_size: int = 100


@dataclass(frozen=True)
class RedisConfig:
    """Article store connection configuration."""
    url: str


@dataclass(frozen=True)
class WebSocketServerConfig:
    """WebSocket server configuration for client connections."""
    host: str
    port: int


@dataclass(frozen=True)
class StreamConfig:
    """Session pacing configuration."""
    interval_seconds: float
    batch_window: int


@dataclass(frozen=True)
class Settings:
    """Root configuration container."""
    news_api: NewsApiConfig
    redis: RedisConfig
    websocket_server: WebSocketServerConfig
    stream: StreamConfig


def _load_settings() -> Settings:
    """Load all settings from environment variables.

    NEWS_API_KEY is optional here so the server can start against an
    already-populated store; main.py asks for it before live ingestion.
    """
    news_api = NewsApiConfig(
        api_key=_optional_env("NEWS_API_KEY", ""),
        base_url=_optional_env("NEWS_API_BASE_URL", "https://newsapi.org/v2"),
        query=_optional_env("NEWS_API_QUERY", "India"),
        language=_optional_env("NEWS_API_LANGUAGE", "en"),
        page_size=_optional_env_int("NEWS_API_PAGE_SIZE", 100),
    )

    redis = RedisConfig(
        url=_optional_env("REDIS_URL", "redis://localhost:6379/0"),
    )

    websocket_server = WebSocketServerConfig(
        host=_optional_env("WS_HOST", "0.0.0.0"),
        port=_optional_env_int("PORT", 3000),
    )

    batch_window = _optional_env_int("BATCH_WINDOW_SIZE", 10)
    if batch_window < 1:
        raise ConfigurationError(f"BATCH_WINDOW_SIZE must be at least 1, got {batch_window}")

    stream = StreamConfig(
        interval_seconds=_positive_env_float("STREAM_INTERVAL_SECONDS", 120.0),
        batch_window=batch_window,
    )

    return Settings(
        news_api=news_api,
        redis=redis,
        websocket_server=websocket_server,
        stream=stream,
    )


settings = _load_settings()
