# tourboard/config.py
from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .rate_limiter import DEFAULT_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT_URL = "https://rw.vestaboard.com/"
DEFAULT_KEY_HEADER = "X-Vestaboard-Read-Write-Key"
DEFAULT_KEY_ENV = "VESTABOARD_READ_WRITE_KEY"
DEFAULT_FALLBACK_TEMPLATE = "{header}\n{first_line}\n{time}"


@dataclass(frozen=True)
class EndpointConfig:
    url: str = DEFAULT_ENDPOINT_URL
    api_key: str = ""
    api_key_env: str = DEFAULT_KEY_ENV
    key_header: str = DEFAULT_KEY_HEADER
    timeout: float = 10.0

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("Endpoint url must not be empty")
        if self.timeout <= 0:
            raise ValueError("Endpoint timeout must be > 0")

    def resolve_api_key(self) -> Optional[str]:
        """Environment variable first, then the configured key."""
        if self.api_key_env:
            from_env = os.getenv(self.api_key_env)
            if from_env:
                return from_env
        return self.api_key or None


@dataclass(frozen=True)
class RateLimitConfig:
    interval: float = DEFAULT_INTERVAL

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("Rate limit interval must be >= 0")


@dataclass(frozen=True)
class CacheConfig:
    path: Path = Path("cache.json")
    duration: float = 3600.0

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError("Cache duration must be >= 0")


@dataclass(frozen=True)
class FallbackConfig:
    template: str = DEFAULT_FALLBACK_TEMPLATE


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid logging level '{self.level}'")


@dataclass(frozen=True)
class BoardConfig:
    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    log: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        from .validation import validate_board_config

        validate_board_config(self)


def load_from_toml(config_path: str | Path) -> BoardConfig:
    """
    Load a BoardConfig from a TOML file.

    Expected TOML structure (every key optional):

    [endpoint]
    url = "https://rw.vestaboard.com/"
    api_key = ""
    api_key_env = "VESTABOARD_READ_WRITE_KEY"
    timeout = 10.0

    [rate_limit]
    interval = 16.0

    [cache]
    path = "cache.json"   # relative paths resolve against the config file
    duration = 3600.0

    [fallback]
    template = "{header}\\n{first_line}\\n{time}"

    [logging]
    level = "INFO"
    """
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Configuration file not found: {p}")

    with p.open("rb") as f:
        data = tomllib.load(f)

    endpoint = data.get("endpoint") or {}
    rate_limit = data.get("rate_limit") or {}
    cache = data.get("cache") or {}
    fallback = data.get("fallback") or {}
    log = data.get("logging") or {}

    cache_path = Path(str(cache.get("path", "cache.json")))
    if not cache_path.is_absolute():
        cache_path = p.parent / cache_path

    cfg = BoardConfig(
        endpoint=EndpointConfig(
            url=str(endpoint.get("url", DEFAULT_ENDPOINT_URL)),
            api_key=str(endpoint.get("api_key", "")),
            api_key_env=str(endpoint.get("api_key_env", DEFAULT_KEY_ENV)),
            key_header=str(endpoint.get("key_header", DEFAULT_KEY_HEADER)),
            timeout=float(endpoint.get("timeout", 10.0)),
        ),
        rate_limit=RateLimitConfig(
            interval=float(rate_limit.get("interval", DEFAULT_INTERVAL)),
        ),
        cache=CacheConfig(
            path=cache_path,
            duration=float(cache.get("duration", 3600.0)),
        ),
        fallback=FallbackConfig(
            template=str(fallback.get("template", DEFAULT_FALLBACK_TEMPLATE)),
        ),
        log=LoggingConfig(level=str(log.get("level", "INFO"))),
    )

    cfg.validate()

    logger.info(
        "Loaded BoardConfig: endpoint=%s, rate interval=%.1fs, cache=%s (%.0fs)",
        cfg.endpoint.url,
        cfg.rate_limit.interval,
        cfg.cache.path,
        cfg.cache.duration,
    )
    return cfg


def default_config() -> BoardConfig:
    """Defaults matching the hosted Read/Write API."""
    cfg = BoardConfig()
    cfg.validate()
    return cfg
