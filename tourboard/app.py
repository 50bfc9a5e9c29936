"""
BoardApp - Composition Root

This module contains the BoardApp class, which is responsible for:
- Loading configuration and configuring logging
- Creating the single process-wide RateLimiter
- Wiring the HTTP client, dispatcher, cache and service together
- Application lifecycle management (startup/shutdown)

Scheduling and HTTP routing live outside this package; they drive BoardApp.
"""

import logging
from pathlib import Path
from typing import Optional

import httpx

from .cache import DispatchCache
from .config import BoardConfig, default_config, load_from_toml
from .content import ContentSource
from .dispatcher import Dispatcher
from .rate_limiter import RateLimiter
from .service import BoardService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT)


class BoardApp:
    """
    Application composition root for the board renderer.

    Args:
        config_path: TOML config file; defaults are used if it does not exist
        content_source: Source for scheduled updates
        transport: Optional httpx transport (tests use httpx.MockTransport)
        config: Pre-built config, takes precedence over config_path
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        content_source: Optional[ContentSource] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[BoardConfig] = None,
    ):
        self.config_path = config_path or Path("config.toml")
        self.content_source = content_source
        self._transport = transport

        # Core components - initialized during startup
        self.config: Optional[BoardConfig] = config
        self.rate_limiter: Optional[RateLimiter] = None
        self.client: Optional[httpx.AsyncClient] = None
        self.dispatcher: Optional[Dispatcher] = None
        self.cache: Optional[DispatchCache] = None
        self.service: Optional[BoardService] = None

        self._started = False

    async def startup(self) -> None:
        """Create all components with dependency injection."""
        try:
            self._load_configuration()
            configure_logging(self.config.log.level)
            logger.info("Starting up board application...")

            self.rate_limiter = RateLimiter(self.config.rate_limit.interval)
            self.client = httpx.AsyncClient(
                transport=self._transport, timeout=self.config.endpoint.timeout
            )
            self.dispatcher = Dispatcher(
                client=self.client,
                rate_limiter=self.rate_limiter,
                endpoint=self.config.endpoint,
                fallback=self.config.fallback,
            )
            self.cache = DispatchCache(self.config.cache.path, self.config.cache.duration)
            self.service = BoardService(
                dispatcher=self.dispatcher,
                cache=self.cache,
                source=self.content_source,
            )

            self._started = True
            logger.info("Board application startup completed successfully")

        except Exception as e:
            logger.error(f"Board application startup failed: {e}")
            await self.shutdown()  # Cleanup on failure
            raise

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        logger.info("Shutting down board application...")
        if self.client is not None:
            await self.client.aclose()
            self.client = None
        self._started = False

    async def __aenter__(self) -> "BoardApp":
        await self.startup()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    @property
    def started(self) -> bool:
        return self._started

    def get_service(self) -> BoardService:
        if not self.service:
            raise RuntimeError("Board service not initialized - call startup() first")
        return self.service

    def _load_configuration(self) -> None:
        if self.config is not None:
            self.config.validate()
            return
        if self.config_path.exists():
            logger.info(f"Loading configuration from {self.config_path}")
            self.config = load_from_toml(self.config_path)
        else:
            logger.warning(
                f"Config file {self.config_path} not found, using default configuration"
            )
            self.config = default_config()

    def get_stats(self) -> dict:
        if not self.config or not self.cache or not self.rate_limiter:
            return {"running": False, "message": "board app not initialized"}

        return {
            "running": self._started,
            "endpoint": self.config.endpoint.url,
            "api_status": (
                "Configured" if self.config.endpoint.resolve_api_key() else "Missing API Key"
            ),
            "rate_limit": {
                "interval": self.rate_limiter.interval,
                "remaining": self.rate_limiter.remaining(),
            },
            "cache": self.cache.get_status(),
        }
