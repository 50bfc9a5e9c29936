"""
Dispatcher - I/O Boundary to the Board Endpoint

This module contains the Dispatcher class, which transmits a validated grid to
the board's Read/Write endpoint and classifies the response into a
DispatchOutcome.

Response policy:
- 2xx: success
- 304: success, board already shows this content
- 503: server-side throttle, fail without retry
- 400: one plain-text fallback attempt (non-test dispatches only)
- anything else: failure, not retried here
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
import numpy as np

from .config import EndpointConfig, FallbackConfig
from .rate_limiter import RateLimiter
from .symbols import decode
from .validation import validate_grid

logger = logging.getLogger(__name__)


class DispatcherError(Exception):
    """Base exception for dispatcher errors."""

    pass


class DispatchTransportError(DispatcherError):
    """Raised when the request never produced an HTTP response."""

    pass


class DispatchStatus(enum.Enum):
    SUCCESS = "success"
    UNCHANGED = "unchanged"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


class FailureReason(enum.Enum):
    SERVER_THROTTLED = "server_throttled"
    PAYLOAD_REJECTED = "payload_rejected"
    FALLBACK_FAILED = "fallback_failed"
    HTTP_ERROR = "http_error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DispatchOutcome:
    status: DispatchStatus
    reason: Optional[FailureReason] = None
    status_code: Optional[int] = None
    detail: str = ""
    response: Any = None
    fallback_used: bool = False

    @property
    def ok(self) -> bool:
        """True for SUCCESS and UNCHANGED."""
        return self.status is not DispatchStatus.FAILED

    @property
    def unchanged(self) -> bool:
        return self.status is DispatchStatus.UNCHANGED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "status_code": self.status_code,
            "detail": self.detail,
            "fallback_used": self.fallback_used,
        }


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def build_fallback_text(grid: np.ndarray, template: str, now: Optional[float] = None) -> str:
    """
    Summarize a grid as plain text for the fallback payload.

    Template placeholders: {header} (first row), {first_line} (first non-empty
    body row), {time} (local HH:MM:SS).
    """
    rows = [decode(row).strip() for row in np.asarray(grid).tolist()]
    header = rows[0] if rows else ""
    first_line = next((row for row in rows[1:] if row), "")
    stamp = time.strftime("%H:%M:%S", time.localtime(now))
    return template.format(header=header, first_line=first_line, time=stamp)


class Dispatcher:
    """
    Sends grids to the board endpoint through the shared RateLimiter.

    Uses an injected httpx.AsyncClient; the caller owns its lifecycle.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rate_limiter: RateLimiter,
        endpoint: EndpointConfig,
        fallback: Optional[FallbackConfig] = None,
        api_key: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.rate_limiter = rate_limiter
        self.endpoint = endpoint
        self.fallback = fallback or FallbackConfig()
        self.api_key = api_key if api_key is not None else endpoint.resolve_api_key()
        self._clock = clock

        if not self.api_key:
            logger.warning("No board API key configured; endpoint will reject requests")

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            self.endpoint.key_header: self.api_key or "",
        }

    async def _post(self, body: Any) -> httpx.Response:
        try:
            return await self.client.post(
                self.endpoint.url,
                json=body,
                headers=self._headers(),
                timeout=self.endpoint.timeout,
            )
        except httpx.HTTPError as e:
            raise DispatchTransportError(f"Request to {self.endpoint.url} failed: {e}") from e

    async def dispatch(self, grid: np.ndarray, is_test: bool = False) -> DispatchOutcome:
        """
        Transmit a grid and classify the response.

        Args:
            grid: Sanitized 6x22 grid
            is_test: Test dispatches never use the fallback

        Returns:
            DispatchOutcome: success, unchanged, or failure with a reason

        Raises:
            GridValidationError: If the grid is malformed (no request is sent)
            DispatchTransportError: If no HTTP response was received
        """
        kind = "test" if is_test else "main"

        await self.rate_limiter.acquire()
        validate_grid(grid)

        body = np.asarray(grid).tolist()
        logger.info(f"Posting {kind} message to board...")
        logger.debug(f"Message preview (first row): {body[0]}")

        response = await self._post(body)
        status = response.status_code

        if response.is_success:
            logger.info(f"{kind.capitalize()} message posted to board successfully")
            return DispatchOutcome(
                DispatchStatus.SUCCESS, status_code=status, response=_response_body(response)
            )

        if status == 304:
            logger.info("Message not modified (304) - board already shows this content")
            return DispatchOutcome(
                DispatchStatus.UNCHANGED, status_code=status, detail="Content unchanged"
            )

        if status == 503:
            logger.error("Rate limited (503)! The API calls are too close together.")
            return DispatchOutcome(
                DispatchStatus.FAILED,
                reason=FailureReason.SERVER_THROTTLED,
                status_code=status,
                detail="Server-side rate limit",
                response=_response_body(response),
            )

        if status == 400:
            if is_test:
                logger.error("Test message rejected (400)")
                return DispatchOutcome(
                    DispatchStatus.FAILED,
                    reason=FailureReason.PAYLOAD_REJECTED,
                    status_code=status,
                    detail="Payload rejected",
                    response=_response_body(response),
                )
            logger.error(f"Character array rejected (400): {body}")
            return await self._dispatch_fallback(np.asarray(grid))

        logger.error(f"Error posting {kind} message to board: HTTP {status}")
        return DispatchOutcome(
            DispatchStatus.FAILED,
            reason=FailureReason.HTTP_ERROR,
            status_code=status,
            detail=f"HTTP {status}",
            response=_response_body(response),
        )

    async def _dispatch_fallback(self, grid: np.ndarray) -> DispatchOutcome:
        """Send a one-shot plain-text summary after a rejected grid."""
        text = build_fallback_text(grid, self.fallback.template, self._clock())
        logger.info("Trying with simplified text message as fallback...")

        await self.rate_limiter.acquire()
        try:
            response = await self._post({"text": text})
        except DispatchTransportError as e:
            logger.error(f"Fallback text message failed: {e}")
            return DispatchOutcome(
                DispatchStatus.FAILED,
                reason=FailureReason.FALLBACK_FAILED,
                detail=str(e),
                fallback_used=True,
            )

        status = response.status_code
        if response.is_success or status == 304:
            logger.info("Simple text message posted successfully")
            return DispatchOutcome(
                DispatchStatus.SUCCESS if response.is_success else DispatchStatus.UNCHANGED,
                status_code=status,
                response=_response_body(response),
                fallback_used=True,
            )

        logger.error(f"Even simplified text message failed: HTTP {status}")
        return DispatchOutcome(
            DispatchStatus.FAILED,
            reason=FailureReason.FALLBACK_FAILED,
            status_code=status,
            detail=f"Fallback HTTP {status}",
            response=_response_body(response),
            fallback_used=True,
        )
