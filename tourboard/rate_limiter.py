"""
Process-wide rate gate for the board endpoint.

The endpoint rejects calls closer than 15 seconds apart; the default interval
of 16 seconds keeps a margin. Exactly one RateLimiter should exist per process
and every dispatch, fallback included, must acquire it.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 16.0


class RateLimiter:
    """
    Minimum-interval gate between outbound calls.

    The clock and sleep functions are injectable so tests can run against a
    fake clock.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval < 0:
            raise ValueError("Rate limit interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> Optional[float]:
        """Clock reading at the most recent acquisition, or None."""
        return self._last_call

    def remaining(self) -> float:
        """Seconds a caller would wait if it acquired now."""
        if self._last_call is None:
            return 0.0
        elapsed = self._clock() - self._last_call
        return max(0.0, self.interval - elapsed)

    async def acquire(self) -> None:
        """
        Wait until at least `interval` seconds have passed since the previous
        acquisition, then mark now as the last call.

        Concurrent callers queue on the lock and are released in acquisition
        order, each one interval after the last.
        """
        async with self._lock:
            wait_time = self.remaining()
            if wait_time > 0:
                logger.info(f"Rate limiting: waiting {math.ceil(wait_time)} seconds...")
                await self._sleep(wait_time)
            self._last_call = self._clock()
