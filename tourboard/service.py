"""
Board Service - Policy/Orchestration Layer

This module contains the BoardService class, which turns render requests into
grids and drives them through the dispatcher. It decides when the cache may
stand in for a content fetch and what to record after a dispatch.

Both the interactive path (dispatch_request, send_test_pattern) and the
scheduled path (update) share the same formatting components.
"""

import logging
import time
from typing import Callable, List, Optional

import numpy as np

from .cache import DispatchCache
from .content import ContentIdentity, ContentSource, RenderRequest
from .dispatcher import Dispatcher, DispatchOutcome
from .grid import GridAssembler, GridValidator
from .layout import Alignment, HeaderComposer, LineFormatter, ROW_WIDTH
from .symbols import Color

logger = logging.getLogger(__name__)

MAX_BODY_LINES = 4  # header + 4 body lines + timestamp


class BoardService:
    """
    Orchestrates render -> sanitize -> dispatch -> cache.

    Args:
        dispatcher: I/O boundary to the board
        cache: Dispatch cache
        source: Content source for scheduled updates (optional)
        clock: Wall-clock source used for timestamps and freshness
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        cache: DispatchCache,
        source: Optional[ContentSource] = None,
        line_formatter: Optional[LineFormatter] = None,
        header_composer: Optional[HeaderComposer] = None,
        assembler: Optional[GridAssembler] = None,
        validator: Optional[GridValidator] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.dispatcher = dispatcher
        self.cache = cache
        self.source = source

        self.line_formatter = line_formatter or LineFormatter()
        self.header_composer = header_composer or HeaderComposer()
        self.assembler = assembler or GridAssembler()
        self.validator = validator or GridValidator()
        self._clock = clock

    def _timestamp(self, fmt: str = "%H:%M") -> str:
        return time.strftime(fmt, time.localtime(self._clock()))

    def render(self, request: RenderRequest) -> np.ndarray:
        """
        Build a sanitized grid for a render request.

        Layout: header row, up to four body lines, then a right-aligned
        "<label>: HH:MM" line.

        Returns:
            np.ndarray: 6x22 grid ready for dispatch
        """
        rows: List[List[int]] = [
            self.header_composer.compose_header(request.header, request.header_color)
        ]

        body = request.lines[:MAX_BODY_LINES]
        if len(request.lines) > MAX_BODY_LINES:
            logger.warning(
                f"Render request {request.identity} has {len(request.lines)} lines, "
                f"keeping the first {MAX_BODY_LINES}"
            )
        for line in body:
            if line.accent is not None:
                rows.append(self.line_formatter.format_accent(line.text, line.accent))
            else:
                rows.append(self.line_formatter.format(line.text, line.alignment))

        # Pad so the timestamp always lands on the last row.
        while len(rows) < 1 + MAX_BODY_LINES:
            rows.append(self.line_formatter.format("", Alignment.LEFT))

        rows.append(
            self.line_formatter.format(
                f"{request.timestamp_label}: {self._timestamp()}", Alignment.RIGHT
            )
        )

        return self.validator.sanitize(self.assembler.assemble(rows))

    async def dispatch_request(
        self, request: RenderRequest, is_test: bool = False
    ) -> DispatchOutcome:
        """Render and dispatch without consulting or updating the cache."""
        logger.info(f"Creating view for {request.identity}")
        grid = self.render(request)
        return await self.dispatcher.dispatch(grid, is_test=is_test)

    async def update(self, identity: ContentIdentity) -> DispatchOutcome:
        """
        Scheduled update for one content identity.

        A fresh cache record replaces the content fetch; the board is updated
        either way. The cache is written only after an ok outcome.

        Raises:
            RuntimeError: If the cache is stale and no content source is set
            ContentSourceError: If the source cannot produce content
            DispatchTransportError: If the endpoint could not be reached
        """
        request: Optional[RenderRequest] = None
        record = self.cache.lookup(identity)

        if self.cache.is_fresh(record, self._clock()):
            try:
                request = RenderRequest.from_dict(record.payload)
                logger.info(f"Using cached data for {identity}")
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Cached payload for {identity} unusable, refetching: {e}")

        if request is None:
            if self.source is None:
                raise RuntimeError(f"No content source configured to fetch {identity}")
            logger.info(f"Fetching fresh data for {identity}...")
            request = await self.source.fetch(identity)

        outcome = await self.dispatch_request(request)

        if outcome.ok:
            self.cache.record(identity, self._clock(), request.to_dict())
        else:
            logger.error(f"Update for {identity} failed: {outcome.reason} ({outcome.detail})")
        return outcome

    def build_test_grid(self) -> np.ndarray:
        """Connection test layout: blue header, status lines, a full blue row."""
        center = Alignment.CENTER
        rows = [
            self.header_composer.compose_header("CONNECTION TEST", Color.BLUE),
            self.line_formatter.format("VESTABOARD API", center),
            self.line_formatter.format("STATUS: CONNECTED", center),
            self.line_formatter.format(f"TIME: {self._timestamp('%H:%M:%S')}", center),
            [int(Color.BLUE)] * ROW_WIDTH,
            self.line_formatter.format("TEST SUCCESSFUL", center),
        ]
        return self.validator.sanitize(self.assembler.assemble(rows))

    async def send_test_pattern(self) -> DispatchOutcome:
        """Dispatch the connection test grid as a test (no fallback)."""
        logger.info("Sending test message...")
        outcome = await self.dispatcher.dispatch(self.build_test_grid(), is_test=True)
        if outcome.ok:
            logger.info("Board connection test successful")
        else:
            logger.error(f"Board connection test failed: {outcome.reason}")
        return outcome
