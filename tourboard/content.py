"""
Render requests and the content source boundary.

A RenderRequest carries text that is already resolved into strings; the core
never fetches or scrapes. Where the text comes from is hidden behind
ContentSource, so nothing here depends on third-party page structure.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .layout import Alignment, parse_alignment
from .symbols import Color

logger = logging.getLogger(__name__)


class ContentSourceError(Exception):
    """Base exception for content source errors."""

    pass


class ContentUnavailableError(ContentSourceError):
    """Raised when a source has no content for the requested identity."""

    pass


@dataclass(frozen=True)
class ContentIdentity:
    """Stable key for a piece of board content, e.g. ("stage", 12)."""

    view: str
    stage: int

    def __post_init__(self) -> None:
        if not self.view:
            raise ValueError("ContentIdentity view must not be empty")
        if ":" in self.view:
            raise ValueError(f"ContentIdentity view must not contain ':', got '{self.view}'")

    @property
    def key(self) -> str:
        return f"{self.view}:{self.stage}"

    def __str__(self) -> str:
        return self.key


def _parse_color(value: Any) -> Color:
    if isinstance(value, Color):
        return value
    if isinstance(value, int):
        return Color(value)
    try:
        return Color[str(value).upper()]
    except KeyError:
        raise ValueError(f"Invalid color '{value}'") from None


@dataclass(frozen=True)
class RenderLine:
    """One body line: text, alignment, and an optional leading color accent."""

    text: str
    alignment: Alignment = Alignment.LEFT
    accent: Optional[Color] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "alignment": self.alignment.value,
            "accent": self.accent.name.lower() if self.accent is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderLine":
        if not isinstance(data, Mapping):
            raise TypeError(f"Render line must be a mapping, got {type(data).__name__}")
        accent = data.get("accent")
        return cls(
            text=str(data.get("text", "")),
            alignment=parse_alignment(data.get("alignment")),
            accent=_parse_color(accent) if accent is not None else None,
        )


@dataclass(frozen=True)
class RenderRequest:
    """
    Everything needed to render one board update.

    Attributes:
    - identity: Content identity used for caching
    - header: Title text shown between the header color cells
    - header_color: Color of the header flanks
    - lines: Body lines, top to bottom
    - timestamp_label: Prefix for the trailing timestamp line
    """

    identity: ContentIdentity
    header: str
    header_color: Color = Color.YELLOW
    lines: List[RenderLine] = field(default_factory=list)
    timestamp_label: str = "UPDATED"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": self.identity.view,
            "stage": self.identity.stage,
            "header": self.header,
            "header_color": self.header_color.name.lower(),
            "lines": [line.to_dict() for line in self.lines],
            "timestamp_label": self.timestamp_label,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderRequest":
        lines = data.get("lines") or []
        if not isinstance(lines, list):
            raise TypeError(f"Render lines must be a list, got {type(lines).__name__}")
        return cls(
            identity=ContentIdentity(str(data["view"]), int(data["stage"])),
            header=str(data.get("header", "")),
            header_color=_parse_color(data.get("header_color", "yellow")),
            lines=[RenderLine.from_dict(entry) for entry in lines],
            timestamp_label=str(data.get("timestamp_label", "UPDATED")),
        )


class ContentSource(ABC):
    """
    Abstract provider of render requests.

    Implementations gather source content (e.g. race standings) however they
    like and resolve it into display strings.
    """

    @abstractmethod
    async def fetch(self, identity: ContentIdentity) -> RenderRequest:
        """
        Produce the render request for an identity.

        Raises:
            ContentSourceError: If content cannot be produced
        """
        pass


class StaticContentSource(ContentSource):
    """
    In-memory content source for tests and local runs.

    Counts fetches so callers can observe cache hits.
    """

    def __init__(self, requests: Optional[Mapping[ContentIdentity, RenderRequest]] = None):
        self._requests: Dict[ContentIdentity, RenderRequest] = dict(requests or {})
        self.fetch_count = 0

    def add(self, request: RenderRequest) -> None:
        self._requests[request.identity] = request

    async def fetch(self, identity: ContentIdentity) -> RenderRequest:
        self.fetch_count += 1
        request = self._requests.get(identity)
        if request is None:
            raise ContentUnavailableError(f"No content for {identity}")
        logger.debug(f"[STATIC] Served content for {identity}")
        return request
