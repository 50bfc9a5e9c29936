"""
Pure Line Layout Logic

This module contains the LineFormatter and HeaderComposer classes, which turn
text into fixed-width rows of symbol codes. They are pure classes with no I/O
and no shared state; any number of render requests may use them concurrently.

Row policy: overflow is always truncated at the tail, regardless of alignment.
"""

from enum import Enum
from typing import List, Optional

from .symbols import BLANK, DEFAULT_TABLE, Color, SymbolTable


ROW_WIDTH = 22
HEADER_COLOR_SLOTS = 2  # color cells at each end of a header row
ACCENT_COLOR_SLOTS = 2


class Alignment(Enum):
    """Padding policy for text shorter than the row."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    def __str__(self) -> str:
        return self.value


def parse_alignment(value: "Alignment | str | None") -> Alignment:
    if isinstance(value, Alignment):
        return value
    if value is None:
        value = "left"
    if not isinstance(value, str):
        raise ValueError(f"Invalid alignment {value!r}")
    value = value.lower()
    try:
        return Alignment(value)
    except ValueError:
        raise ValueError(f"Invalid alignment '{value}'") from None


def _fit(codes: List[int], alignment: Alignment, width: int) -> List[int]:
    if len(codes) > width:
        return codes[:width]

    padding = width - len(codes)
    if alignment is Alignment.RIGHT:
        return [BLANK] * padding + codes
    if alignment is Alignment.CENTER:
        left = padding // 2
        return [BLANK] * left + codes + [BLANK] * (padding - left)
    return codes + [BLANK] * padding


class LineFormatter:
    """
    Formats a text string into a row of exactly `width` symbol codes.
    """

    def __init__(self, table: Optional[SymbolTable] = None):
        self.table = table or DEFAULT_TABLE

    def format(
        self,
        text: str,
        alignment: "Alignment | str" = Alignment.LEFT,
        width: int = ROW_WIDTH,
    ) -> List[int]:
        """
        Encode and align text into a fixed-width row.

        Args:
            text: Text to encode
            alignment: LEFT pads at the end, RIGHT at the start, CENTER splits
                the padding with the odd blank going to the right
            width: Row width in cells

        Returns:
            List[int]: Exactly `width` symbol codes
        """
        return _fit(self.table.encode(text), parse_alignment(alignment), width)

    def format_accent(
        self, text: str, color: Color, width: int = ROW_WIDTH
    ) -> List[int]:
        """Two `color` cells followed by left-aligned text."""
        interior = width - ACCENT_COLOR_SLOTS
        return [int(color)] * ACCENT_COLOR_SLOTS + _fit(
            self.table.encode(text), Alignment.LEFT, interior
        )


class HeaderComposer:
    """
    Builds a title row flanked by two color cells on each side.

    Layout: [color, color, pad..., text..., pad..., color, color]
    """

    def __init__(self, table: Optional[SymbolTable] = None):
        self.table = table or DEFAULT_TABLE

    def compose_header(
        self, text: str, color: Color = Color.YELLOW, width: int = ROW_WIDTH
    ) -> List[int]:
        interior = width - 2 * HEADER_COLOR_SLOTS
        flank = [int(color)] * HEADER_COLOR_SLOTS
        return flank + _fit(self.table.encode(text), Alignment.CENTER, interior) + flank
