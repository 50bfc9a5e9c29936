"""
Board symbol table.

Maps characters to the integer symbol codes understood by the board.
Code layout: 0 blank, 1-26 letters, 27-36 digits (1-9 then 0), 37-60 a
punctuation subset, 62 degree mark, 63-70 color chips, 71 filled.
"""

from enum import IntEnum
from typing import Dict, Iterable, List

import numpy as np


BLANK = 0
MIN_CODE = 0
MAX_CODE = 71


class Color(IntEnum):
    """Color chip codes."""

    RED = 63
    ORANGE = 64
    YELLOW = 65
    GREEN = 66
    BLUE = 67
    VIOLET = 68
    WHITE = 69
    BLACK = 70
    FILLED = 71

    def __str__(self) -> str:
        return self.name.lower()


CHARACTER_CODES: Dict[str, int] = {
    **{chr(ord("A") + i): i + 1 for i in range(26)},
    "1": 27, "2": 28, "3": 29, "4": 30, "5": 31,
    "6": 32, "7": 33, "8": 34, "9": 35, "0": 36,
    "!": 37, "@": 38, "#": 39, "$": 40, "(": 41, ")": 42,
    "-": 44, "+": 46, "&": 47, "=": 48, ";": 49, ":": 50,
    "'": 52, '"': 53, "%": 54, ",": 55, ".": 56, "/": 59,
    "?": 60, "°": 62,
}


def is_valid_code(value: object) -> bool:
    """Check that a value is an integer symbol code in [0, 71].

    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, np.integer):
        value = int(value)
    return isinstance(value, int) and MIN_CODE <= value <= MAX_CODE


class SymbolTable:
    """
    Character to symbol-code lookup.

    Unsupported characters (space included) degrade to blank; encoding never
    raises, the board has no fallback glyph.
    """

    def __init__(self, codes: Dict[str, int] = CHARACTER_CODES):
        self._codes = dict(codes)
        self._glyphs = {code: char for char, code in self._codes.items()}

    def encode_char(self, char: str) -> int:
        return self._codes.get(char.upper(), BLANK)

    def encode(self, text: str) -> List[int]:
        """
        Encode text into symbol codes, one code per character.

        Args:
            text: Text to encode (case-insensitive)

        Returns:
            List[int]: Symbol codes, same length as text
        """
        return [self.encode_char(char) for char in text]

    def decode(self, codes: Iterable[int]) -> str:
        """Render codes back to text; colors and unknown codes become spaces."""
        return "".join(self._glyphs.get(code, " ") for code in codes)


DEFAULT_TABLE = SymbolTable()


def encode(text: str) -> List[int]:
    """Encode text with the default symbol table."""
    return DEFAULT_TABLE.encode(text)


def decode(codes: Iterable[int]) -> str:
    """Decode codes with the default symbol table."""
    return DEFAULT_TABLE.decode(codes)
