"""
Grid assembly and sanitizing.

GridAssembler stacks pre-formatted rows into a 6-row candidate. GridValidator
turns any candidate into a conforming 6x22 numpy array and is the last gate
before the dispatcher; it never raises.
"""

import logging
from typing import Any, List, Sequence

import numpy as np

from .layout import ROW_WIDTH
from .symbols import BLANK, is_valid_code
from .validation import GRID_COLS, GRID_ROWS

logger = logging.getLogger(__name__)


def blank_row(width: int = ROW_WIDTH) -> List[int]:
    return [BLANK] * width


class GridAssembler:
    """
    Composes rows (header, body, timestamp) into a candidate grid.

    Row widths are not re-checked here; GridValidator does that downstream.
    """

    def assemble(self, rows: Sequence[Sequence[int]]) -> List[List[int]]:
        grid = [list(row) for row in list(rows)[:GRID_ROWS]]
        while len(grid) < GRID_ROWS:
            grid.append(blank_row(GRID_COLS))
        return grid


def _as_rows(candidate: Any) -> List[Any]:
    if isinstance(candidate, np.ndarray):
        if candidate.ndim == 2 or (candidate.ndim == 1 and candidate.dtype == object):
            return list(candidate)
        return []
    if isinstance(candidate, (list, tuple)):
        return list(candidate)
    return []


def _as_cells(row: Any) -> List[Any]:
    if isinstance(row, np.ndarray):
        return row.tolist() if row.ndim == 1 else []
    if isinstance(row, (list, tuple)):
        return list(row)
    return []


class GridValidator:
    """
    Total, idempotent grid sanitizer.

    Every nonconformance (missing rows, ragged rows, out-of-range or
    non-integer codes) is replaced by blanks.
    """

    def sanitize(self, candidate: Any) -> np.ndarray:
        """
        Coerce any candidate into a 6x22 uint8 grid.

        Args:
            candidate: Nested sequences, numpy array, or anything else

        Returns:
            np.ndarray: Grid of shape (6, 22) with every code in [0, 71]
        """
        grid = np.full((GRID_ROWS, GRID_COLS), BLANK, dtype=np.uint8)
        rows = _as_rows(candidate)
        repaired = 0

        if len(rows) != GRID_ROWS:
            repaired += 1

        for i, row in enumerate(rows[:GRID_ROWS]):
            cells = _as_cells(row)
            if len(cells) != GRID_COLS:
                repaired += 1
            for j, code in enumerate(cells[:GRID_COLS]):
                if is_valid_code(code):
                    grid[i, j] = int(code)
                else:
                    repaired += 1

        if repaired:
            logger.warning(f"Sanitized grid: replaced {repaired} nonconforming entries")
        return grid


def sanitize(candidate: Any) -> np.ndarray:
    return GridValidator().sanitize(candidate)
