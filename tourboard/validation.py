"""
Cross-cutting validation logic for the board renderer.

Strict checks that raise, as opposed to grid.GridValidator which repairs.
Type-local invariants stay in their dataclass __post_init__ methods.

Rules validated here:
- Grid shape and code range right before transmission
- Board configuration consistency
"""

from typing import TYPE_CHECKING, Any

import numpy as np

from .symbols import is_valid_code

if TYPE_CHECKING:
    from .config import BoardConfig


GRID_ROWS = 6
GRID_COLS = 22


class ValidationError(ValueError):
    """Base exception for validation errors."""
    pass


class GridValidationError(ValidationError):
    """Raised when a grid is not exactly 6x22 codes in [0, 71]."""
    pass


class ConfigValidationError(ValidationError):
    """Raised when board configuration is invalid."""
    pass


def validate_grid(grid: Any) -> None:
    """
    Validate that a grid is ready for the wire.

    Accepts a numpy array or nested sequences.

    Raises:
        GridValidationError: On the first shape or code violation
    """
    if grid is None:
        raise GridValidationError("Grid is missing")

    if isinstance(grid, np.ndarray):
        if grid.shape != (GRID_ROWS, GRID_COLS):
            raise GridValidationError(
                f"Grid shape {grid.shape} != expected {(GRID_ROWS, GRID_COLS)}"
            )
        if not np.issubdtype(grid.dtype, np.integer):
            raise GridValidationError(f"Grid dtype {grid.dtype} is not integer")
        grid = grid.tolist()

    if not isinstance(grid, (list, tuple)):
        raise GridValidationError(f"Grid must be a sequence, got {type(grid).__name__}")

    if len(grid) != GRID_ROWS:
        raise GridValidationError(
            f"Grid must have exactly {GRID_ROWS} rows, found {len(grid)}"
        )

    for i, row in enumerate(grid):
        if not isinstance(row, (list, tuple)):
            raise GridValidationError(f"Row {i} must be a sequence")
        if len(row) != GRID_COLS:
            raise GridValidationError(
                f"Row {i} must have exactly {GRID_COLS} codes, found {len(row)}"
            )
        for j, code in enumerate(row):
            if not is_valid_code(code):
                raise GridValidationError(
                    f"Invalid character code at position [{i}][{j}]: {code!r}"
                )


def validate_board_config(config: "BoardConfig") -> None:
    """
    Validate rules that span several configuration sections.

    Raises:
        ConfigValidationError: If any rule fails
    """
    if not config.endpoint.url.startswith(("http://", "https://")):
        raise ConfigValidationError(
            f"Endpoint url must be http(s), got '{config.endpoint.url}'"
        )

    if not config.endpoint.key_header:
        raise ConfigValidationError("Endpoint key_header must not be empty")

    try:
        config.fallback.template.format(header="", first_line="", time="")
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigValidationError(
            f"Fallback template has unknown placeholder: {e}"
        ) from e
