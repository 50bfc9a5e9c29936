"""Tests for grid assembly, sanitizing and strict validation."""

import numpy as np
import pytest

from tourboard.grid import GridAssembler, GridValidator, sanitize
from tourboard.symbols import BLANK
from tourboard.validation import GridValidationError, validate_grid


def assert_conforming(grid: np.ndarray) -> None:
    assert isinstance(grid, np.ndarray)
    assert grid.shape == (6, 22)
    assert grid.min() >= 0 and grid.max() <= 71


def test_assemble_pads_to_six_rows():
    grid = GridAssembler().assemble([[1] * 22, [2] * 22])
    assert len(grid) == 6
    assert grid[0] == [1] * 22
    assert grid[2:] == [[BLANK] * 22] * 4


def test_assemble_drops_tail_rows():
    rows = [[i] * 22 for i in range(8)]
    grid = GridAssembler().assemble(rows)
    assert len(grid) == 6
    assert grid[-1] == [5] * 22


def test_assemble_does_not_fix_row_width():
    grid = GridAssembler().assemble([[1, 2, 3]])
    assert grid[0] == [1, 2, 3]


@pytest.mark.parametrize(
    "candidate",
    [
        None,
        [],
        "not a grid",
        42,
        [[1] * 30] * 9,
        [[-5, 72, 1000, 3.5, "A", None, True]],
        [None, "row", [1, 2], (3, 4)],
        np.zeros((3, 3), dtype=int),
        np.full((6, 22), 99),
        np.arange(10),
    ],
)
def test_sanitize_always_conforms(candidate):
    grid = GridValidator().sanitize(candidate)
    assert_conforming(grid)
    assert np.array_equal(sanitize(grid), grid)


def test_sanitize_keeps_rows_of_ragged_object_array():
    rows = np.empty(2, dtype=object)
    rows[0] = [1, 2, 3]
    rows[1] = [4] * 30
    grid = sanitize(rows)
    assert grid[0, :4].tolist() == [1, 2, 3, 0]
    assert grid[1].tolist() == [4] * 22
    assert not grid[2:].any()


def test_sanitize_replaces_bad_codes_with_blank():
    row = [1, -1, 72, 71, 2.0, "3", None, False, np.int64(5)]
    grid = sanitize([row])
    assert grid[0, :9].tolist() == [1, 0, 0, 71, 0, 0, 0, 0, 5]
    assert grid[0, 9:].tolist() == [0] * 13
    assert grid[1:].sum() == 0


def test_sanitize_truncates_and_pads_rows():
    grid = sanitize([[7] * 30, [8] * 3])
    assert grid[0].tolist() == [7] * 22
    assert grid[1].tolist() == [8] * 3 + [0] * 19


def test_sanitize_keeps_valid_grid_unchanged():
    rows = [[(i * 22 + j) % 72 for j in range(22)] for i in range(6)]
    grid = sanitize(rows)
    assert grid.tolist() == rows


def test_sanitize_is_idempotent_on_messy_input():
    messy = [[99, 3, -2] * 10, None, [1] * 5, "x", [0] * 22, [71] * 22, [1] * 22]
    once = sanitize(messy)
    assert np.array_equal(sanitize(once), once)
    assert np.array_equal(sanitize(once.tolist()), once)


def test_validate_grid_accepts_sanitized():
    validate_grid(sanitize([]))
    validate_grid([[0] * 22 for _ in range(6)])


@pytest.mark.parametrize(
    "grid",
    [
        None,
        "grid",
        [[0] * 22] * 5,
        [[0] * 21] + [[0] * 22] * 5,
        [[0] * 22] * 5 + [[72] + [0] * 21],
        [[0] * 22] * 5 + [[True] + [0] * 21],
        np.zeros((6, 21), dtype=np.uint8),
        np.zeros((6, 22), dtype=float),
    ],
)
def test_validate_grid_rejects_malformed(grid):
    with pytest.raises(GridValidationError):
        validate_grid(grid)
