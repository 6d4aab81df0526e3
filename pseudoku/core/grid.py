"""
SUDOKU GRID INTEGRITY CHECKS
============================

Pure, stateless checks over 9x9 grids (0 = empty cell). Nothing here keeps
state between calls or mutates its input, so every function is safe to call
from any context.

SCAN ORDER (is_consistent)
--------------------------
The first violation is reported in a fixed order so interactive feedback is
reproducible:

1. Cell values, row-major: every non-empty cell must be in [1, 9]
2. Rows 0..8: each holds 1..9 exactly once
3. Columns 0..8: likewise
4. Boxes 0..8: likewise; box b starts at (b // 3 * 3, b % 3 * 3)
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import ValidationError

Grid = List[List[int]]
Cell = Tuple[int, int]

GRID_SIZE = 9
BOX_SIZE = 3
TOTAL_CELLS = GRID_SIZE * GRID_SIZE

DIGITS = np.arange(1, GRID_SIZE + 1)

# Violation kinds, in scan order
VALUE = "value"
ROW = "row"
COLUMN = "column"
BOX = "box"
EMPTY = "empty"
MISMATCH = "mismatch"


CHALLENGE_PUZZLES = {
    "default": [
        [5, 3, 0, 0, 7, 0, 0, 0, 0],
        [6, 0, 0, 1, 9, 5, 0, 0, 0],
        [0, 9, 8, 0, 0, 0, 0, 6, 0],
        [8, 0, 0, 0, 6, 0, 0, 0, 3],
        [4, 0, 0, 8, 0, 3, 0, 0, 1],
        [7, 0, 0, 0, 2, 0, 0, 0, 6],
        [0, 6, 0, 0, 0, 0, 2, 8, 0],
        [0, 0, 0, 4, 1, 9, 0, 0, 5],
        [0, 0, 0, 0, 8, 0, 0, 7, 9],
    ],
    "easy": [
        [5, 3, 4, 0, 7, 8, 9, 1, 2],
        [6, 7, 2, 1, 9, 5, 3, 4, 8],
        [1, 9, 8, 3, 4, 2, 5, 6, 7],
        [8, 5, 9, 7, 6, 1, 4, 2, 3],
        [4, 2, 6, 8, 5, 3, 7, 9, 1],
        [7, 1, 3, 9, 2, 4, 8, 5, 6],
        [9, 6, 1, 5, 3, 7, 2, 8, 4],
        [2, 8, 7, 4, 1, 9, 6, 3, 5],
        [3, 4, 5, 2, 8, 6, 1, 0, 0],
    ],
    "medium": [
        [0, 0, 0, 2, 6, 0, 7, 0, 1],
        [6, 8, 0, 0, 7, 0, 0, 9, 0],
        [1, 9, 0, 0, 0, 4, 5, 0, 0],
        [8, 2, 0, 1, 0, 0, 0, 4, 0],
        [0, 0, 4, 6, 0, 2, 9, 0, 0],
        [0, 5, 0, 0, 0, 3, 0, 2, 8],
        [0, 0, 9, 3, 0, 0, 0, 7, 4],
        [0, 4, 0, 0, 5, 0, 0, 3, 6],
        [7, 0, 3, 0, 1, 8, 0, 0, 0],
    ],
    "hard": [
        [0, 0, 0, 0, 0, 0, 0, 0, 0],
        [0, 0, 0, 0, 0, 3, 0, 8, 5],
        [0, 0, 1, 0, 2, 0, 0, 0, 0],
        [0, 0, 0, 5, 0, 7, 0, 0, 0],
        [0, 0, 4, 0, 0, 0, 1, 0, 0],
        [0, 9, 0, 0, 0, 0, 0, 0, 0],
        [5, 0, 0, 0, 0, 0, 0, 7, 3],
        [0, 0, 2, 0, 1, 0, 0, 0, 0],
        [0, 0, 0, 0, 4, 0, 0, 0, 9],
    ],
}

DEFAULT_CHALLENGE = CHALLENGE_PUZZLES["default"]


@dataclass(frozen=True)
class Violation:
    """First rule a grid breaks, with enough context to highlight it."""
    kind: str
    index: int
    message: str
    cell: Optional[Cell] = None

    @property
    def box(self) -> Optional[int]:
        """Box number holding the offending cell (value/empty violations only)"""
        if self.cell is None:
            return None
        return box_index(*self.cell)


@dataclass(frozen=True)
class Verdict:
    valid: bool
    violation: Optional[Violation] = None

    def __bool__(self) -> bool:
        return self.valid

    @property
    def message(self) -> Optional[str]:
        return self.violation.message if self.violation else None


@dataclass(frozen=True)
class Conflict:
    """A unit in which a candidate value already appears"""
    kind: str
    position: int


VALID = Verdict(True)


def as_array(grid: Sequence[Sequence[int]]) -> np.ndarray:
    """Convert a grid to a 9x9 integer array, rejecting malformed shapes"""
    try:
        cells = np.array(grid, dtype=object)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Grid is not a 9x9 matrix: {e}") from e
    if cells.shape != (GRID_SIZE, GRID_SIZE):
        raise ValidationError(f"Grid must be 9x9, got shape {cells.shape}")
    if not all(isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in cells.flat):
        raise ValidationError("Grid cells must be integers")
    # Ints of any width: clamp so out-of-range values stay out of range in int64
    return np.array([[max(-1, min(int(v), GRID_SIZE + 1)) for v in row] for row in cells],
                    dtype=np.int64)


def box_index(row: int, col: int) -> int:
    return (row // BOX_SIZE) * BOX_SIZE + col // BOX_SIZE


def box_origin(box: int) -> Cell:
    return (box // BOX_SIZE) * BOX_SIZE, (box % BOX_SIZE) * BOX_SIZE


def has_all_digits(unit: Sequence[int]) -> bool:
    """True iff the unit holds each digit 1..9 exactly once"""
    values = np.sort(np.asarray(unit).ravel())
    return values.shape == DIGITS.shape and bool(np.array_equal(values, DIGITS))


def get_column(grid: Sequence[Sequence[int]], col: int) -> List[int]:
    return as_array(grid)[:, col].tolist()


def get_box(grid: Sequence[Sequence[int]], box: int) -> List[int]:
    """Cells of box `box`, row-major inside the box"""
    r, c = box_origin(box)
    return as_array(grid)[r:r + BOX_SIZE, c:c + BOX_SIZE].ravel().tolist()


def is_complete(grid: Sequence[Sequence[int]]) -> bool:
    return not bool(np.any(as_array(grid) == 0))


def _unit_violation(kind: str, label: str, index: int, unit: np.ndarray) -> Violation:
    filled = unit[unit != 0]
    if len(np.unique(filled)) != len(filled):
        message = f"{label} contains duplicate values"
    else:
        message = f"{label} is incomplete"
    return Violation(kind, index, message)


def is_consistent(grid: Sequence[Sequence[int]]) -> Verdict:
    """Check values, rows, columns and boxes; report the first violation"""
    arr = as_array(grid)

    out_of_range = np.argwhere((arr != 0) & ((arr < 1) | (arr > GRID_SIZE)))
    if len(out_of_range):
        r, c = (int(v) for v in out_of_range[0])
        return Verdict(False, Violation(
            VALUE, r, f"Invalid value at row {r + 1}, column {c + 1}", cell=(r, c)))

    for i in range(GRID_SIZE):
        if not has_all_digits(arr[i]):
            return Verdict(False, _unit_violation(ROW, f"Row {i + 1}", i, arr[i]))

    for j in range(GRID_SIZE):
        if not has_all_digits(arr[:, j]):
            return Verdict(False, _unit_violation(COLUMN, f"Column {j + 1}", j, arr[:, j]))

    for b in range(GRID_SIZE):
        r, c = box_origin(b)
        box = arr[r:r + BOX_SIZE, c:c + BOX_SIZE].ravel()
        if not has_all_digits(box):
            label = f"Box at position ({b // BOX_SIZE + 1}, {b % BOX_SIZE + 1})"
            return Verdict(False, _unit_violation(BOX, label, b, box))

    return VALID


def validate_solution(grid: Sequence[Sequence[int]]) -> Verdict:
    """Submission check: first empty cell, then is_consistent"""
    arr = as_array(grid)
    empty = np.argwhere(arr == 0)
    if len(empty):
        r, c = (int(v) for v in empty[0])
        return Verdict(False, Violation(
            EMPTY, r, f"Cell at row {r + 1}, column {c + 1} is empty", cell=(r, c)))
    return is_consistent(arr)


def get_conflicts(grid: Sequence[Sequence[int]], row: int, col: int, value: int) -> List[Conflict]:
    """
    Units where `value` would clash if placed at (row, col).

    Row and column scans each report at most one conflict. The box scan skips
    cells sharing the row or column (already covered above) and returns on
    its first hit. The grid does not need to be complete.
    """
    arr = as_array(grid)
    if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
        raise ValidationError(f"Cell ({row}, {col}) is outside the grid")
    conflicts: List[Conflict] = []
    if value == 0:
        return conflicts

    for j in range(GRID_SIZE):
        if j != col and arr[row, j] == value:
            conflicts.append(Conflict(ROW, row))
            break

    for i in range(GRID_SIZE):
        if i != row and arr[i, col] == value:
            conflicts.append(Conflict(COLUMN, col))
            break

    box_row, box_col = (row // BOX_SIZE) * BOX_SIZE, (col // BOX_SIZE) * BOX_SIZE
    for i in range(box_row, box_row + BOX_SIZE):
        for j in range(box_col, box_col + BOX_SIZE):
            if i != row and j != col and arr[i, j] == value:
                conflicts.append(Conflict(BOX, box_index(row, col)))
                return conflicts

    return conflicts


def matches_challenge(candidate: Sequence[Sequence[int]], challenge: Sequence[Sequence[int]]) -> bool:
    """Every clue of the challenge must be kept in the candidate"""
    cand = as_array(candidate)
    clues = as_array(challenge)
    return bool(np.all((clues == 0) | (cand == clues)))


def fixed_mask(challenge: Sequence[Sequence[int]]) -> List[List[bool]]:
    return (as_array(challenge) != 0).tolist()


def count_filled_cells(grid: Sequence[Sequence[int]]) -> int:
    return int(np.count_nonzero(as_array(grid)))


def get_empty_cells(grid: Sequence[Sequence[int]]) -> List[Cell]:
    return [(int(r), int(c)) for r, c in np.argwhere(as_array(grid) == 0)]


def clone_grid(grid: Sequence[Sequence[int]]) -> Grid:
    return as_array(grid).tolist()
