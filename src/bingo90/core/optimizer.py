"""Row balancing for 90-ball card generation."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..rng import RandomSource
from .models import COLUMNS, NUMBERS_PER_ROW, ROWS, Cell, column_numbers

MutableGrid = List[List[Cell]]


def row_count(grid: MutableGrid, row: int) -> int:
    return sum(1 for x in grid[row] if x is not None)


def column_values(grid: MutableGrid, col: int) -> List[int]:
    return [grid[r][col] for r in range(ROWS) if grid[r][col] is not None]  # type: ignore[misc]


def sort_columns(grid: MutableGrid) -> None:
    """Sort each column's numbers ascending, keeping the occupied cells in place."""
    for col in range(COLUMNS):
        values = iter(sorted(column_values(grid, col)))
        for r in range(ROWS):
            if grid[r][col] is not None:
                grid[r][col] = next(values)


class RowBalancer:
    """Brings every row of a 3x9 grid to exactly five numbers."""

    def __init__(self, fillable_columns: Optional[Sequence[int]] = None):
        # columns the single-card repair may add numbers to
        self.fillable_columns = list(fillable_columns) if fillable_columns is not None else list(range(COLUMNS))

    def repair(self, grid: MutableGrid, rng: RandomSource) -> bool:
        """Fill short rows with fresh numbers and clear long rows.

        Returns False when a short row has too few empty fillable columns;
        the caller must then discard the grid. A column never runs out of
        numbers: it holds at most three and every range has nine or more.
        """
        for row in range(ROWS):
            filled = row_count(grid, row)
            if filled < NUMBERS_PER_ROW:
                empty = [c for c in self.fillable_columns if grid[row][c] is None]
                rng.shuffle(empty)
                needed = NUMBERS_PER_ROW - filled
                if len(empty) < needed:
                    return False
                for col in empty[:needed]:
                    used = set(column_values(grid, col))
                    grid[row][col] = rng.choice([n for n in column_numbers(col) if n not in used])
            elif filled > NUMBERS_PER_ROW:
                occupied = [c for c in range(COLUMNS) if grid[row][c] is not None]
                rng.shuffle(occupied)
                for col in occupied[: filled - NUMBERS_PER_ROW]:
                    grid[row][col] = None
        return all(row_count(grid, r) == NUMBERS_PER_ROW for r in range(ROWS))

    def rebalance(self, grid: MutableGrid, rng: RandomSource) -> bool:
        """Move numbers between rows, within their column, until rows hold five each.

        No number enters or leaves the grid. Excess numbers of over-full rows
        go to under-full rows that are empty in that column; under-full rows
        that are still short then pull from over-full rows in the same column.
        """
        self._relocate_excess(grid, rng)
        self._pull_missing(grid)
        return all(row_count(grid, r) == NUMBERS_PER_ROW for r in range(ROWS))

    def _relocate_excess(self, grid: MutableGrid, rng: RandomSource) -> None:
        for row in range(ROWS):
            excess = row_count(grid, row) - NUMBERS_PER_ROW
            if excess <= 0:
                continue
            occupied = [c for c in range(COLUMNS) if grid[row][c] is not None]
            rng.shuffle(occupied)
            for col in occupied:
                if excess == 0:
                    break
                for other in range(ROWS):
                    if other != row and grid[other][col] is None and row_count(grid, other) < NUMBERS_PER_ROW:
                        grid[other][col], grid[row][col] = grid[row][col], None
                        excess -= 1
                        break

    def _pull_missing(self, grid: MutableGrid) -> None:
        for row in range(ROWS):
            for col in range(COLUMNS):
                if row_count(grid, row) >= NUMBERS_PER_ROW:
                    break
                if grid[row][col] is not None:
                    continue
                for other in range(ROWS):
                    if other != row and grid[other][col] is not None and row_count(grid, other) > NUMBERS_PER_ROW:
                        grid[row][col], grid[other][col] = grid[other][col], None
                        break
