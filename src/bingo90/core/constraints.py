"""Structural checks for 90-ball cards and series."""

from __future__ import annotations

from typing import List, Sequence

from .models import (
    CARDS_PER_SERIES,
    COLUMNS,
    MAX_NUMBER,
    MIN_NUMBER,
    NUMBERS_PER_CARD,
    NUMBERS_PER_ROW,
    ROWS,
    Cell,
    column_range,
)


class ConstraintChecker:
    """Checks the grid invariants of a card.

    ``edge_column_limit`` caps columns 0 and 8. Cards built one at a time keep
    a single number there; cards of a series can not (those columns hold 9
    and 11 numbers spread over six cards), so series are checked with the
    general limit of 3.
    """

    def __init__(self, edge_column_limit: int = 1):
        self.edge_column_limit = edge_column_limit

    def violations(self, grid: Sequence[Sequence[Cell]]) -> List[str]:
        problems: List[str] = []
        if len(grid) != ROWS or any(len(row) != COLUMNS for row in grid):
            return [f"grid must be {ROWS}x{COLUMNS}"]

        total = 0
        for r, row in enumerate(grid):
            filled = sum(1 for x in row if x is not None)
            total += filled
            if filled != NUMBERS_PER_ROW:
                problems.append(f"row {r} holds {filled} numbers, expected {NUMBERS_PER_ROW}")
        if total != NUMBERS_PER_CARD:
            problems.append(f"card holds {total} numbers, expected {NUMBERS_PER_CARD}")

        for c in range(COLUMNS):
            low, high = column_range(c)
            values = [row[c] for row in grid if row[c] is not None]
            for v in values:
                if not isinstance(v, int) or not low <= v <= high:
                    problems.append(f"column {c} holds {v!r}, outside [{low}, {high}]")
            if values != sorted(values) or len(set(values)) != len(values):
                problems.append(f"column {c} is not strictly ascending: {values}")
            limit = self.edge_column_limit if c in (0, COLUMNS - 1) else ROWS
            if len(values) > limit:
                problems.append(f"column {c} holds {len(values)} numbers, limit {limit}")
        return problems

    def verify_card(self, grid: Sequence[Sequence[Cell]]) -> bool:
        return not self.violations(grid)


def series_violations(grids: Sequence[Sequence[Sequence[Cell]]]) -> List[str]:
    """Check a six-card series: each card valid and 1..90 used exactly once."""
    problems: List[str] = []
    if len(grids) != CARDS_PER_SERIES:
        problems.append(f"series holds {len(grids)} cards, expected {CARDS_PER_SERIES}")
    checker = ConstraintChecker(edge_column_limit=ROWS)
    seen: List[int] = []
    for idx, grid in enumerate(grids):
        problems.extend(f"card {idx}: {p}" for p in checker.violations(grid))
        seen.extend(x for row in grid for x in row if x is not None)
    if sorted(seen) != list(range(MIN_NUMBER, MAX_NUMBER + 1)):
        problems.append("series numbers do not partition 1..90")
    return problems
