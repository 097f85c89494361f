"""Plain data values exchanged by the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

ROWS = 3
COLUMNS = 9
NUMBERS_PER_ROW = 5
NUMBERS_PER_CARD = ROWS * NUMBERS_PER_ROW
CARDS_PER_SERIES = 6
MIN_NUMBER = 1
MAX_NUMBER = 90

Cell = Optional[int]
Grid = Tuple[Tuple[Cell, ...], ...]


def column_range(col: int) -> Tuple[int, int]:
    """Inclusive (low, high) bounds of the numbers allowed in column ``col``.

    Column 0 holds 1-9, columns 1-7 hold 10k..10k+9 and column 8 holds 80-90.
    """
    if not 0 <= col < COLUMNS:
        raise ValueError(f"column index out of range: {col}")
    if col == 0:
        return 1, 9
    if col == COLUMNS - 1:
        return 80, 90
    return 10 * col, 10 * col + 9


def column_numbers(col: int) -> List[int]:
    low, high = column_range(col)
    return list(range(low, high + 1))


def column_of(number: int) -> int:
    if not MIN_NUMBER <= number <= MAX_NUMBER:
        raise ValueError(f"number out of range: {number}")
    return min(number // 10, COLUMNS - 1)


def freeze_grid(rows: Sequence[Sequence[Cell]]) -> Grid:
    return tuple(tuple(row) for row in rows)


@dataclass(frozen=True)
class BingoCard:
    """A 3x9 card. ``None`` marks an empty cell."""

    card_id: str
    grid: Grid

    def row_numbers(self, row: int) -> Tuple[int, ...]:
        return tuple(x for x in self.grid[row] if x is not None)

    def column_values(self, col: int) -> Tuple[int, ...]:
        return tuple(r[col] for r in self.grid if r[col] is not None)  # type: ignore[misc]

    @property
    def numbers(self) -> Tuple[int, ...]:
        return tuple(x for row in self.grid for x in row if x is not None)

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.card_id, "grid": [list(row) for row in self.grid]}

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "BingoCard":
        grid = data["grid"]
        return cls(card_id=str(data["id"]), grid=freeze_grid(grid))  # type: ignore[arg-type]


@dataclass(frozen=True)
class CardSeries:
    """Six cards whose numbers together use 1..90 exactly once."""

    series_id: str
    cards: Tuple[BingoCard, ...]

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.series_id, "cards": [c.to_dict() for c in self.cards]}


class WinKind(str, Enum):
    QUINE = "quine"
    BINGO = "bingo"


@dataclass(frozen=True)
class WinRecord:
    card_id: str
    kind: WinKind
    draw_count_at_win: int
    winning_row_index: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "card_id": self.card_id,
            "kind": self.kind.value,
            "draw_count_at_win": self.draw_count_at_win,
        }
        if self.winning_row_index is not None:
            data["winning_row_index"] = self.winning_row_index
        return data


@dataclass(frozen=True)
class PrizePool:
    """Amounts in minor currency units (e.g. cents)."""

    base_pool: int
    jackpot: int

    def __post_init__(self) -> None:
        if self.base_pool < 0 or self.jackpot < 0:
            raise ValueError("prize amounts must be non-negative")


@dataclass
class PayoutSet:
    payouts: Dict[str, int] = field(default_factory=dict)
    quine_share: int = 0
    bingo_share: int = 0
    jackpot_share: int = 0
    jackpot_won: bool = False
    next_jackpot: int = 0
    house_retained: int = 0

    @property
    def total_paid(self) -> int:
        return sum(self.payouts.values())

    def to_dict(self) -> Dict[str, object]:
        return {
            "payouts": dict(sorted(self.payouts.items())),
            "quine_share": self.quine_share,
            "bingo_share": self.bingo_share,
            "jackpot_share": self.jackpot_share,
            "jackpot_won": self.jackpot_won,
            "next_jackpot": self.next_jackpot,
            "house_retained": self.house_retained,
            "total_paid": self.total_paid,
        }
