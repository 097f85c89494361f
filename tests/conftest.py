from __future__ import annotations

import pytest

from bingo90.core.models import BingoCard, freeze_grid
from bingo90.rng import RandomSource

_ = None

# row 0 holds exactly 4, 12, 47 and 88
SCENARIO_GRID = [
    [4, 12, _, _, 47, _, _, _, 88],
    [_, 15, 23, 34, _, 51, _, 77, _],
    [_, _, 28, 39, 48, 56, _, 79, _],
]


@pytest.fixture
def scenario_card() -> BingoCard:
    return BingoCard(card_id="scenario", grid=freeze_grid(SCENARIO_GRID))


def make_card(card_id: str, grid) -> BingoCard:
    return BingoCard(card_id=card_id, grid=freeze_grid(grid))


class FirstChoiceSource(RandomSource):
    """Deterministic source: first element, first k, no shuffling."""

    def __init__(self):
        super().__init__(engine="first_choice")

    def choice(self, seq):
        return list(seq)[0]

    def shuffle(self, arr):
        pass

    def sample(self, seq, k):
        return list(seq)[:k]
