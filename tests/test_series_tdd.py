from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from bingo90.core.builder import BuildParams, CardBuilder, generate_cards, generate_series
from bingo90.core.constraints import ConstraintChecker, series_violations
from bingo90.core.models import COLUMNS, column_range
from bingo90.errors import GenerationError
from conftest import FirstChoiceSource


@settings(max_examples=50, deadline=None)
@given(seed=st.integers(min_value=0, max_value=2**63 - 1))
def test_series_partitions_1_to_90(seed):
    series = generate_series(seed=seed)
    assert len(series.cards) == 6
    numbers = [n for card in series.cards for n in card.numbers]
    assert sorted(numbers) == list(range(1, 91))
    checker = ConstraintChecker(edge_column_limit=3)
    for card in series.cards:
        assert checker.violations(card.grid) == []
        for r in range(3):
            assert len(card.row_numbers(r)) == 5
        for c in range(COLUMNS):
            low, high = column_range(c)
            values = card.column_values(c)
            assert all(low <= v <= high for v in values)
            assert list(values) == sorted(values)
    assert series_violations([c.grid for c in series.cards]) == []


def test_seed_group_rejects_overfull_decade():
    group = [10, 11, 12, 13, 1, 20, 30, 40, 50, 60, 70, 80, 81, 21, 31]
    assert CardBuilder._seed_group(group) is None


def test_seed_group_places_cyclically():
    group = [1, 2, 3, 10, 20, 30, 40, 50, 60, 70, 80, 11, 21, 31, 41]
    grid = CardBuilder._seed_group(group)
    assert grid is not None
    assert [grid[r][0] for r in range(3)] == [1, 2, 3]
    assert [grid[r][1] for r in range(3)] == [10, 11, None]


def test_series_retry_budget_exhausted():
    # unshuffled 1..90 puts nine numbers in column 0 of the first card
    builder = CardBuilder(max_attempts=2)
    with pytest.raises(GenerationError) as excinfo:
        builder.generate_series(FirstChoiceSource())
    assert excinfo.value.what == "series"
    assert excinfo.value.attempts == 2


@pytest.mark.parametrize("count", [1, 5, 6, 7, 13])
def test_batch_series_truncates_whole_cards(count):
    cards = generate_cards(count, series=True, seed=99)
    assert len(cards) == count
    assert len({c.card_id for c in cards}) == count
    full = generate_cards(6 * -(-count // 6), series=True, seed=99)
    assert cards == full[:count]


def test_batch_singles_independent_of_parallelism():
    serial = CardBuilder().build(BuildParams(count=8, seed=5))
    threaded = CardBuilder().build(BuildParams(count=8, seed=5, parallelism=4))
    assert serial.cards == threaded.cards
    assert serial.cards_hash == threaded.cards_hash
    assert serial.metrics.items == 8
    assert serial.metrics.attempts_per_item >= 1.0


def test_batch_rejects_negative_count():
    with pytest.raises(ValueError):
        CardBuilder().build(BuildParams(count=-1))
