"""Card and series builder for European 90-ball bingo."""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import GenerationError
from ..rng import RandomSource, create_rng, derive_seed, new_seed
from ..uniqueness import cards_hash, grid_hash, short_id
from .constraints import ConstraintChecker, series_violations
from .models import (
    CARDS_PER_SERIES,
    COLUMNS,
    MAX_NUMBER,
    MIN_NUMBER,
    NUMBERS_PER_CARD,
    ROWS,
    BingoCard,
    CardSeries,
    column_numbers,
    column_of,
    freeze_grid,
)
from .optimizer import MutableGrid, RowBalancer, sort_columns

logger = logging.getLogger(__name__)

EDGE_COLUMNS = (0, COLUMNS - 1)


@dataclass
class BuildParams:
    """Parameters for card generation."""

    count: int = 1
    series: bool = False
    seed: Optional[int] = None
    rng_engine: str = "py_random"
    max_attempts: int = 2000
    parallelism: int = 1


@dataclass
class BuildMetrics:
    total_time: float = 0.0
    attempts: int = 0
    items: int = 0

    @property
    def attempts_per_item(self) -> float:
        return self.attempts / self.items if self.items else 0.0


@dataclass
class BuildResult:
    cards: List[BingoCard]
    series: List[CardSeries] = field(default_factory=list)
    metrics: BuildMetrics = field(default_factory=BuildMetrics)

    @property
    def cards_hash(self) -> str:
        return cards_hash(self.cards)


class CardBuilder:
    """Builds single cards, six-card series and batches of either."""

    def __init__(self, max_attempts: int = 2000):
        self.max_attempts = max_attempts
        self.card_checker = ConstraintChecker(edge_column_limit=1)
        self.repairer = RowBalancer(fillable_columns=[c for c in range(COLUMNS) if c not in EDGE_COLUMNS])
        self.balancer = RowBalancer()

    # single cards

    def generate_card(self, rng: RandomSource) -> BingoCard:
        card, _attempts = self._generate_card(rng)
        return card

    def _generate_card(self, rng: RandomSource) -> tuple[BingoCard, int]:
        for attempt in range(1, self.max_attempts + 1):
            grid = self._place_columns(rng)
            if not self.repairer.repair(grid, rng):
                logger.debug("Card repair hit an exhausted column on attempt %d; retrying", attempt)
                continue
            sort_columns(grid)
            if self.card_checker.verify_card(grid):
                frozen = freeze_grid(grid)
                return BingoCard(card_id=short_id(grid_hash(frozen)), grid=frozen), attempt
            logger.debug("Card attempt %d failed validation; retrying", attempt)
        raise GenerationError("card", self.max_attempts)

    def _place_columns(self, rng: RandomSource) -> MutableGrid:
        grid: MutableGrid = [[None] * COLUMNS for _ in range(ROWS)]
        for col in range(COLUMNS):
            size = 1 if col in EDGE_COLUMNS else rng.choice([1, 2])
            numbers = rng.sample(column_numbers(col), size)
            rows = rng.sample(range(ROWS), size)
            for row, number in zip(rows, numbers):
                grid[row][col] = number
        return grid

    # series

    def generate_series(self, rng: RandomSource) -> CardSeries:
        series, _attempts = self._generate_series(rng)
        return series

    def _generate_series(self, rng: RandomSource) -> tuple[CardSeries, int]:
        for attempt in range(1, self.max_attempts + 1):
            numbers = list(range(MIN_NUMBER, MAX_NUMBER + 1))
            rng.shuffle(numbers)
            grids: List[MutableGrid] = []
            for idx in range(CARDS_PER_SERIES):
                group = numbers[idx * NUMBERS_PER_CARD : (idx + 1) * NUMBERS_PER_CARD]
                grid = self._seed_group(group)
                if grid is None or not self.balancer.rebalance(grid, rng):
                    break
                sort_columns(grid)
                grids.append(grid)
            else:
                if not series_violations(grids):
                    cards = tuple(
                        BingoCard(card_id=short_id(grid_hash(g)), grid=freeze_grid(g)) for g in grids
                    )
                    return CardSeries(series_id=short_id(cards_hash(cards)), cards=cards), attempt
            logger.debug("Series attempt %d could not be balanced; reshuffling", attempt)
        raise GenerationError("series", self.max_attempts)

    @staticmethod
    def _seed_group(group: List[int]) -> Optional[MutableGrid]:
        buckets: List[List[int]] = [[] for _ in range(COLUMNS)]
        for number in group:
            buckets[column_of(number)].append(number)
        if any(len(b) > ROWS for b in buckets):
            return None
        grid: MutableGrid = [[None] * COLUMNS for _ in range(ROWS)]
        for col, bucket in enumerate(buckets):
            for i, number in enumerate(sorted(bucket)):
                grid[i % ROWS][col] = number
        return grid

    # batches

    def build(self, params: BuildParams) -> BuildResult:
        """Build ``params.count`` cards, as independent cards or truncated series.

        Each item is seeded from ``params.seed`` and its index, so the result
        does not depend on ``parallelism``.
        """
        if params.count < 0:
            raise ValueError("count must be >= 0")
        base_seed = params.seed if params.seed is not None else new_seed()
        start = time.perf_counter()
        items = math.ceil(params.count / CARDS_PER_SERIES) if params.series else params.count
        purpose = "series" if params.series else "card"

        def make(index: int):
            rng = create_rng(params.rng_engine, derive_seed(base_seed, index, purpose))
            if params.series:
                return self._generate_series(rng)
            return self._generate_card(rng)

        if params.parallelism > 1 and items > 1:
            with ThreadPoolExecutor(max_workers=params.parallelism) as pool:
                produced = list(pool.map(make, range(items)))
        else:
            produced = [make(i) for i in range(items)]

        metrics = BuildMetrics(attempts=sum(a for _item, a in produced), items=items)
        if params.series:
            series = [s for s, _a in produced]
            cards = [c for s in series for c in s.cards][: params.count]
        else:
            series = []
            cards = [c for c, _a in produced]
        metrics.total_time = time.perf_counter() - start
        logger.info(
            "Built %d cards (%d %s) in %.3fs, %.1f attempts per %s",
            len(cards),
            items,
            purpose,
            metrics.total_time,
            metrics.attempts_per_item,
            purpose,
        )
        return BuildResult(cards=cards, series=series, metrics=metrics)


def generate_card(seed: Optional[int] = None, rng_engine: str = "py_random") -> BingoCard:
    return CardBuilder().generate_card(create_rng(rng_engine, seed))


def generate_series(seed: Optional[int] = None, rng_engine: str = "py_random") -> CardSeries:
    return CardBuilder().generate_series(create_rng(rng_engine, seed))


def generate_cards(
    count: int, *, series: bool = False, seed: Optional[int] = None, rng_engine: str = "py_random"
) -> List[BingoCard]:
    params = BuildParams(count=count, series=series, seed=seed, rng_engine=rng_engine)
    return CardBuilder().build(params).cards
