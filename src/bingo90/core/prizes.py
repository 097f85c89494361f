"""Prize pool and jackpot allocation.

All amounts are integers in minor currency units. Every split is a floor
division; the remainder of a split, and the whole share of a kind nobody won,
stays with the house. The jackpot either goes out in full to the Bingo
winners (minus its split remainder) or carries over untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

from .models import PayoutSet, PrizePool, WinKind, WinRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrizeRules:
    quine_percent: int = 15
    bingo_percent: int = 50
    jackpot_threshold: int = 40
    jackpot_contribution_percent: int = 10

    def __post_init__(self) -> None:
        for name in ("quine_percent", "bingo_percent", "jackpot_contribution_percent"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be within [0, 100], got {value}")
        if self.quine_percent + self.bingo_percent > 100:
            raise ValueError("quine_percent + bingo_percent must not exceed 100")
        if self.jackpot_threshold < 0:
            raise ValueError("jackpot_threshold must be >= 0")


DEFAULT_RULES = PrizeRules()


def split_sales(sales: int, rules: PrizeRules = DEFAULT_RULES) -> Tuple[int, int]:
    """Return (base pool, jackpot contribution) for a round's card sales."""
    if sales < 0:
        raise ValueError("sales must be non-negative")
    contribution = sales * rules.jackpot_contribution_percent // 100
    return sales - contribution, contribution


def _split(amount: int, winners: int) -> Tuple[int, int]:
    if winners == 0:
        return 0, amount
    return divmod(amount, winners)


def allocate(
    pool: PrizePool,
    quine_records: Sequence[WinRecord],
    bingo_records: Sequence[WinRecord],
    rules: PrizeRules = DEFAULT_RULES,
) -> PayoutSet:
    """Split the pool among the round's Quine and Bingo winners."""
    if any(r.kind is not WinKind.QUINE for r in quine_records):
        raise ValueError("quine_records must only hold Quine records")
    if any(r.kind is not WinKind.BINGO for r in bingo_records):
        raise ValueError("bingo_records must only hold Bingo records")

    quine_ids = sorted({r.card_id for r in quine_records})
    bingo_ids = sorted({r.card_id for r in bingo_records})
    result = PayoutSet()

    quine_total = pool.base_pool * rules.quine_percent // 100
    bingo_total = pool.base_pool * rules.bingo_percent // 100
    # the part of the base pool that is never a prize
    house = pool.base_pool - quine_total - bingo_total

    result.quine_share, rest = _split(quine_total, len(quine_ids))
    house += rest
    result.bingo_share, rest = _split(bingo_total, len(bingo_ids))
    house += rest

    result.jackpot_won = any(r.draw_count_at_win <= rules.jackpot_threshold for r in bingo_records)
    if result.jackpot_won:
        result.jackpot_share, rest = _split(pool.jackpot, len(bingo_ids))
        house += rest
        result.next_jackpot = 0
    else:
        result.next_jackpot = pool.jackpot

    for cid in quine_ids:
        result.payouts[cid] = result.payouts.get(cid, 0) + result.quine_share
    for cid in bingo_ids:
        result.payouts[cid] = result.payouts.get(cid, 0) + result.bingo_share + result.jackpot_share
    result.house_retained = house

    logger.info(
        "Allocated %d to %d quine / %d bingo winners, jackpot %s, house keeps %d",
        result.total_paid,
        len(quine_ids),
        len(bingo_ids),
        "won" if result.jackpot_won else f"carried ({result.next_jackpot})",
        house,
    )
    return result
