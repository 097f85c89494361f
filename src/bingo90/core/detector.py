"""Quine and Bingo detection against a ledger snapshot."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..errors import UnknownCardError
from .models import ROWS, BingoCard, WinKind, WinRecord

logger = logging.getLogger(__name__)

Positions = Mapping[int, int]


def draw_positions(snapshot: Sequence[int]) -> Dict[int, int]:
    """Map each drawn number to its 1-based draw index."""
    return {number: idx for idx, number in enumerate(snapshot, start=1)}


def completion_count(numbers: Iterable[int], positions: Positions) -> Optional[int]:
    """Ledger length at the draw that completed ``numbers``, or None.

    The count is prefix-dependent: it is the latest draw index among the
    numbers, so it is the same whether checked right after that draw or later.
    An empty set never completes.
    """
    latest = 0
    for number in numbers:
        pos = positions.get(number)
        if pos is None:
            return None
        latest = max(latest, pos)
    return latest or None


def check_quine(card: BingoCard, positions: Positions) -> Optional[Tuple[int, int]]:
    """(row index, draw count) of the first completed row, or None.

    Rows completing on the same draw resolve to the lowest index.
    """
    best: Optional[Tuple[int, int]] = None
    for row in range(ROWS):
        count = completion_count(card.row_numbers(row), positions)
        if count is not None and (best is None or count < best[1]):
            best = (row, count)
    return best


def check_bingo(card: BingoCard, positions: Positions) -> Optional[int]:
    return completion_count(card.numbers, positions)


@dataclass(frozen=True)
class CardProgress:
    card_id: str
    marked: int
    row_marked: Tuple[int, ...]
    missing: Tuple[int, ...]

    @property
    def to_go(self) -> int:
        return len(self.missing)


def card_progress(card: BingoCard, positions: Positions) -> CardProgress:
    row_marked = tuple(sum(1 for n in card.row_numbers(r) if n in positions) for r in range(ROWS))
    missing = tuple(n for n in card.numbers if n not in positions)
    return CardProgress(card_id=card.card_id, marked=sum(row_marked), row_marked=row_marked, missing=missing)


class WinDetector:
    """Tracks the cards of a round and the wins credited to them.

    A card gets at most one record per kind; once recorded it is never
    re-evaluated for that kind.
    """

    def __init__(self) -> None:
        self._cards: Dict[str, BingoCard] = {}
        self._records: Dict[Tuple[str, WinKind], WinRecord] = {}
        self._lock = threading.Lock()

    def register(self, card: BingoCard) -> None:
        with self._lock:
            if card.card_id in self._cards:
                raise ValueError(f"Card {card.card_id!r} is already registered")
            self._cards[card.card_id] = card

    def card(self, card_id: str) -> BingoCard:
        try:
            return self._cards[card_id]
        except KeyError:
            raise UnknownCardError(card_id) from None

    @property
    def card_ids(self) -> List[str]:
        with self._lock:
            return list(self._cards)

    def record(self, card_id: str, kind: WinKind) -> Optional[WinRecord]:
        return self._records.get((card_id, kind))

    def records(self, kind: Optional[WinKind] = None) -> List[WinRecord]:
        with self._lock:
            found = [r for (_cid, k), r in self._records.items() if kind is None or k is kind]
        return sorted(found, key=lambda r: (r.draw_count_at_win, r.card_id))

    def evaluate(self, card_id: str, snapshot: Sequence[int]) -> List[WinRecord]:
        """Evaluate one registered card; returns the records it newly earned."""
        card = self.card(card_id)
        return self._commit(card, draw_positions(snapshot))

    def sweep(self, snapshot: Sequence[int], max_workers: int = 1) -> List[WinRecord]:
        """Evaluate every outstanding card and return the new records."""
        positions = draw_positions(snapshot)
        with self._lock:
            cards = [c for c in self._cards.values() if self._outstanding(c.card_id)]
        if max_workers > 1 and len(cards) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                batches = list(pool.map(lambda c: self._commit(c, positions), cards))
        else:
            batches = [self._commit(c, positions) for c in cards]
        new = [r for batch in batches for r in batch]
        if new:
            logger.info(
                "Sweep at draw %d: %d quine, %d bingo",
                len(snapshot),
                sum(1 for r in new if r.kind is WinKind.QUINE),
                sum(1 for r in new if r.kind is WinKind.BINGO),
            )
        return new

    def progress(self, card_id: str, snapshot: Sequence[int]) -> CardProgress:
        return card_progress(self.card(card_id), draw_positions(snapshot))

    def _outstanding(self, card_id: str) -> bool:
        # caller holds self._lock
        return (card_id, WinKind.BINGO) not in self._records or (card_id, WinKind.QUINE) not in self._records

    def _commit(self, card: BingoCard, positions: Positions) -> List[WinRecord]:
        quine = check_quine(card, positions)
        bingo = check_bingo(card, positions)
        new: List[WinRecord] = []
        with self._lock:
            if quine is not None and (card.card_id, WinKind.QUINE) not in self._records:
                row, count = quine
                rec = WinRecord(card.card_id, WinKind.QUINE, count, winning_row_index=row)
                self._records[(card.card_id, WinKind.QUINE)] = rec
                new.append(rec)
            if bingo is not None and (card.card_id, WinKind.BINGO) not in self._records:
                rec = WinRecord(card.card_id, WinKind.BINGO, bingo)
                self._records[(card.card_id, WinKind.BINGO)] = rec
                new.append(rec)
        return new
