"""One bingo round: registered cards, the draw ledger, wins and settlement."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from ..errors import LedgerError, RoundStateError, UnknownCardError
from .detector import CardProgress, WinDetector, check_bingo, check_quine, draw_positions
from .ledger import CalledNumberLedger
from .models import BingoCard, PayoutSet, PrizePool, WinKind, WinRecord
from .prizes import DEFAULT_RULES, PrizeRules, allocate

logger = logging.getLogger(__name__)


class RoundStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    SETTLED = "settled"
    ABORTED = "aborted"


class ClaimError(str, Enum):
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    INVALID_CARD = "INVALID_CARD"
    NOT_A_QUINE = "NOT_A_QUINE"
    NOT_A_BINGO = "NOT_A_BINGO"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"


@dataclass(frozen=True)
class ClaimResult:
    card_id: str
    kind: WinKind
    ok: bool
    error: Optional[ClaimError] = None
    draw_count_at_win: Optional[int] = None
    winning_row_index: Optional[int] = None
    # a valid Bingo completed within the jackpot threshold
    jackpot_eligible: bool = False


class GameRound:
    """Lifecycle of a round: OPEN, then CLOSED, then SETTLED exactly once.

    Draws, sweeps, claims, close and settle all run under one round lock, so
    no draw or win lands after the round is closed and settlement never
    overlaps a sweep.
    """

    def __init__(self, round_id: str, cards: Iterable[BingoCard] = ()):
        self.round_id = round_id
        self.status = RoundStatus.OPEN
        self.ledger = CalledNumberLedger()
        self.detector = WinDetector()
        self.payouts: Optional[PayoutSet] = None
        self._claimed: set = set()
        self._lock = threading.Lock()
        for card in cards:
            self.register(card)

    def register(self, card: BingoCard) -> None:
        with self._lock:
            self._require(RoundStatus.OPEN, "register cards")
            if self.ledger:
                raise RoundStateError(f"Round {self.round_id}: cards can not join after the first draw")
            self.detector.register(card)

    def draw(self, number: int) -> List[WinRecord]:
        """Append a draw and return the wins it completed.

        A rejected draw means the upstream source is broken: the round is
        aborted and the error re-raised.
        """
        with self._lock:
            self._require(RoundStatus.OPEN, "draw")
            try:
                count = self.ledger.append(number)
            except LedgerError:
                self.status = RoundStatus.ABORTED
                logger.error("Round %s aborted: draw %r rejected", self.round_id, number)
                raise
            logger.debug("Round %s draw #%d: %d", self.round_id, count, number)
            return self._sweep()

    def sweep(self, max_workers: int = 1) -> List[WinRecord]:
        with self._lock:
            return self._sweep(max_workers)

    def records(self, kind: Optional[WinKind] = None) -> List[WinRecord]:
        return self.detector.records(kind)

    def progress(self, card_id: str) -> CardProgress:
        return self.detector.progress(card_id, self.ledger.snapshot())

    def validate_claim(self, card_id: str, kind: WinKind, rules: PrizeRules = DEFAULT_RULES) -> ClaimResult:
        """Check a player's Quine/Bingo claim against the draws so far.

        A card can claim each kind once. Invalid claims are reported, not
        raised.
        """
        with self._lock:
            if self.status is not RoundStatus.OPEN:
                return ClaimResult(card_id, kind, ok=False, error=ClaimError.GAME_NOT_ACTIVE)
            try:
                card = self.detector.card(card_id)
            except UnknownCardError:
                return ClaimResult(card_id, kind, ok=False, error=ClaimError.INVALID_CARD)
            if (card_id, kind) in self._claimed:
                return ClaimResult(card_id, kind, ok=False, error=ClaimError.ALREADY_CLAIMED)
            positions = draw_positions(self.ledger.snapshot())
            if kind is WinKind.QUINE:
                quine = check_quine(card, positions)
                if quine is None:
                    return ClaimResult(card_id, kind, ok=False, error=ClaimError.NOT_A_QUINE)
                self._claimed.add((card_id, kind))
                return ClaimResult(card_id, kind, ok=True, draw_count_at_win=quine[1], winning_row_index=quine[0])
            count = check_bingo(card, positions)
            if count is None:
                return ClaimResult(card_id, kind, ok=False, error=ClaimError.NOT_A_BINGO)
            self._claimed.add((card_id, kind))
            return ClaimResult(
                card_id,
                kind,
                ok=True,
                draw_count_at_win=count,
                jackpot_eligible=count <= rules.jackpot_threshold,
            )

    def close(self) -> None:
        with self._lock:
            self._require(RoundStatus.OPEN, "close")
            self._sweep()
            self.status = RoundStatus.CLOSED
        logger.info("Round %s closed after %d draws", self.round_id, len(self.ledger))

    def settle(self, pool: PrizePool, rules: PrizeRules = DEFAULT_RULES) -> PayoutSet:
        """Compute the final payouts. Allowed once, after :meth:`close`."""
        with self._lock:
            self._require(RoundStatus.CLOSED, "settle")
            self.payouts = allocate(
                pool,
                self.detector.records(WinKind.QUINE),
                self.detector.records(WinKind.BINGO),
                rules,
            )
            self.status = RoundStatus.SETTLED
        return self.payouts

    def _sweep(self, max_workers: int = 1) -> List[WinRecord]:
        # caller holds self._lock
        return self.detector.sweep(self.ledger.snapshot(), max_workers=max_workers)

    def _require(self, status: RoundStatus, action: str) -> None:
        if self.status is not status:
            raise RoundStateError(
                f"Round {self.round_id}: can not {action} while {self.status.value} (needs {status.value})"
            )
