"""Exceptions raised by the bingo90 engine."""

from __future__ import annotations


class Bingo90Error(Exception):
    """Base class for engine errors."""


class GenerationError(Bingo90Error, RuntimeError):
    """Randomized card construction gave up after its retry budget."""

    def __init__(self, what: str, attempts: int):
        super().__init__(f"Failed to build a valid {what} within {attempts} attempts")
        self.what = what
        self.attempts = attempts


class LedgerError(Bingo90Error, ValueError):
    """A draw was rejected; the ledger is unchanged."""

    def __init__(self, number: int, message: str):
        super().__init__(message)
        self.number = number


class DuplicateDrawError(LedgerError):
    def __init__(self, number: int, position: int):
        super().__init__(number, f"Number {number} was already drawn (draw #{position})")
        self.position = position


class OutOfRangeError(LedgerError):
    def __init__(self, number: object):
        super().__init__(number, f"Drawn number must be an integer in [1, 90], got {number!r}")  # type: ignore[arg-type]


class UnknownCardError(Bingo90Error, LookupError):
    """A card id that is not registered in the round."""

    def __init__(self, card_id: str):
        super().__init__(f"Card {card_id!r} is not registered in this round")
        self.card_id = card_id


class RoundStateError(Bingo90Error, RuntimeError):
    """Operation not allowed in the round's current lifecycle state."""
