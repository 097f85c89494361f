"""Ordered record of the numbers drawn in one round."""

from __future__ import annotations

import threading
from typing import Dict, Iterator, List, Optional, Tuple

from ..errors import DuplicateDrawError, OutOfRangeError
from .models import MAX_NUMBER, MIN_NUMBER


class CalledNumberLedger:
    """Append-only, duplicate-free sequence of draws.

    Appends are serialized; readers take a :meth:`snapshot` and work on it.
    """

    def __init__(self) -> None:
        self._draws: List[int] = []
        self._positions: Dict[int, int] = {}
        self._lock = threading.Lock()

    def append(self, number: int) -> int:
        """Record a draw and return the new ledger length."""
        if isinstance(number, bool) or not isinstance(number, int) or not MIN_NUMBER <= number <= MAX_NUMBER:
            raise OutOfRangeError(number)
        with self._lock:
            if number in self._positions:
                raise DuplicateDrawError(number, self._positions[number])
            self._draws.append(number)
            self._positions[number] = len(self._draws)
            return len(self._draws)

    def contains(self, number: int) -> bool:
        return number in self._positions

    __contains__ = contains

    def position(self, number: int) -> Optional[int]:
        """1-based draw index of ``number``, or None if not drawn."""
        return self._positions.get(number)

    def __len__(self) -> int:
        return len(self._draws)

    def __iter__(self) -> Iterator[int]:
        return iter(self.snapshot())

    @property
    def last(self) -> Optional[int]:
        with self._lock:
            return self._draws[-1] if self._draws else None

    def snapshot(self) -> Tuple[int, ...]:
        with self._lock:
            return tuple(self._draws)
