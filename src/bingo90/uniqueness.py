from __future__ import annotations

import hashlib
import json
from collections import Counter
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

if TYPE_CHECKING:
    from .core.models import BingoCard


def grid_hash(grid: Sequence[Sequence[Optional[int]]]) -> str:
    payload = json.dumps([list(row) for row in grid], ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def cards_hash(cards: Iterable[BingoCard]) -> str:
    hashes = [grid_hash(c.grid) for c in cards]
    payload = json.dumps(hashes, ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def short_id(digest: str, length: int = 12) -> str:
    """Readable card id: the first hex digits of a ``sha256:`` digest."""
    return digest.split(":", 1)[-1][:length]


def duplicate_cards(cards: Sequence[BingoCard]) -> List[str]:
    """Ids of cards whose number set already appeared earlier in ``cards``."""
    seen: Counter = Counter()
    dupes: List[str] = []
    for card in cards:
        key = tuple(sorted(card.numbers))
        if seen[key]:
            dupes.append(card.card_id)
        seen[key] += 1
    return dupes
