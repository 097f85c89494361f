from __future__ import annotations

import csv
import json
import platform
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from .core.models import BingoCard, CardSeries
from .uniqueness import cards_hash, grid_hash


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object, *, mkdirs: bool, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file without --force: {path}")
    ensure_parent(path, mkdirs=mkdirs)
    text = json.dumps(data, ensure_ascii=True, sort_keys=True, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def build_run_meta(
    *,
    app_version: str,
    params_hash: str,
    seed: Optional[int],
    rng_engine: str,
    parallelism: int,
) -> Dict[str, object]:
    return {
        "app_version": app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "python_version": sys.version.split()[0],
        "platform": platform.system().lower(),
        "params_hash": params_hash,
        "seed": seed,
        "rng_engine": rng_engine,
        "hash_algorithm": "sha256",
        "parallelism": parallelism,
    }


def cards_payload(
    cards: Sequence[BingoCard], series: Sequence[CardSeries], run_meta: Dict[str, object]
) -> Dict[str, object]:
    membership = {c.card_id: s.series_id for s in series for c in s.cards}
    entries: List[Dict[str, object]] = []
    for card in cards:
        entry = card.to_dict()
        entry["grid_hash"] = grid_hash(card.grid)
        if card.card_id in membership:
            entry["series_id"] = membership[card.card_id]
        entries.append(entry)
    return {
        "run_meta": run_meta,
        "cards": entries,
        "series": [{"id": s.series_id, "card_ids": [c.card_id for c in s.cards]} for s in series],
        "cards_hash": cards_hash(cards),
    }


def emit_cards_json(
    path: Path,
    *,
    cards: Sequence[BingoCard],
    series: Sequence[CardSeries] = (),
    run_meta: Dict[str, object],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    write_json(path, cards_payload(cards, series, run_meta), mkdirs=mkdirs, overwrite=overwrite)


@dataclass
class CardsFile:
    cards: List[BingoCard]
    series: List[CardSeries]
    series_card_ids: Set[str]
    run_meta: Dict[str, object]


def load_cards_json(path: Path) -> CardsFile:
    """Read a cards file written by :func:`emit_cards_json`.

    Only complete series are rebuilt as series; ``series_card_ids`` also
    covers the cards of a truncated series.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    entries = data.get("cards", [])
    cards = [BingoCard.from_dict(e) for e in entries]
    by_id = {c.card_id: c for c in cards}
    series: List[CardSeries] = []
    for entry in data.get("series", []):
        ids = entry.get("card_ids", [])
        if ids and all(cid in by_id for cid in ids):
            series.append(CardSeries(series_id=str(entry["id"]), cards=tuple(by_id[cid] for cid in ids)))
    member_ids = {str(e["id"]) for e in entries if e.get("series_id")}
    return CardsFile(cards=cards, series=series, series_card_ids=member_ids, run_meta=data.get("run_meta", {}))


def emit_report_json(path: Path, *, report: Dict[str, object], mkdirs: bool, overwrite: bool) -> None:
    write_json(path, report, mkdirs=mkdirs, overwrite=overwrite)


def emit_summary_csv(path: Path, *, freqs: Dict[int, int], mkdirs: bool, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file without --force: {path}")
    ensure_parent(path, mkdirs=mkdirs)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["number", "total"])
        for num in sorted(freqs):
            writer.writerow([num, freqs[num]])
