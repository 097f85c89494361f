from __future__ import annotations

import math
from collections import Counter
from typing import Collection, Dict, List, Sequence

from .core.constraints import ConstraintChecker, series_violations
from .core.models import MAX_NUMBER, BingoCard, CardSeries
from .uniqueness import duplicate_cards


def compute_frequencies(cards: Sequence[BingoCard]) -> Dict[int, int]:
    counts: Counter[int] = Counter()
    for card in cards:
        counts.update(card.numbers)
    for x in range(1, MAX_NUMBER + 1):
        counts.setdefault(x, 0)
    return dict(sorted(counts.items()))


def chi2_wilson_hilferty_pvalue(stat: float, df: int) -> float:
    if df <= 0:
        return 1.0
    # Wilson-Hilferty: cube root of chi2/df is roughly normal
    t = (stat / df) ** (1.0 / 3.0)
    mu = 1.0 - 2.0 / (9.0 * df)
    sigma = math.sqrt(2.0 / (9.0 * df))
    z = (t - mu) / sigma
    p_right = 1.0 - 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))
    return max(0.0, min(1.0, p_right))


def uniformity_test(freqs: Dict[int, int], alpha: float = 0.05) -> Dict[str, object]:
    """Chi-square test that every number appears equally often across the batch."""
    total = sum(freqs.values())
    if total == 0:
        return {"stat": 0.0, "df": 0, "p_value": 1.0, "alpha": alpha, "uniform": True}
    expected = total / len(freqs)
    stat = sum((observed - expected) ** 2 / expected for observed in freqs.values())
    df = len(freqs) - 1
    p = chi2_wilson_hilferty_pvalue(stat, df)
    return {
        "stat": round(stat, 6),
        "df": df,
        "p_value": round(p, 6),
        "alpha": alpha,
        "uniform": p >= alpha,
        "engine": "wilson_hilferty",
    }


def verify(
    cards: Sequence[BingoCard],
    series: Sequence[CardSeries] = (),
    series_card_ids: Collection[str] = (),
) -> Dict[str, object]:
    """Audit a batch of cards and series; ``ok`` is False on any structural violation.

    Cards belonging to a series (listed in ``series`` or ``series_card_ids``)
    may hold up to three numbers in columns 0 and 8.
    """
    in_series = {c.card_id for s in series for c in s.cards} | set(series_card_ids)
    single_checker = ConstraintChecker(edge_column_limit=1)
    series_checker = ConstraintChecker(edge_column_limit=3)

    card_problems: Dict[str, List[str]] = {}
    for card in cards:
        checker = series_checker if card.card_id in in_series else single_checker
        problems = checker.violations(card.grid)
        if problems:
            card_problems[card.card_id] = problems

    series_problems: Dict[str, List[str]] = {}
    for s in series:
        problems = series_violations([c.grid for c in s.cards])
        if problems:
            series_problems[s.series_id] = problems

    freqs = compute_frequencies(cards)
    return {
        "cards": len(cards),
        "series": len(series),
        "card_violations": card_problems,
        "series_violations": series_problems,
        "duplicate_cards": duplicate_cards(cards),
        "frequencies": freqs,
        "max_minus_min": max(freqs.values()) - min(freqs.values()),
        "uniformity": uniformity_test(freqs),
        "ok": not card_problems and not series_problems,
    }
