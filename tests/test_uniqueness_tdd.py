from __future__ import annotations

from bingo90.core.builder import generate_card
from bingo90.core.models import BingoCard
from bingo90.uniqueness import cards_hash, duplicate_cards, grid_hash, short_id


def test_hashes_stable_and_distinct():
    a = [[1, None], [None, 4]]
    b = [[1, 4], [None, None]]
    h_a = grid_hash(a)
    assert h_a.startswith("sha256:")
    assert h_a == grid_hash(tuple(tuple(r) for r in a))
    assert h_a != grid_hash(b)
    assert short_id(h_a) == h_a[len("sha256:") : len("sha256:") + 12]


def test_cards_hash_depends_on_order():
    c1 = generate_card(seed=1)
    c2 = generate_card(seed=2)
    assert cards_hash([c1, c2]).startswith("sha256:")
    assert cards_hash([c1, c2]) != cards_hash([c2, c1])


def test_duplicate_cards_by_number_set():
    c1 = generate_card(seed=1)
    twin = BingoCard(card_id="twin", grid=c1.grid)
    assert duplicate_cards([c1, generate_card(seed=2), twin]) == ["twin"]
