from __future__ import annotations

import threading

import pytest
from hypothesis import given, strategies as st

from bingo90.core.ledger import CalledNumberLedger
from bingo90.errors import DuplicateDrawError, LedgerError, OutOfRangeError


def test_append_and_queries():
    ledger = CalledNumberLedger()
    assert len(ledger) == 0
    assert ledger.last is None
    assert ledger.append(17) == 1
    assert ledger.append(90) == 2
    assert ledger.contains(17)
    assert 90 in ledger
    assert 5 not in ledger
    assert ledger.position(90) == 2
    assert ledger.position(5) is None
    assert ledger.last == 90
    assert ledger.snapshot() == (17, 90)


def test_duplicate_draw_rejected_and_state_unchanged():
    ledger = CalledNumberLedger()
    ledger.append(33)
    with pytest.raises(DuplicateDrawError) as info:
        ledger.append(33)
    assert info.value.position == 1
    assert ledger.snapshot() == (33,)


@pytest.mark.parametrize("bad", [0, 91, -4, 1000, True, 2.0, "7"])
def test_out_of_range_rejected(bad):
    ledger = CalledNumberLedger()
    with pytest.raises(OutOfRangeError):
        ledger.append(bad)
    assert len(ledger) == 0


def test_ledger_errors_are_value_errors():
    assert issubclass(DuplicateDrawError, LedgerError)
    assert issubclass(OutOfRangeError, ValueError)


def test_snapshot_is_stable_view():
    ledger = CalledNumberLedger()
    ledger.append(1)
    snap = ledger.snapshot()
    ledger.append(2)
    assert snap == (1,)


@given(st.permutations(list(range(1, 91))))
def test_full_round_bounded_by_90(order):
    ledger = CalledNumberLedger()
    for n in order:
        ledger.append(n)
    assert len(ledger) == 90
    assert list(ledger) == list(order)
    with pytest.raises(DuplicateDrawError):
        ledger.append(order[0])


def test_concurrent_appends_never_duplicate():
    ledger = CalledNumberLedger()
    rejected = []

    def worker():
        for n in range(1, 91):
            try:
                ledger.append(n)
            except DuplicateDrawError:
                rejected.append(n)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(ledger.snapshot()) == list(range(1, 91))
    assert len(rejected) == 3 * 90
