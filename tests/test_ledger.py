import threading

import pytest

from cricket_scoring.errors import ConcurrencyConflict
from cricket_scoring.ledger import BallLedger
from cricket_scoring.models import BallEvent, DismissalKind, ExtrasKind, SelectionEvent, Wicket


def _ball(seq: int, innings: int = 1, wicket=None) -> BallEvent:
    return BallEvent(
        sequence=seq, innings=innings, over=0, ball_in_over=1,
        runs_off_bat=0, extras=ExtrasKind.NONE,
        striker_id="s", non_striker_id="n", bowler_id="b", wicket=wicket,
    )


def test_sequence_numbers_are_positions():
    ledger = BallLedger()
    assert ledger.next_sequence == 1
    assert ledger.append(SelectionEvent(sequence=1, innings=1, slot="striker", player_id="s")) == 1
    assert ledger.append(_ball(2)) == 2
    assert len(ledger) == 2
    assert [e.sequence for e in ledger] == [1, 2]


def test_compare_and_append_conflict_leaves_ledger_untouched():
    ledger = BallLedger()
    ledger.append(_ball(1))
    with pytest.raises(ConcurrencyConflict):
        ledger.append(_ball(2), expected_sequence=1)
    assert len(ledger) == 1


def test_stale_event_sequence_is_rejected():
    ledger = BallLedger()
    ledger.append(_ball(1))
    with pytest.raises(ConcurrencyConflict):
        ledger.append(_ball(1))


def test_filtered_views():
    ledger = BallLedger()
    ledger.append(SelectionEvent(sequence=1, innings=1, slot="bowler", player_id="b"))
    ledger.append(_ball(2, innings=1, wicket=Wicket(DismissalKind.CAUGHT, "s", fielder_id="f")))
    ledger.append(_ball(3, innings=2))

    assert [e.sequence for e in ledger.deliveries(innings=1)] == [2]
    assert [e.sequence for e in ledger.deliveries(innings=2)] == [3]
    assert [e.sequence for e in ledger.deliveries(player_id="f")] == [2]
    assert ledger.deliveries(player_id="nobody") == ()
    assert [e.sequence for e in ledger.selections()] == [1]
    assert len(ledger.events(innings=1)) == 2


def test_concurrent_writers_keep_total_order():
    ledger = BallLedger()
    errors = []

    def writer():
        for _ in range(50):
            while True:
                with ledger.lock:
                    seq = ledger.next_sequence
                    try:
                        ledger.append(_ball(seq), expected_sequence=seq)
                        break
                    except ConcurrencyConflict as e:  # pragma: no cover
                        errors.append(e)

    threads = [threading.Thread(target=writer) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [e.sequence for e in ledger] == list(range(1, 201))
    assert errors == []
