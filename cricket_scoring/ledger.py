# cricket_scoring/ledger.py
from __future__ import annotations

import threading
from typing import Iterator, List, Optional, Tuple

from cricket_scoring.errors import ConcurrencyConflict
from cricket_scoring.models import BallEvent, LedgerEvent, SelectionEvent


class BallLedger:
    """
    Append-only, strictly ordered event log for one match.

    Sequence numbers start at 1 and equal the event's 1-based position, so
    `next_sequence` is also the compare-and-append token. Readers get tuple
    snapshots and never see a half-appended event.

    Rule checks (match status, empty slots, wicket count) belong to the
    engine, which runs them under `lock` before calling `append`.
    """

    def __init__(self) -> None:
        self._events: List[LedgerEvent] = []
        self.lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(self.snapshot())

    @property
    def next_sequence(self) -> int:
        return len(self._events) + 1

    def append(self, event: LedgerEvent, expected_sequence: Optional[int] = None) -> int:
        """
        Appends `event` and returns its sequence number.

        The caller builds the event with `next_sequence`; if another writer got
        in first the numbers disagree and nothing is written.
        """
        with self.lock:
            if expected_sequence is not None and expected_sequence != self.next_sequence:
                raise ConcurrencyConflict(
                    "sequence_mismatch",
                    f"Expected to append at {expected_sequence}, ledger is at {self.next_sequence}",
                    {"expected_sequence": expected_sequence, "next_sequence": self.next_sequence},
                )
            if event.sequence != self.next_sequence:
                raise ConcurrencyConflict(
                    "sequence_mismatch",
                    f"Event carries sequence {event.sequence}, ledger is at {self.next_sequence}",
                    {"event_sequence": event.sequence, "next_sequence": self.next_sequence},
                )
            self._events.append(event)
            return event.sequence

    # -----------------------
    # Read views
    # -----------------------
    def snapshot(self) -> Tuple[LedgerEvent, ...]:
        with self.lock:
            return tuple(self._events)

    def events(self, innings: Optional[int] = None) -> Tuple[LedgerEvent, ...]:
        return tuple(e for e in self.snapshot() if innings is None or e.innings == innings)

    def deliveries(self, innings: Optional[int] = None, player_id: Optional[str] = None) -> Tuple[BallEvent, ...]:
        """
        Ball events only, optionally narrowed to an innings and/or to the
        deliveries a player took part in (as striker, non-striker, bowler,
        dismissed batter or fielder).
        """
        out: List[BallEvent] = []
        for e in self.snapshot():
            if not isinstance(e, BallEvent):
                continue
            if innings is not None and e.innings != innings:
                continue
            if player_id is not None and not _involves(e, player_id):
                continue
            out.append(e)
        return tuple(out)

    def selections(self, innings: Optional[int] = None) -> Tuple[SelectionEvent, ...]:
        return tuple(
            e for e in self.snapshot()
            if isinstance(e, SelectionEvent) and (innings is None or e.innings == innings)
        )


def _involves(event: BallEvent, player_id: str) -> bool:
    if player_id in (event.striker_id, event.non_striker_id, event.bowler_id):
        return True
    w = event.wicket
    return w is not None and player_id in (w.player_out_id, w.fielder_id)
