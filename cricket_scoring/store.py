# cricket_scoring/store.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict

from cricket_scoring.errors import MatchNotFound, ValidationError
from cricket_scoring.ledger import BallLedger
from cricket_scoring.models import Match


@dataclass
class MatchRecord:
    match: Match
    ledger: BallLedger = field(default_factory=BallLedger)

    @property
    def lock(self):
        # one writer per match: every mutating action holds the ledger lock
        return self.ledger.lock


# In-memory registry (persistence is an external concern)
_records: Dict[str, MatchRecord] = {}
_registry_lock = threading.Lock()


def add(match: Match) -> MatchRecord:
    with _registry_lock:
        if match.id in _records:
            raise ValidationError("match_exists", f"Match {match.id} already exists", {"match_id": match.id})
        record = MatchRecord(match=match)
        _records[match.id] = record
        return record


def get(match_id: str) -> MatchRecord:
    record = _records.get(match_id)
    if record is None:
        raise MatchNotFound(match_id)
    return record


def clear() -> None:
    with _registry_lock:
        _records.clear()
