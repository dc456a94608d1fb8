# cricket_scoring/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class ScoringError(Exception):
    """
    Base class for every rejected scoring action.

    A ScoringError is always raised BEFORE the ledger is touched, so the
    match is left exactly as it was and the scorer can correct and retry.
    """

    kind = "scoring_error"

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class PreconditionError(ScoringError):
    """Missing striker/bowler/toss before a dependent action."""

    kind = "precondition"


class InvariantViolation(ScoringError):
    """Action would break a match invariant (e.g. delivery after the innings closed)."""

    kind = "invariant_violation"


class ValidationError(ScoringError):
    """Malformed input: out-of-range runs, unknown dismissal kind, missing fielder."""

    kind = "validation"


class MatchNotFound(ScoringError):
    kind = "not_found"

    def __init__(self, match_id: str):
        super().__init__("match_not_found", f"Unknown match: {match_id}", {"match_id": match_id})


class ConcurrencyConflict(ScoringError):
    """Compare-and-append failed: another scorer appended first."""

    kind = "conflict"


class RosterProviderError(Exception):
    """Raised when the Roster Provider call fails or is misconfigured."""
    pass
