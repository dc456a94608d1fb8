# cricket_scoring/outcome.py
from __future__ import annotations

import logging
from typing import Iterable, Optional

from cricket_scoring.models import LedgerEvent, Match, MatchResult, TossDecision
from cricket_scoring.overs_math import BALLS_PER_OVER
from cricket_scoring.progression import InningsState, fold

logger = logging.getLogger(__name__)

MAX_WICKETS = 10


# -----------------------
# Innings completion
# -----------------------
def innings_complete(match: Match, state: InningsState) -> bool:
    """All out, or every legal ball of the innings has been bowled."""
    return state.wickets >= MAX_WICKETS or state.legal_deliveries >= match.overs_limit * BALLS_PER_OVER


def target(first: InningsState) -> int:
    return first.runs + 1


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def resolve_result(match: Match, first: InningsState, second: InningsState) -> Optional[MatchResult]:
    """
    Result of the match given both innings, or None while the chase is alive.

    Rules:
    - chasing side passes the first-innings total -> chasing side wins by (10 - wickets lost)
    - chase exhausted (all out / overs done) short of the total -> defending side wins by the run difference
    - chase exhausted level with the total -> tie
    """
    defending_id = first.batting_team_id
    chasing_id = second.batting_team_id

    if second.runs > first.runs:
        margin = MAX_WICKETS - second.wickets
        name = match.team(chasing_id).name
        return MatchResult(
            result_type="WIN",
            winner_id=chasing_id,
            margin=margin,
            margin_type="wickets",
            text=f"{name} won by {_plural(margin, 'wicket')}",
        )

    if not innings_complete(match, second):
        return None

    if first.runs > second.runs:
        margin = first.runs - second.runs
        name = match.team(defending_id).name
        return MatchResult(
            result_type="WIN",
            winner_id=defending_id,
            margin=margin,
            margin_type="runs",
            text=f"{name} won by {_plural(margin, 'run')}",
        )

    return MatchResult(result_type="TIE", text="Match tied")


# -----------------------
# Match.status state machine
#   not_started -> toss_done -> in_progress (innings 1 | 2) -> completed
# -----------------------
def apply_toss(match: Match, winner_id: str, decision: TossDecision) -> None:
    match.toss_winner_id = winner_id
    match.toss_decision = decision
    match.status = "toss_done"
    logger.info(
        "match %s: %s won the toss and chose to %s",
        match.id, match.team(winner_id).name, decision,
    )


def begin_play(match: Match, state: InningsState) -> bool:
    """toss_done -> in_progress once both batters and a bowler are in place."""
    if match.status != "toss_done":
        return False
    if state.striker_id is None or state.non_striker_id is None or state.bowler_id is None:
        return False
    match.status = "in_progress"
    logger.info("match %s: play started", match.id)
    return True


def settle(match: Match, events: Iterable[LedgerEvent]) -> Optional[str]:
    """
    Runs after every append. Closes innings 1, or completes the match, when
    the folded state demands it.

    Returns the transition that fired ("innings_closed" / "match_completed")
    or None.
    """
    if match.status != "in_progress":
        return None

    events = tuple(events)

    if match.innings == 1:
        first = fold(match, events, 1)
        if innings_complete(match, first):
            match.innings = 2
            logger.info(
                "match %s: innings 1 closed at %d/%d (%s ov), target %d",
                match.id, first.runs, first.wickets, first.overs, target(first),
            )
            return "innings_closed"
        return None

    first = fold(match, events, 1)
    second = fold(match, events, 2)
    result = resolve_result(match, first, second)
    if result is None:
        return None

    match.result = result
    match.status = "completed"
    logger.info("match %s: completed - %s", match.id, result.text)
    return "match_completed"
