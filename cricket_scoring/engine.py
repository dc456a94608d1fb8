# cricket_scoring/engine.py
from __future__ import annotations

import functools
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from cricket_scoring import cache, store
from cricket_scoring.charts import over_progression_records
from cricket_scoring.classifier import parse_extras
from cricket_scoring.commentary import feed
from cricket_scoring.config import (
    BYES_CHARGED_TO_BOWLER,
    DEFAULT_OVERS_LIMIT,
    MAX_OVERS_LIMIT,
    NO_BALL_PENALTY_RUNS,
    PLAYERS_PER_SIDE,
    SNAPSHOT_CACHE_TTL_SECONDS,
    WIDE_PENALTY_RUNS,
)
from cricket_scoring.errors import InvariantViolation, PreconditionError, ScoringError, ValidationError
from cricket_scoring.models import (
    BallEvent,
    DismissalKind,
    ExtrasKind,
    LedgerEvent,
    Match,
    ScoringRules,
    SelectionEvent,
    Team,
    Wicket,
)
from cricket_scoring.outcome import MAX_WICKETS, apply_toss, begin_play, innings_complete, settle, target
from cricket_scoring.overs_math import BALLS_PER_OVER, projected_score, required_run_rate, run_rate
from cricket_scoring.progression import InningsState, fold
from cricket_scoring.scorecard import build_scorecard
from cricket_scoring.store import MatchRecord

logger = logging.getLogger(__name__)

MAX_RUNS_PER_BALL = 6

# Dismissals that need a fielder named.
FIELDER_REQUIRED = {DismissalKind.CAUGHT, DismissalKind.RUN_OUT, DismissalKind.STUMPED}

# Which dismissals can happen on each kind of delivery.
ALLOWED_DISMISSALS = {
    ExtrasKind.NONE: set(DismissalKind),
    ExtrasKind.WIDE: {DismissalKind.STUMPED, DismissalKind.RUN_OUT, DismissalKind.HIT_WICKET},
    ExtrasKind.NO_BALL: {DismissalKind.RUN_OUT},
    ExtrasKind.BYE: {DismissalKind.RUN_OUT},
    ExtrasKind.LEG_BYE: {DismissalKind.RUN_OUT},
}


def rules_from_config() -> ScoringRules:
    return ScoringRules(
        wide_penalty_runs=WIDE_PENALTY_RUNS,
        no_ball_penalty_runs=NO_BALL_PENALTY_RUNS,
        byes_charged_to_bowler=BYES_CHARGED_TO_BOWLER,
    )


def _logs_rejections(fn):
    """Rejected actions are logged with their error code, then re-raised untouched."""

    @functools.wraps(fn)
    def wrapper(match_id, *args, **kwargs):
        try:
            return fn(match_id, *args, **kwargs)
        except ScoringError as e:
            logger.warning("match %s: %s rejected [%s] %s", match_id, fn.__name__, e.code, e.message)
            raise

    return wrapper


# -----------------------
# Input checks (no state needed)
# -----------------------
def _check_runs(runs_off_bat: Any) -> int:
    if isinstance(runs_off_bat, bool) or not isinstance(runs_off_bat, int):
        raise ValidationError("runs_not_integer", f"runs_off_bat must be an integer, got {runs_off_bat!r}")
    if runs_off_bat < 0 or runs_off_bat > MAX_RUNS_PER_BALL:
        raise ValidationError(
            "runs_out_of_range",
            f"runs_off_bat must be between 0 and {MAX_RUNS_PER_BALL}",
            {"runs_off_bat": runs_off_bat},
        )
    return runs_off_bat


def _check_extras(extras: Any) -> ExtrasKind:
    try:
        return parse_extras(extras)
    except ValueError:
        raise ValidationError(
            "unknown_extras",
            f"Unknown extras type: {extras}",
            {"allowed": [k.value for k in ExtrasKind if k != ExtrasKind.NONE]},
        )


def _check_dismissal_kind(kind: Any) -> DismissalKind:
    if isinstance(kind, DismissalKind):
        return kind
    try:
        return DismissalKind(str(kind).strip().lower())
    except ValueError:
        raise ValidationError(
            "unknown_dismissal_kind",
            f"Unknown dismissal kind: {kind}",
            {"allowed": [k.value for k in DismissalKind]},
        )


def _check_team(team: Team) -> None:
    if len(team.players) < PLAYERS_PER_SIDE:
        raise ValidationError(
            "roster_too_small",
            f"{team.name} needs at least {PLAYERS_PER_SIDE} players, got {len(team.players)}",
            {"team_id": team.id},
        )
    ids = [p.id for p in team.players]
    if len(set(ids)) != len(ids):
        raise ValidationError("duplicate_player", f"{team.name} lists a player twice", {"team_id": team.id})
    for flag in (team.captain_id, team.vice_captain_id, team.wicketkeeper_id):
        if flag is not None and not team.has_player(flag):
            raise ValidationError(
                "unknown_role_holder",
                f"{flag} is not in the {team.name} roster",
                {"team_id": team.id, "player_id": flag},
            )


# -----------------------
# State checks
# -----------------------
def _current(record: MatchRecord) -> InningsState:
    return fold(record.match, record.ledger.snapshot(), record.match.innings)


def _require_open(match: Match) -> None:
    """Selections are allowed once the toss is in and until the match ends."""
    if match.status == "completed":
        raise InvariantViolation("match_completed", "Match is already completed")
    if match.status == "not_started":
        raise PreconditionError("toss_not_recorded", "Record the toss first")


def _require_ready_to_bowl(match: Match, state: InningsState) -> None:
    if match.status == "completed":
        raise InvariantViolation("match_completed", "Match is already completed; no further deliveries")
    if match.status != "in_progress":
        raise PreconditionError("match_not_in_progress", f"Match is {match.status}, not in progress")
    if innings_complete(match, state):
        raise InvariantViolation("innings_complete", f"Innings {state.innings} is already complete")
    if state.striker_id is None:
        raise PreconditionError("striker_not_selected", "Select a striker first")
    if state.non_striker_id is None:
        raise PreconditionError("non_striker_not_selected", "Select a non-striker first")
    if state.bowler_id is None:
        raise PreconditionError("bowler_not_selected", "Select a bowler first")


def _append(record: MatchRecord, event: LedgerEvent, expected_sequence: Optional[int]) -> Optional[str]:
    seq = record.ledger.append(event, expected_sequence)
    logger.debug("match %s: appended #%d %s", record.match.id, seq, event)
    return settle(record.match, record.ledger.snapshot())


# -----------------------
# Operations
# -----------------------
@_logs_rejections
def start_match(
    match_id: Optional[str],
    overs_limit: Optional[int],
    team1: Team,
    team2: Team,
    rules: Optional[ScoringRules] = None,
) -> Match:
    overs = DEFAULT_OVERS_LIMIT if overs_limit is None else overs_limit
    if isinstance(overs, bool) or not isinstance(overs, int) or overs < 1 or overs > MAX_OVERS_LIMIT:
        raise ValidationError(
            "overs_limit_out_of_range",
            f"overs_limit must be between 1 and {MAX_OVERS_LIMIT}",
            {"overs_limit": overs},
        )

    if team1.id == team2.id:
        raise ValidationError("same_team", "team1 and team2 must be different")

    _check_team(team1)
    _check_team(team2)

    shared = {p.id for p in team1.players} & {p.id for p in team2.players}
    if shared:
        raise ValidationError("player_in_both_teams", "A player cannot play for both sides", {"player_ids": sorted(shared)})

    match = Match(
        id=match_id or uuid.uuid4().hex[:12],
        team1=team1,
        team2=team2,
        overs_limit=overs,
        rules=rules or rules_from_config(),
    )
    store.add(match)
    logger.info("match %s: started %s vs %s, %d overs", match.id, team1.name, team2.name, overs)
    return match


@_logs_rejections
def record_toss(match_id: str, winning_team_id: str, decision: str) -> Match:
    record = store.get(match_id)
    match = record.match

    with record.lock:
        if match.status != "not_started":
            raise InvariantViolation("toss_already_recorded", "Toss has already been recorded")
        if winning_team_id not in (match.team1.id, match.team2.id):
            raise ValidationError("unknown_team", f"Unknown team: {winning_team_id}")
        if decision not in ("bat", "bowl"):
            raise ValidationError("unknown_toss_decision", f"Toss decision must be bat or bowl, got {decision}")

        apply_toss(match, winning_team_id, decision)
        return match


@_logs_rejections
def select_batter(match_id: str, slot: str, player_id: str, expected_sequence: Optional[int] = None) -> Match:
    if slot not in ("striker", "non_striker"):
        raise ValidationError("unknown_slot", f"Batting slot must be striker or non_striker, got {slot}")

    record = store.get(match_id)
    match = record.match

    with record.lock:
        _require_open(match)
        state = _current(record)

        batting = match.team(state.batting_team_id)
        if not batting.has_player(player_id):
            raise ValidationError(
                "player_not_in_batting_side",
                f"{player_id} is not in the {batting.name} roster",
                {"player_id": player_id},
            )
        if player_id in state.dismissed:
            raise ValidationError("batter_already_dismissed", f"{match.player_name(player_id)} is already out")

        other = state.non_striker_id if slot == "striker" else state.striker_id
        if player_id == other:
            raise ValidationError("batter_already_at_crease", f"{match.player_name(player_id)} is already batting")

        occupant = state.striker_id if slot == "striker" else state.non_striker_id
        if occupant is not None and state.deliveries > 0:
            raise InvariantViolation(
                "slot_occupied",
                f"{slot} slot is held by {match.player_name(occupant)}",
                {"slot": slot, "player_id": occupant},
            )

        event = SelectionEvent(
            sequence=record.ledger.next_sequence,
            innings=match.innings,
            slot=slot,
            player_id=player_id,
        )
        _append(record, event, expected_sequence)
        begin_play(match, _current(record))
        return match


@_logs_rejections
def select_bowler(match_id: str, player_id: str, expected_sequence: Optional[int] = None) -> Match:
    record = store.get(match_id)
    match = record.match

    with record.lock:
        _require_open(match)
        state = _current(record)

        bowling = match.team(state.bowling_team_id)
        if not bowling.has_player(player_id):
            raise ValidationError(
                "player_not_in_bowling_side",
                f"{player_id} is not in the {bowling.name} roster",
                {"player_id": player_id},
            )
        if state.bowler_id is not None and state.over_in_progress:
            raise InvariantViolation(
                "over_in_progress",
                f"{match.player_name(state.bowler_id)} is mid-over",
                {"bowler_id": state.bowler_id},
            )
        if player_id == state.last_over_bowler_id:
            raise ValidationError(
                "consecutive_overs",
                f"{match.player_name(player_id)} bowled the previous over",
                {"player_id": player_id},
            )

        event = SelectionEvent(
            sequence=record.ledger.next_sequence,
            innings=match.innings,
            slot="bowler",
            player_id=player_id,
        )
        _append(record, event, expected_sequence)
        begin_play(match, _current(record))
        return match


@_logs_rejections
def record_delivery(
    match_id: str,
    runs_off_bat: int,
    extras: Optional[str] = None,
    expected_sequence: Optional[int] = None,
) -> Match:
    runs = _check_runs(runs_off_bat)
    kind = _check_extras(extras)

    record = store.get(match_id)
    match = record.match

    with record.lock:
        state = _current(record)
        _require_ready_to_bowl(match, state)

        event = BallEvent(
            sequence=record.ledger.next_sequence,
            innings=match.innings,
            over=state.over,
            ball_in_over=state.ball_in_over,
            runs_off_bat=runs,
            extras=kind,
            striker_id=state.striker_id,
            non_striker_id=state.non_striker_id,
            bowler_id=state.bowler_id,
        )
        _append(record, event, expected_sequence)
        return match


@_logs_rejections
def record_dismissal(
    match_id: str,
    dismissal_kind: str,
    dismissed_player_id: str,
    fielder_id: Optional[str] = None,
    runs_off_bat: int = 0,
    extras: Optional[str] = None,
    expected_sequence: Optional[int] = None,
) -> Match:
    """
    Records the delivery on which a batter was dismissed.

    Rules:
    - caught / run_out / stumped need a fielder from the bowling side
    - only run_out can remove the non-striker or carry completed runs
    - a wide allows stumped / run_out / hit_wicket; a no-ball or bye only run_out
    """
    kind = _check_dismissal_kind(dismissal_kind)
    runs = _check_runs(runs_off_bat)
    extras_kind = _check_extras(extras)

    if kind in FIELDER_REQUIRED and not fielder_id:
        raise ValidationError("fielder_required", f"{kind.value} needs a fielder", {"kind": kind.value})
    if runs > 0 and kind != DismissalKind.RUN_OUT:
        raise ValidationError("runs_not_allowed", f"No runs can be completed on a {kind.value} dismissal")
    if kind not in ALLOWED_DISMISSALS[extras_kind]:
        raise ValidationError(
            "dismissal_not_possible",
            f"A batter cannot be {kind.value} off a {extras_kind.value} delivery",
            {"kind": kind.value, "extras": extras_kind.value},
        )

    record = store.get(match_id)
    match = record.match

    with record.lock:
        state = _current(record)
        if state.wickets >= MAX_WICKETS:
            raise InvariantViolation("all_out", f"{MAX_WICKETS} wickets have already fallen")
        _require_ready_to_bowl(match, state)

        if dismissed_player_id not in (state.striker_id, state.non_striker_id):
            raise ValidationError(
                "batter_not_at_crease",
                f"{match.player_name(dismissed_player_id)} is not batting",
                {"player_id": dismissed_player_id},
            )
        if dismissed_player_id == state.non_striker_id and kind != DismissalKind.RUN_OUT:
            raise ValidationError("non_striker_dismissal", f"The non-striker cannot be {kind.value}")

        if fielder_id:
            bowling = match.team(state.bowling_team_id)
            if not bowling.has_player(fielder_id):
                raise ValidationError(
                    "unknown_fielder",
                    f"{fielder_id} is not in the {bowling.name} roster",
                    {"fielder_id": fielder_id},
                )

        event = BallEvent(
            sequence=record.ledger.next_sequence,
            innings=match.innings,
            over=state.over,
            ball_in_over=state.ball_in_over,
            runs_off_bat=runs,
            extras=extras_kind,
            striker_id=state.striker_id,
            non_striker_id=state.non_striker_id,
            bowler_id=state.bowler_id,
            wicket=Wicket(kind=kind, player_out_id=dismissed_player_id, fielder_id=fielder_id or None),
        )
        _append(record, event, expected_sequence)
        return match


# -----------------------
# Read side (plain dict snapshots; ledger objects never leave the engine)
# -----------------------
def _read(match_id: str) -> Tuple[Match, Tuple[LedgerEvent, ...], str]:
    record = store.get(match_id)
    with record.lock:
        events = record.ledger.snapshot()
        version = f"{len(events)}:{record.match.status}:{record.match.innings}"
    return record.match, events, version


def _cached(kind: str, match_id: str, version: str) -> Optional[dict]:
    # one entry per (kind, match); a stale version is a miss and gets overwritten
    hit = cache.get(cache.make_key(kind, match_id))
    if hit is None or hit[0] != version:
        return None
    return hit[1]


def _remember(kind: str, match_id: str, version: str, data: dict) -> None:
    cache.set(cache.make_key(kind, match_id), (version, data), ttl_seconds=SNAPSHOT_CACHE_TTL_SECONDS)


def _team_dict(team: Team) -> dict:
    return {
        "id": team.id,
        "name": team.name,
        "players": [{"id": p.id, "name": p.name, "role": p.role} for p in team.players],
        "captain_id": team.captain_id,
        "vice_captain_id": team.vice_captain_id,
        "wicketkeeper_id": team.wicketkeeper_id,
    }


def _result_dict(match: Match) -> Optional[dict]:
    r = match.result
    if r is None:
        return None
    return {
        "type": r.result_type,
        "winner_id": r.winner_id,
        "margin": r.margin,
        "margin_type": r.margin_type,
        "text": r.text,
    }


def _team_scores(match: Match, events: Tuple[LedgerEvent, ...]) -> List[dict]:
    out: List[dict] = []
    started = [i for i in (1, 2) if any(e.innings == i for e in events)]
    for team in (match.team1, match.team2):
        row: Dict[str, Any] = {
            "team_id": team.id,
            "name": team.name,
            "innings": None,
            "runs": 0,
            "wickets": 0,
            "overs": "0.0",
            "run_rate": 0.0,
        }
        for i in started:
            if match.batting_team_id(i) == team.id:
                s = fold(match, events, i)
                row.update({
                    "innings": i,
                    "runs": s.runs,
                    "wickets": s.wickets,
                    "overs": s.overs,
                    "run_rate": round(run_rate(s.runs, s.legal_deliveries), 2),
                })
        out.append(row)
    return out


def get_match(match_id: str) -> dict:
    match, events, _ = _read(match_id)
    state = fold(match, events, match.innings)
    return {
        "id": match.id,
        "status": match.status,
        "innings": match.innings,
        "overs_limit": match.overs_limit,
        "teams": [_team_dict(match.team1), _team_dict(match.team2)],
        "toss": (
            {"winner_id": match.toss_winner_id, "decision": match.toss_decision}
            if match.toss_winner_id else None
        ),
        "scores": _team_scores(match, events),
        "current": state.to_dict() if match.toss_winner_id else None,
        "next_sequence": len(events) + 1,
        "result": _result_dict(match),
    }


def get_scorecard(match_id: str) -> dict:
    match, events, version = _read(match_id)
    cached = _cached("scorecard", match.id, version)
    if cached is not None:
        return cached

    data = {
        "match_id": match.id,
        "status": match.status,
        "innings": list(build_scorecard(match, events)),
    }
    _remember("scorecard", match.id, version, data)
    return data


def get_match_summary(match_id: str) -> dict:
    match, events, version = _read(match_id)
    cached = _cached("summary", match.id, version)
    if cached is not None:
        return cached

    state = fold(match, events, match.innings)
    data: Dict[str, Any] = {
        "match_id": match.id,
        "status": match.status,
        "innings": match.innings,
        "scores": _team_scores(match, events),
        "current": {
            "runs": state.runs,
            "wickets": state.wickets,
            "overs": state.overs,
            "dot_balls": state.dot_balls,
            "partnership": {"runs": state.partnership_runs, "balls": state.partnership_balls},
            "projected_score": projected_score(state.runs, state.legal_deliveries, match.overs_limit),
        },
        "chase": None,
        "result": _result_dict(match),
    }

    if match.innings == 2:
        first = fold(match, events, 1)
        second = fold(match, events, 2)
        needed = max(target(first) - second.runs, 0)
        balls_left = max(match.overs_limit * BALLS_PER_OVER - second.legal_deliveries, 0)
        rrr = required_run_rate(needed, balls_left) if balls_left > 0 else None
        data["chase"] = {
            "target": target(first),
            "runs_required": needed,
            "balls_remaining": balls_left,
            "required_run_rate": round(rrr, 2) if rrr is not None else None,
        }

    _remember("summary", match.id, version, data)
    return data


def get_commentary(match_id: str) -> List[dict]:
    match, events, _ = _read(match_id)
    return feed(match, events)


def get_over_progression(match_id: str) -> List[dict]:
    match, events, _ = _read(match_id)
    return over_progression_records(match, events)
