# cricket_scoring/scorecard.py
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple, Union

from cricket_scoring.classifier import bowler_runs, classify, extras_runs, striker_runs, total_runs
from cricket_scoring.models import (
    BallEvent,
    BattingFigures,
    BowlingFigures,
    DismissalKind,
    ExtrasKind,
    LedgerEvent,
    Match,
    Wicket,
)
from cricket_scoring.overs_math import BALLS_PER_OVER, balls_to_overs
from cricket_scoring.progression import fold

# Run-outs are the only dismissal not credited to the bowler.
BOWLER_CREDITED = {
    DismissalKind.BOWLED,
    DismissalKind.CAUGHT,
    DismissalKind.LBW,
    DismissalKind.STUMPED,
    DismissalKind.HIT_WICKET,
}


def _deliveries(events: Iterable[LedgerEvent], innings: int) -> List[BallEvent]:
    return [e for e in events if isinstance(e, BallEvent) and e.innings == innings]


def describe_dismissal(match: Match, wicket: Wicket, bowler_id: str) -> str:
    """Scorecard shorthand, e.g. "c Smith b Jones", "run out (Smith)"."""
    bowler = match.player_name(bowler_id)
    fielder = match.player_name(wicket.fielder_id) if wicket.fielder_id else None

    if wicket.kind == DismissalKind.BOWLED:
        return f"b {bowler}"
    if wicket.kind == DismissalKind.CAUGHT:
        if wicket.fielder_id == bowler_id:
            return f"c & b {bowler}"
        return f"c {fielder} b {bowler}"
    if wicket.kind == DismissalKind.LBW:
        return f"lbw b {bowler}"
    if wicket.kind == DismissalKind.RUN_OUT:
        return f"run out ({fielder})" if fielder else "run out"
    if wicket.kind == DismissalKind.STUMPED:
        return f"st {fielder} b {bowler}"
    if wicket.kind == DismissalKind.HIT_WICKET:
        return f"hit wicket b {bowler}"
    return "out"


# -----------------------
# Batting
# -----------------------
def batting_for(match: Match, events: Iterable[LedgerEvent], innings: int, player_id: str) -> BattingFigures:
    figures = BattingFigures(player_id=player_id, name=match.player_name(player_id))

    for e in _deliveries(events, innings):
        if e.striker_id == player_id:
            if classify(e.extras).is_legal:
                figures.balls += 1
            figures.runs += striker_runs(e)
            if classify(e.extras).credits_striker:
                if e.runs_off_bat == 4:
                    figures.fours += 1
                elif e.runs_off_bat == 6:
                    figures.sixes += 1

        if e.wicket is not None and e.wicket.player_out_id == player_id:
            figures.out = True
            figures.dismissal = describe_dismissal(match, e.wicket, e.bowler_id)

    return figures


def batting_card(match: Match, events: Iterable[LedgerEvent], innings: int) -> List[BattingFigures]:
    """Every batter who came to the crease, in order of appearance."""
    events = tuple(events)
    order = fold(match, events, innings).batting_order
    return [batting_for(match, events, innings, pid) for pid in order]


# -----------------------
# Bowling
# -----------------------
def _overs_by_index(deliveries: List[BallEvent]) -> Dict[int, List[BallEvent]]:
    grouped: Dict[int, List[BallEvent]] = OrderedDict()
    for e in deliveries:
        grouped.setdefault(e.over, []).append(e)
    return grouped


def is_maiden(match: Match, over_events: List[BallEvent]) -> bool:
    """
    A completed over of six legal balls, all from one bowler, with nothing
    charged to that bowler (a wide or no-ball spoils it).
    """
    legal = [e for e in over_events if classify(e.extras).is_legal]
    if len(legal) != BALLS_PER_OVER:
        return False
    if len({e.bowler_id for e in over_events}) != 1:
        return False
    return sum(bowler_runs(e, match.rules) for e in over_events) == 0


def bowling_for(match: Match, events: Iterable[LedgerEvent], innings: int, player_id: str) -> BowlingFigures:
    figures = BowlingFigures(player_id=player_id, name=match.player_name(player_id))
    deliveries = _deliveries(events, innings)

    for e in deliveries:
        if e.bowler_id != player_id:
            continue
        if classify(e.extras).is_legal:
            figures.legal_deliveries += 1
        figures.runs_conceded += bowler_runs(e, match.rules)
        if e.extras == ExtrasKind.WIDE:
            figures.wides += 1
        elif e.extras == ExtrasKind.NO_BALL:
            figures.no_balls += 1
        if e.wicket is not None and e.wicket.kind in BOWLER_CREDITED:
            figures.wickets += 1

    for over_events in _overs_by_index(deliveries).values():
        if over_events[0].bowler_id == player_id and is_maiden(match, over_events):
            figures.maidens += 1

    return figures


def bowling_card(match: Match, events: Iterable[LedgerEvent], innings: int) -> List[BowlingFigures]:
    events = tuple(events)
    order: List[str] = []
    for e in _deliveries(events, innings):
        if e.bowler_id not in order:
            order.append(e.bowler_id)
    return [bowling_for(match, events, innings, pid) for pid in order]


def aggregate(
    match: Match,
    events: Iterable[LedgerEvent],
    player_id: str,
    innings: int,
) -> Union[BattingFigures, BowlingFigures]:
    """
    Figures for one player in one innings: batting figures if the player's
    side batted in that innings, bowling figures otherwise.
    """
    batting_team_id = match.batting_team_id(innings)
    if batting_team_id is not None and match.team(batting_team_id).has_player(player_id):
        return batting_for(match, events, innings, player_id)
    return bowling_for(match, events, innings, player_id)


# -----------------------
# Innings extras + fall of wickets
# -----------------------
def extras_breakdown(match: Match, events: Iterable[LedgerEvent], innings: int) -> Dict[str, int]:
    out = {"wides": 0, "no_balls": 0, "byes": 0, "leg_byes": 0}
    keys = {
        ExtrasKind.WIDE: "wides",
        ExtrasKind.NO_BALL: "no_balls",
        ExtrasKind.BYE: "byes",
        ExtrasKind.LEG_BYE: "leg_byes",
    }
    for e in _deliveries(events, innings):
        if e.extras in keys:
            out[keys[e.extras]] += extras_runs(e, match.rules)
    out["total"] = sum(out.values())
    return out


def fall_of_wickets(match: Match, events: Iterable[LedgerEvent], innings: int) -> List[dict]:
    out: List[dict] = []
    runs = 0
    legal = 0
    for e in _deliveries(events, innings):
        runs += total_runs(e, match.rules)
        if classify(e.extras).is_legal:
            legal += 1
        if e.wicket is not None:
            out.append({
                "wicket": len(out) + 1,
                "runs": runs,
                "overs": balls_to_overs(legal),
                "player_id": e.wicket.player_out_id,
                "name": match.player_name(e.wicket.player_out_id),
            })
    return out


def innings_scorecard(match: Match, events: Iterable[LedgerEvent], innings: int) -> Optional[dict]:
    events = tuple(events)
    if not any(e.innings == innings for e in events):
        return None

    state = fold(match, events, innings)
    batting = batting_card(match, events, innings)
    bowling = bowling_card(match, events, innings)

    return {
        "innings": innings,
        "batting_team_id": state.batting_team_id,
        "bowling_team_id": state.bowling_team_id,
        "runs": state.runs,
        "wickets": state.wickets,
        "overs": state.overs,
        "batting": [b.to_dict() for b in batting],
        "bowling": [b.to_dict() for b in bowling],
        "extras": extras_breakdown(match, events, innings),
        "fall_of_wickets": fall_of_wickets(match, events, innings),
    }


def build_scorecard(match: Match, events: Iterable[LedgerEvent]) -> Tuple[dict, ...]:
    events = tuple(events)
    cards = (innings_scorecard(match, events, 1), innings_scorecard(match, events, 2))
    return tuple(c for c in cards if c is not None)
