# cricket_scoring/commentary.py
from __future__ import annotations

from typing import Iterable, List

from cricket_scoring.classifier import penalty_runs
from cricket_scoring.models import BallEvent, DismissalKind, ExtrasKind, LedgerEvent, Match


def _runs(n: int) -> str:
    return "1 run" if n == 1 else f"{n} runs"


def wicket_line(match: Match, event: BallEvent) -> str:
    w = event.wicket
    batter = match.player_name(w.player_out_id)
    bowler = match.player_name(event.bowler_id)
    fielder = match.player_name(w.fielder_id) if w.fielder_id else None

    if w.kind == DismissalKind.BOWLED:
        return f"WICKET! {batter} is bowled by {bowler}!"
    if w.kind == DismissalKind.CAUGHT:
        return f"WICKET! {batter} is caught by {fielder} off the bowling of {bowler}."
    if w.kind == DismissalKind.LBW:
        return f"WICKET! {batter} is LBW to {bowler}."
    if w.kind == DismissalKind.RUN_OUT:
        return f"WICKET! {batter} is run out by {fielder}!"
    if w.kind == DismissalKind.STUMPED:
        return f"WICKET! {batter} is stumped by {fielder} off the bowling of {bowler}."
    if w.kind == DismissalKind.HIT_WICKET:
        return f"WICKET! {batter} treads on the stumps, hit wicket off {bowler}."
    return f"WICKET! {batter} is out!"


def delivery_line(match: Match, event: BallEvent) -> str:
    batter = match.player_name(event.striker_id)
    bowler = match.player_name(event.bowler_id)
    runs = event.runs_off_bat

    if event.extras == ExtrasKind.WIDE:
        return f"Wide ball by {bowler}. {_runs(runs + penalty_runs(event.extras, match.rules))} added."
    if event.extras == ExtrasKind.NO_BALL:
        return f"No ball by {bowler}. {_runs(runs + penalty_runs(event.extras, match.rules))} added."
    if event.extras == ExtrasKind.LEG_BYE:
        return f"Leg bye. {_runs(runs)} taken."
    if event.extras == ExtrasKind.BYE:
        return f"Bye. {_runs(runs)} taken."
    if runs == 4:
        return f"FOUR! {batter} hits a beautiful boundary off {bowler}."
    if runs == 6:
        return f"SIX! {batter} hits a huge six off {bowler}."
    if runs == 0:
        return f"{bowler} to {batter}, no run."
    return f"{batter} takes {_runs(runs)} off {bowler}."


def render(match: Match, event: BallEvent) -> str:
    """Display text for one ball. A wicket line wins over the runs line."""
    if event.wicket is not None:
        return wicket_line(match, event)
    return delivery_line(match, event)


def feed(match: Match, events: Iterable[LedgerEvent]) -> List[dict]:
    out: List[dict] = []
    for e in events:
        if not isinstance(e, BallEvent):
            continue
        out.append({
            "sequence": e.sequence,
            "innings": e.innings,
            "ball": f"{e.over}.{e.ball_in_over}",
            "text": render(match, e),
        })
    return out
