# cricket_scoring/charts.py
from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from cricket_scoring.classifier import classify, total_runs
from cricket_scoring.models import BallEvent, LedgerEvent, Match

COLUMNS = ["innings", "over", "bowler_id", "runs", "wickets", "extras", "cumulative_runs"]


def ball_frame(match: Match, events: Iterable[LedgerEvent]) -> pd.DataFrame:
    """One row per delivery, in ledger order."""
    rows = []
    for e in events:
        if not isinstance(e, BallEvent):
            continue
        runs = total_runs(e, match.rules)
        rows.append({
            "sequence": e.sequence,
            "innings": e.innings,
            "over": e.over + 1,
            "bowler_id": e.bowler_id,
            "runs": runs,
            "wicket": 1 if e.wicket is not None else 0,
            "extras": runs - (e.runs_off_bat if classify(e.extras).credits_striker else 0),
        })
    return pd.DataFrame(rows, columns=["sequence", "innings", "over", "bowler_id", "runs", "wicket", "extras"])


def over_progression(match: Match, events: Iterable[LedgerEvent]) -> pd.DataFrame:
    """
    Per-over table behind the manhattan (runs per over) and worm
    (cumulative runs) charts. Overs are 1-based.
    """
    balls = ball_frame(match, events)
    if balls.empty:
        return pd.DataFrame(columns=COLUMNS)

    per_over = (
        balls.groupby(["innings", "over"], sort=True)
        .agg(
            bowler_id=("bowler_id", "first"),
            runs=("runs", "sum"),
            wickets=("wicket", "sum"),
            extras=("extras", "sum"),
        )
        .reset_index()
    )
    per_over["cumulative_runs"] = per_over.groupby("innings")["runs"].cumsum()
    return per_over[COLUMNS]


def over_progression_records(match: Match, events: Iterable[LedgerEvent]) -> List[dict]:
    df = over_progression(match, events)
    out: List[dict] = []
    for row in df.to_dict(orient="records"):
        out.append({
            "innings": int(row["innings"]),
            "over": int(row["over"]),
            "bowler_id": str(row["bowler_id"]),
            "runs": int(row["runs"]),
            "wickets": int(row["wickets"]),
            "extras": int(row["extras"]),
            "cumulative_runs": int(row["cumulative_runs"]),
        })
    return out
