# main.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from cricket_scoring import engine
from cricket_scoring.config import LOG_LEVEL, validate_config
from cricket_scoring.errors import (
    ConcurrencyConflict,
    InvariantViolation,
    MatchNotFound,
    PreconditionError,
    RosterProviderError,
    ScoringError,
    ValidationError,
)
from cricket_scoring.models import Player, Team
from cricket_scoring.roster_client import fetch_team

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Cricket Live Scoring API",
    version="0.1.0",
    description="Ball-by-ball scoring engine: live match state, scorecards, results and commentary",
)


@app.on_event("startup")
def on_startup():
    validate_config()


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Helpers
# -----------------------
_STATUS_CODES = {
    ValidationError: 400,
    MatchNotFound: 404,
    PreconditionError: 409,
    InvariantViolation: 409,
    ConcurrencyConflict: 409,
}


def _http_error(e: ScoringError) -> HTTPException:
    status = _STATUS_CODES.get(type(e), 400)
    return HTTPException(status_code=status, detail=e.to_dict())


# -----------------------
# Start match
# -----------------------
class PlayerIn(BaseModel):
    id: str
    name: str
    role: str = "batter"


class TeamIn(BaseModel):
    id: str
    name: str
    players: list[PlayerIn] = Field(default_factory=list)
    captain_id: Optional[str] = None
    vice_captain_id: Optional[str] = None
    wicketkeeper_id: Optional[str] = None

    def to_team(self) -> Team:
        return Team(
            id=self.id.strip(),
            name=self.name.strip(),
            players=tuple(Player(id=p.id.strip(), name=p.name.strip(), role=p.role) for p in self.players),
            captain_id=self.captain_id,
            vice_captain_id=self.vice_captain_id,
            wicketkeeper_id=self.wicketkeeper_id,
        )


class StartMatchRequest(BaseModel):
    match_id: Optional[str] = Field(None, description="Generated when omitted")
    overs_limit: Optional[int] = Field(None, description="Overs per innings (defaults to DEFAULT_OVERS_LIMIT)")
    team1: Optional[TeamIn] = Field(None, description="Inline roster")
    team2: Optional[TeamIn] = Field(None, description="Inline roster")
    team1_id: Optional[str] = Field(None, description="Fetch roster from the Roster Provider instead")
    team2_id: Optional[str] = Field(None, description="Fetch roster from the Roster Provider instead")


def _resolve_team(inline: Optional[TeamIn], team_id: Optional[str], label: str) -> Team:
    if inline is not None:
        return inline.to_team()
    if team_id:
        try:
            return fetch_team(team_id.strip())
        except RosterProviderError as e:
            logger.warning("roster fetch failed for %s=%s: %s", label, team_id, e)
            raise HTTPException(status_code=502, detail=f"Unable to fetch roster for {label}: {str(e)}")
    raise HTTPException(status_code=400, detail=f"Provide either {label} or {label}_id")


@app.post("/api/matches")
def start_match(req: StartMatchRequest):
    team1 = _resolve_team(req.team1, req.team1_id, "team1")
    team2 = _resolve_team(req.team2, req.team2_id, "team2")

    try:
        match = engine.start_match(req.match_id, req.overs_limit, team1, team2)
    except ScoringError as e:
        raise _http_error(e)

    return engine.get_match(match.id)


@app.get("/api/matches/{match_id}")
def get_match(match_id: str):
    try:
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Toss + selections
# -----------------------
class TossRequest(BaseModel):
    winning_team_id: str
    decision: str = Field(..., description="bat or bowl")


@app.post("/api/matches/{match_id}/toss")
def record_toss(match_id: str, req: TossRequest):
    try:
        engine.record_toss(match_id, req.winning_team_id.strip(), req.decision.strip().lower())
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


class BatterRequest(BaseModel):
    slot: Literal["striker", "non_striker"]
    player_id: str
    expected_sequence: Optional[int] = Field(None, ge=1, description="Compare-and-append token")


@app.post("/api/matches/{match_id}/batter")
def select_batter(match_id: str, req: BatterRequest):
    try:
        engine.select_batter(match_id, req.slot, req.player_id.strip(), req.expected_sequence)
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


class BowlerRequest(BaseModel):
    player_id: str
    expected_sequence: Optional[int] = Field(None, ge=1, description="Compare-and-append token")


@app.post("/api/matches/{match_id}/bowler")
def select_bowler(match_id: str, req: BowlerRequest):
    try:
        engine.select_bowler(match_id, req.player_id.strip(), req.expected_sequence)
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Deliveries + dismissals
# -----------------------
class DeliveryRequest(BaseModel):
    runs_off_bat: int = Field(0, description="0..6")
    extras: Optional[str] = Field(None, description="wide / no_ball / leg_bye / bye")
    expected_sequence: Optional[int] = Field(None, ge=1, description="Compare-and-append token")


@app.post("/api/matches/{match_id}/deliveries")
def record_delivery(match_id: str, req: DeliveryRequest):
    try:
        engine.record_delivery(match_id, req.runs_off_bat, req.extras, req.expected_sequence)
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


class DismissalRequest(BaseModel):
    kind: str = Field(..., description="bowled / caught / lbw / run_out / stumped / hit_wicket")
    player_out_id: str
    fielder_id: Optional[str] = None
    runs_off_bat: int = Field(0, description="Runs completed before a run out")
    extras: Optional[str] = Field(None, description="wide / no_ball / leg_bye / bye")
    expected_sequence: Optional[int] = Field(None, ge=1, description="Compare-and-append token")


@app.post("/api/matches/{match_id}/dismissals")
def record_dismissal(match_id: str, req: DismissalRequest):
    try:
        engine.record_dismissal(
            match_id,
            req.kind,
            req.player_out_id.strip(),
            fielder_id=req.fielder_id.strip() if req.fielder_id else None,
            runs_off_bat=req.runs_off_bat,
            extras=req.extras,
            expected_sequence=req.expected_sequence,
        )
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Read views
# -----------------------
@app.get("/api/matches/{match_id}/scorecard")
def get_scorecard(match_id: str):
    try:
        return engine.get_scorecard(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/matches/{match_id}/summary")
def get_match_summary(match_id: str):
    try:
        return engine.get_match_summary(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/matches/{match_id}/commentary")
def get_commentary(match_id: str):
    try:
        return {"match_id": match_id, "lines": engine.get_commentary(match_id)}
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/matches/{match_id}/overs")
def get_over_progression(match_id: str):
    try:
        return {"match_id": match_id, "overs": engine.get_over_progression(match_id)}
    except ScoringError as e:
        raise _http_error(e)
