# cricket_scoring/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Tuple, Union

from cricket_scoring.overs_math import balls_to_overs, run_rate


# -----------------------------
# Tagged variants
# -----------------------------
class ExtrasKind(str, Enum):
    NONE = "none"
    WIDE = "wide"
    NO_BALL = "no_ball"
    LEG_BYE = "leg_bye"
    BYE = "bye"


class DismissalKind(str, Enum):
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run_out"
    STUMPED = "stumped"
    HIT_WICKET = "hit_wicket"


MatchStatus = Literal["not_started", "toss_done", "in_progress", "completed"]
TossDecision = Literal["bat", "bowl"]
BatterSlot = Literal["striker", "non_striker"]
SelectionSlot = Literal["striker", "non_striker", "bowler"]
ResultType = Literal["WIN", "TIE"]


# -----------------------------
# Identities (roster snapshot)
# -----------------------------
@dataclass(frozen=True)
class Player:
    id: str
    name: str
    role: str = "batter"


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    players: Tuple[Player, ...]
    captain_id: Optional[str] = None
    vice_captain_id: Optional[str] = None
    wicketkeeper_id: Optional[str] = None

    def has_player(self, player_id: str) -> bool:
        return any(p.id == player_id for p in self.players)

    def player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None


@dataclass(frozen=True)
class ScoringRules:
    """
    Scoring conventions frozen on a match when it starts, so changing the
    environment never re-scores a match that is already running.
    """
    wide_penalty_runs: int = 1
    no_ball_penalty_runs: int = 1
    byes_charged_to_bowler: bool = True


# -----------------------------
# Ledger events (immutable once appended)
# -----------------------------
@dataclass(frozen=True)
class Wicket:
    kind: DismissalKind
    player_out_id: str
    fielder_id: Optional[str] = None


@dataclass(frozen=True)
class BallEvent:
    sequence: int
    innings: int
    over: int           # 0-based over index
    ball_in_over: int   # 1..6, position of the next legal ball when this one was bowled
    runs_off_bat: int
    extras: ExtrasKind
    striker_id: str
    non_striker_id: str
    bowler_id: str
    wicket: Optional[Wicket] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class SelectionEvent:
    """A batter or bowler walking into a slot. Folded alongside deliveries."""
    sequence: int
    innings: int
    slot: SelectionSlot
    player_id: str
    timestamp: datetime = field(default_factory=datetime.utcnow)


LedgerEvent = Union[BallEvent, SelectionEvent]


# -----------------------------
# Match
# -----------------------------
@dataclass(frozen=True)
class MatchResult:
    result_type: ResultType
    winner_id: Optional[str] = None
    margin: Optional[int] = None
    margin_type: Optional[Literal["runs", "wickets"]] = None
    text: str = ""


@dataclass
class Match:
    id: str
    team1: Team
    team2: Team
    overs_limit: int
    rules: ScoringRules = field(default_factory=ScoringRules)
    status: MatchStatus = "not_started"
    innings: int = 1
    toss_winner_id: Optional[str] = None
    toss_decision: Optional[TossDecision] = None
    result: Optional[MatchResult] = None

    def team(self, team_id: str) -> Team:
        if team_id == self.team1.id:
            return self.team1
        if team_id == self.team2.id:
            return self.team2
        raise KeyError(team_id)

    def other_team(self, team_id: str) -> Team:
        return self.team2 if team_id == self.team1.id else self.team1

    def batting_team_id(self, innings: int) -> Optional[str]:
        """
        Innings 1 is batted by the toss winner if they chose to bat,
        otherwise by the other side. Unknown until the toss is recorded.
        """
        if self.toss_winner_id is None or self.toss_decision is None:
            return None
        first = self.toss_winner_id
        if self.toss_decision == "bowl":
            first = self.other_team(self.toss_winner_id).id
        if innings == 1:
            return first
        return self.other_team(first).id

    def bowling_team_id(self, innings: int) -> Optional[str]:
        batting = self.batting_team_id(innings)
        if batting is None:
            return None
        return self.other_team(batting).id

    def player_name(self, player_id: Optional[str]) -> str:
        if player_id is None:
            return "Unknown"
        for t in (self.team1, self.team2):
            p = t.player(player_id)
            if p is not None:
                return p.name
        return player_id


# -----------------------------
# Figures (derived)
# -----------------------------
@dataclass
class BattingFigures:
    player_id: str
    name: str
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    out: bool = False
    dismissal: str = "not out"

    @property
    def strike_rate(self) -> float:
        if self.balls == 0:
            return 0.0
        return (self.runs / self.balls) * 100

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "runs": self.runs,
            "balls": self.balls,
            "fours": self.fours,
            "sixes": self.sixes,
            "strike_rate": round(self.strike_rate, 2),
            "out": self.out,
            "dismissal": self.dismissal,
        }


@dataclass
class BowlingFigures:
    player_id: str
    name: str
    legal_deliveries: int = 0
    maidens: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    wides: int = 0
    no_balls: int = 0

    @property
    def overs(self) -> str:
        return balls_to_overs(self.legal_deliveries)

    @property
    def economy(self) -> float:
        return run_rate(self.runs_conceded, self.legal_deliveries)

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "overs": self.overs,
            "maidens": self.maidens,
            "runs": self.runs_conceded,
            "wickets": self.wickets,
            "economy": round(self.economy, 2),
            "wides": self.wides,
            "no_balls": self.no_balls,
        }
