# cricket_scoring/progression.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from cricket_scoring.classifier import classify, total_runs
from cricket_scoring.models import BallEvent, LedgerEvent, Match, SelectionEvent
from cricket_scoring.overs_math import BALLS_PER_OVER, balls_to_overs


@dataclass
class InningsState:
    """
    Derived state of one innings. Never stored: rebuilt by `fold` from the
    ledger every time it is needed.
    """
    innings: int
    batting_team_id: Optional[str] = None
    bowling_team_id: Optional[str] = None

    runs: int = 0
    wickets: int = 0
    legal_deliveries: int = 0
    deliveries: int = 0

    striker_id: Optional[str] = None
    non_striker_id: Optional[str] = None
    bowler_id: Optional[str] = None

    # bowler of the last completed over (may not bowl the next one)
    last_over_bowler_id: Optional[str] = None
    # deliveries of any kind since the current over began
    balls_this_over: int = 0

    # since the last wicket
    partnership_runs: int = 0
    partnership_balls: int = 0

    dot_balls: int = 0

    dismissed: List[str] = field(default_factory=list)
    batting_order: List[str] = field(default_factory=list)

    @property
    def over(self) -> int:
        return self.legal_deliveries // BALLS_PER_OVER

    @property
    def ball_in_over(self) -> int:
        return self.legal_deliveries % BALLS_PER_OVER + 1

    @property
    def overs(self) -> str:
        return balls_to_overs(self.legal_deliveries)

    @property
    def over_in_progress(self) -> bool:
        return self.balls_this_over > 0

    def slot_of(self, player_id: str) -> Optional[str]:
        if player_id == self.striker_id:
            return "striker"
        if player_id == self.non_striker_id:
            return "non_striker"
        return None

    def to_dict(self) -> dict:
        return {
            "innings": self.innings,
            "batting_team_id": self.batting_team_id,
            "bowling_team_id": self.bowling_team_id,
            "runs": self.runs,
            "wickets": self.wickets,
            "overs": self.overs,
            "legal_deliveries": self.legal_deliveries,
            "over": self.over,
            "ball_in_over": self.ball_in_over,
            "striker_id": self.striker_id,
            "non_striker_id": self.non_striker_id,
            "bowler_id": self.bowler_id,
        }


def _swap(state: InningsState) -> None:
    state.striker_id, state.non_striker_id = state.non_striker_id, state.striker_id


def _apply_selection(state: InningsState, event: SelectionEvent) -> None:
    if event.slot == "bowler":
        state.bowler_id = event.player_id
        return

    if event.slot == "striker":
        replaced, state.striker_id = state.striker_id, event.player_id
    else:
        replaced, state.non_striker_id = state.non_striker_id, event.player_id

    # swapped out before the first ball: never batted
    if replaced is not None and replaced != event.player_id and state.deliveries == 0:
        state.batting_order.remove(replaced)

    if event.player_id not in state.batting_order:
        state.batting_order.append(event.player_id)


def _apply_delivery(match: Match, state: InningsState, event: BallEvent) -> None:
    legal = classify(event.extras).is_legal

    runs = total_runs(event, match.rules)
    state.runs += runs
    state.deliveries += 1
    state.partnership_runs += runs

    over_complete = False
    if legal:
        state.legal_deliveries += 1
        state.partnership_balls += 1
        if runs == 0 and event.wicket is None:
            state.dot_balls += 1
        over_complete = state.legal_deliveries % BALLS_PER_OVER == 0

    # Strike rotation. The end of an over always swaps exactly once,
    # whatever was run off the last ball.
    if over_complete:
        _swap(state)
    elif legal and event.runs_off_bat % 2 == 1:
        _swap(state)

    if event.wicket is not None:
        state.wickets += 1
        state.dismissed.append(event.wicket.player_out_id)
        state.partnership_runs = 0
        state.partnership_balls = 0
        # vacated slot stays empty until a new batter is selected
        if state.striker_id == event.wicket.player_out_id:
            state.striker_id = None
        elif state.non_striker_id == event.wicket.player_out_id:
            state.non_striker_id = None

    if over_complete:
        state.last_over_bowler_id = event.bowler_id
        state.bowler_id = None
        state.balls_this_over = 0
    else:
        state.balls_this_over += 1


def fold(match: Match, events: Iterable[LedgerEvent], innings: int) -> InningsState:
    """
    Replays the ledger (or any prefix of it) for one innings.

    Pure and deterministic: folding the same prefix twice gives equal
    states. Events from other innings are skipped.
    """
    state = InningsState(
        innings=innings,
        batting_team_id=match.batting_team_id(innings),
        bowling_team_id=match.bowling_team_id(innings),
    )

    for e in events:
        if e.innings != innings:
            continue
        if isinstance(e, SelectionEvent):
            _apply_selection(state, e)
        else:
            _apply_delivery(match, state, e)

    return state
