from typing import List, Optional

import pytest

from cricket_scoring import cache, engine, store
from cricket_scoring.models import Player, ScoringRules, Team
from cricket_scoring.progression import InningsState, fold


def make_team(team_id: str, name: str, size: int = 11) -> Team:
    players = tuple(Player(id=f"{team_id}-{i}", name=f"{name} {i}") for i in range(1, size + 1))
    return Team(id=team_id, name=name, players=players, captain_id=players[0].id, wicketkeeper_id=players[1].id)


@pytest.fixture(autouse=True)
def _clean_registry():
    store.clear()
    cache.clear()
    yield
    store.clear()
    cache.clear()


@pytest.fixture
def teams():
    return make_team("A", "Lions"), make_team("B", "Tigers")


class Scorer:
    """
    Drives a match through the engine the way a scorer would: fills empty
    batting slots in roster order and alternates the last two bowlers of
    the fielding side between overs.
    """

    def __init__(self, match_id: str):
        self.match_id = match_id

    @property
    def record(self):
        return store.get(self.match_id)

    @property
    def match(self):
        return self.record.match

    def state(self, innings: Optional[int] = None) -> InningsState:
        return fold(self.match, self.record.ledger.snapshot(), innings or self.match.innings)

    def events(self):
        return self.record.ledger.snapshot()

    def ready(self) -> None:
        st = self.state()
        batting = self.match.team(st.batting_team_id)
        bowling = self.match.team(st.bowling_team_id)

        for slot in ("striker", "non_striker"):
            st = self.state()
            if getattr(st, f"{slot}_id") is None:
                used = set(st.batting_order) | set(st.dismissed)
                nxt = next(p.id for p in batting.players if p.id not in used)
                engine.select_batter(self.match_id, slot, nxt)

        st = self.state()
        if st.bowler_id is None:
            options: List[str] = [bowling.players[-1].id, bowling.players[-2].id]
            choice = next(p for p in options if p != st.last_over_bowler_id)
            engine.select_bowler(self.match_id, choice)

    def ball(self, runs: int = 0, extras: Optional[str] = None) -> None:
        self.ready()
        engine.record_delivery(self.match_id, runs, extras)

    def balls(self, n: int, runs: int = 0) -> None:
        for _ in range(n):
            self.ball(runs)

    def out(self, kind: str = "bowled", fielder: Optional[str] = None, runs: int = 0,
            extras: Optional[str] = None, non_striker: bool = False) -> None:
        self.ready()
        st = self.state()
        player = st.non_striker_id if non_striker else st.striker_id
        engine.record_dismissal(self.match_id, kind, player, fielder_id=fielder, runs_off_bat=runs, extras=extras)


@pytest.fixture
def start(teams):
    """Factory: started match with the toss done (team A bats first)."""

    def _start(overs: int = 20, rules: Optional[ScoringRules] = None, match_id: str = "m1") -> Scorer:
        a, b = teams
        engine.start_match(match_id, overs, a, b, rules=rules)
        engine.record_toss(match_id, "A", "bat")
        return Scorer(match_id)

    return _start
