import pytest

from cricket_scoring import cache, engine
from cricket_scoring.models import BattingFigures, BowlingFigures, ScoringRules
from cricket_scoring.scorecard import (
    aggregate,
    batting_card,
    bowling_card,
    build_scorecard,
    extras_breakdown,
    fall_of_wickets,
)


def _mixed_over(s):
    s.ball(4)
    s.ball(6)
    s.ball(1, "bye")
    s.ball(0, "wide")
    s.ball(1)
    s.ball(2, "no_ball")


def test_batting_figures_only_credit_the_bat(start):
    s = start()
    _mixed_over(s)

    card = {b.player_id: b for b in batting_card(s.match, s.events(), 1)}
    a1, a2 = card["A-1"], card["A-2"]

    assert (a1.runs, a1.balls, a1.fours, a1.sixes) == (10, 3, 1, 1)
    assert a1.strike_rate == pytest.approx(1000 / 3)
    assert (a2.runs, a2.balls) == (1, 1)
    assert not a1.out and a1.dismissal == "not out"


def test_team_total_is_bat_plus_extras(start):
    s = start()
    _mixed_over(s)

    extras = extras_breakdown(s.match, s.events(), 1)
    assert extras == {"wides": 1, "no_balls": 3, "byes": 1, "leg_byes": 0, "total": 5}

    card = build_scorecard(s.match, s.events())
    assert len(card) == 1
    batted = sum(b["runs"] for b in card[0]["batting"])
    assert card[0]["runs"] == batted + extras["total"] == 16


def test_bowling_figures(start):
    s = start()
    _mixed_over(s)

    (b,) = bowling_card(s.match, s.events(), 1)
    assert b.player_id == "B-11"
    assert b.legal_deliveries == 4
    assert b.overs == "0.4"
    assert b.runs_conceded == 16
    assert (b.wides, b.no_balls) == (1, 1)
    assert b.economy == pytest.approx(24.0)


def test_byes_not_charged_when_rules_say_so(start):
    s = start(rules=ScoringRules(byes_charged_to_bowler=False))
    _mixed_over(s)

    (b,) = bowling_card(s.match, s.events(), 1)
    assert b.runs_conceded == 15


def test_maidens(start):
    s = start()
    s.balls(6)                       # B-11: maiden
    s.balls(5)
    s.ball(0, "wide")
    s.ball(0)                        # B-10: six legal dots but a wide
    s.balls(5)
    s.ball(1, "leg_bye")             # B-11: leg bye charged by default

    figures = {b.player_id: b for b in bowling_card(s.match, s.events(), 1)}
    assert figures["B-11"].maidens == 1
    assert figures["B-10"].maidens == 0
    assert figures["B-11"].overs == "2.0"


def test_partial_over_is_never_a_maiden(start):
    s = start()
    s.balls(5)
    (b,) = bowling_card(s.match, s.events(), 1)
    assert b.maidens == 0


def test_wickets_credit_bowler_except_run_outs(start):
    s = start()
    s.out("bowled")
    s.out("run_out", fielder="B-2")
    s.out("caught", fielder="B-11")

    (b,) = bowling_card(s.match, s.events(), 1)
    assert b.wickets == 2

    card = {x.player_id: x for x in batting_card(s.match, s.events(), 1)}
    assert card["A-1"].dismissal == "b Tigers 11"
    assert card["A-3"].dismissal == "run out (Tigers 2)"
    assert card["A-4"].dismissal == "c & b Tigers 11"
    assert card["A-1"].out and card["A-1"].balls == 1


def test_stumping_and_lbw_descriptions(start):
    s = start()
    s.out("stumped", fielder="B-2")
    s.out("lbw")
    card = {x.player_id: x for x in batting_card(s.match, s.events(), 1)}
    assert card["A-1"].dismissal == "st Tigers 2 b Tigers 11"
    assert card["A-3"].dismissal == "lbw b Tigers 11"


def test_fall_of_wickets(start):
    s = start()
    s.ball(4)
    s.out("bowled")
    s.ball(2)
    s.out("caught", fielder="B-4")

    fow = fall_of_wickets(s.match, s.events(), 1)
    assert [(f["wicket"], f["runs"], f["overs"], f["player_id"]) for f in fow] == [
        (1, 4, "0.2", "A-1"),
        (2, 6, "0.4", "A-3"),
    ]


def test_aggregate_picks_side_by_innings(start):
    s = start()
    s.ball(4)
    s.out("bowled")

    batting = aggregate(s.match, s.events(), "A-1", 1)
    bowling = aggregate(s.match, s.events(), "B-11", 1)
    assert isinstance(batting, BattingFigures) and batting.runs == 4
    assert isinstance(bowling, BowlingFigures) and bowling.wickets == 1


def test_scorecard_api_is_cached_per_ledger_length(start):
    s = start()
    s.ball(1)
    first = engine.get_scorecard("m1")
    assert engine.get_scorecard("m1") is first
    s.ball(1)
    second = engine.get_scorecard("m1")
    assert second is not first
    assert second["innings"][0]["runs"] == 2


def test_batter_replaced_before_first_ball_is_not_on_the_card(start):
    s = start()
    engine.select_batter("m1", "striker", "A-1")
    engine.select_batter("m1", "striker", "A-5")
    engine.select_batter("m1", "non_striker", "A-2")
    s.ball(1)

    card = batting_card(s.match, s.events(), 1)
    assert [b.player_id for b in card] == ["A-5", "A-2"]
    assert s.state().batting_order == ["A-5", "A-2"]


def test_snapshot_cache_keeps_one_entry_per_view(start):
    s = start()
    for _ in range(60):
        s.ball(0)
        engine.get_scorecard("m1")
        engine.get_match_summary("m1")
    assert len(cache._cache) <= 2
    assert engine.get_scorecard("m1")["innings"][0]["overs"] == "10.0"
