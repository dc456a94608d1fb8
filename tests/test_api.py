import pytest
from fastapi.testclient import TestClient

import main
from cricket_scoring import roster_client


def _team(team_id, name):
    return {
        "id": team_id,
        "name": name,
        "players": [{"id": f"{team_id}-{i}", "name": f"{name} {i}"} for i in range(1, 12)],
    }


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def live(client):
    r = client.post("/api/matches", json={
        "match_id": "m1", "overs_limit": 1,
        "team1": _team("A", "Lions"), "team2": _team("B", "Tigers"),
    })
    assert r.status_code == 200
    assert client.post("/api/matches/m1/toss", json={"winning_team_id": "A", "decision": "bat"}).status_code == 200
    client.post("/api/matches/m1/batter", json={"slot": "striker", "player_id": "A-1"})
    client.post("/api/matches/m1/batter", json={"slot": "non_striker", "player_id": "A-2"})
    r = client.post("/api/matches/m1/bowler", json={"player_id": "B-11"})
    assert r.json()["status"] == "in_progress"
    return client


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_start_needs_rosters(client):
    r = client.post("/api/matches", json={"match_id": "m1", "team1": _team("A", "Lions")})
    assert r.status_code == 400


def test_start_with_roster_provider(client, monkeypatch):
    monkeypatch.setattr(main, "fetch_team", lambda team_id: roster_client.parse_team(_team(team_id, team_id)))
    r = client.post("/api/matches", json={"match_id": "m9", "team1_id": "X", "team2_id": "Y"})
    assert r.status_code == 200
    assert [t["id"] for t in r.json()["teams"]] == ["X", "Y"]


def test_unknown_match_is_404(client):
    r = client.get("/api/matches/nope/summary")
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "match_not_found"


def test_delivery_flow(live):
    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 1, "extras": "wide"})
    assert r.status_code == 200
    body = r.json()
    assert body["current"]["runs"] == 2
    assert body["current"]["legal_deliveries"] == 0

    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 4})
    assert r.json()["current"]["runs"] == 6

    r = live.post("/api/matches/m1/dismissals", json={"kind": "caught", "player_out_id": "A-1", "fielder_id": "B-3"})
    assert r.status_code == 200
    assert r.json()["current"]["striker_id"] is None

    card = live.get("/api/matches/m1/scorecard").json()
    assert card["innings"][0]["batting"][0]["dismissal"] == "c Tigers 3 b Tigers 11"
    assert card["innings"][0]["bowling"][0]["wickets"] == 1

    lines = live.get("/api/matches/m1/commentary").json()["lines"]
    assert len(lines) == 3

    overs = live.get("/api/matches/m1/overs").json()["overs"]
    assert overs[0]["runs"] == 6


def test_error_mapping(live):
    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 8})
    assert r.status_code == 400
    assert r.json()["detail"]["kind"] == "validation"

    r = live.post("/api/matches/m1/dismissals", json={"kind": "vanished", "player_out_id": "A-1"})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "unknown_dismissal_kind"

    live.post("/api/matches/m1/dismissals", json={"kind": "bowled", "player_out_id": "A-1"})
    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 0})
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "striker_not_selected"

    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 0, "expected_sequence": 1})
    assert r.status_code == 409


def test_full_one_over_match(live):
    for _ in range(6):
        live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 2})
    summary = live.get("/api/matches/m1/summary").json()
    assert summary["innings"] == 2
    assert summary["chase"]["target"] == 13

    live.post("/api/matches/m1/batter", json={"slot": "striker", "player_id": "B-1"})
    live.post("/api/matches/m1/batter", json={"slot": "non_striker", "player_id": "B-2"})
    live.post("/api/matches/m1/bowler", json={"player_id": "A-11"})
    for _ in range(2):
        live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 6})
    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 1, "extras": "wide"})
    body = r.json()
    assert body["status"] == "completed"
    assert body["result"]["text"] == "Tigers won by 10 wickets"

    r = live.post("/api/matches/m1/deliveries", json={"runs_off_bat": 0})
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "match_completed"


def test_padded_ids_are_trimmed(live):
    r = live.post("/api/matches/m1/dismissals", json={
        "kind": "caught", "player_out_id": " A-1 ", "fielder_id": " B-3 ",
    })
    assert r.status_code == 200
    card = live.get("/api/matches/m1/scorecard").json()
    assert card["innings"][0]["batting"][0]["dismissal"] == "c Tigers 3 b Tigers 11"
