# cricket_scoring/roster_client.py
from __future__ import annotations

from typing import Any, Dict

import requests

from cricket_scoring.config import (
    ROSTER_PROVIDER_BASE_URL,
    ROSTER_PROVIDER_ENABLED,
    ROSTER_PROVIDER_TIMEOUT_SECONDS,
)
from cricket_scoring.errors import RosterProviderError
from cricket_scoring.models import Player, Team


def parse_team(data: Dict[str, Any]) -> Team:
    """
    Roster payload -> Team snapshot.

    Expected shape:
      {"id": "t1", "name": "...", "players": [{"id": "p1", "name": "...", "role": "..."}],
       "captain_id": "...", "vice_captain_id": "...", "wicketkeeper_id": "..."}
    """
    try:
        players = tuple(
            Player(id=str(p["id"]), name=str(p["name"]), role=str(p.get("role") or "batter"))
            for p in data.get("players") or []
        )
        return Team(
            id=str(data["id"]),
            name=str(data["name"]),
            players=players,
            captain_id=data.get("captain_id"),
            vice_captain_id=data.get("vice_captain_id"),
            wicketkeeper_id=data.get("wicketkeeper_id"),
        )
    except (KeyError, TypeError) as e:
        raise RosterProviderError(f"Malformed roster payload: {e}") from e


def fetch_team(team_id: str) -> Team:
    """
    Reads one team's roster from the Roster Provider.

    IMPORTANT:
    - The provider is optional; inline rosters always work.
    - Only allowed when ROSTER_PROVIDER_ENABLED=1.
    """
    if not ROSTER_PROVIDER_ENABLED:
        raise RosterProviderError("Roster Provider is disabled (set ROSTER_PROVIDER_ENABLED=1 to enable).")

    if not ROSTER_PROVIDER_BASE_URL.startswith("http"):
        raise RosterProviderError("ROSTER_PROVIDER_BASE_URL must start with http/https")

    url = f"{ROSTER_PROVIDER_BASE_URL.rstrip('/')}/teams/{team_id}"

    try:
        resp = requests.get(url, timeout=ROSTER_PROVIDER_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise RosterProviderError(f"Network error: {e}") from e

    if resp.status_code != 200:
        raise RosterProviderError(f"HTTP {resp.status_code}: {resp.text}")

    try:
        data = resp.json()
    except ValueError as e:
        raise RosterProviderError(f"Invalid JSON response: {e}") from e

    return parse_team(data)
