# cricket_scoring/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, "1" if default else "0").lower()
    return raw in {"1", "true", "yes", "on"}


# -------------------------
# Match format
# -------------------------
DEFAULT_OVERS_LIMIT: int = _get_env_int("DEFAULT_OVERS_LIMIT", 20)
MAX_OVERS_LIMIT: int = _get_env_int("MAX_OVERS_LIMIT", 50)

# Minimum roster size. All out = 10 wickets, so a side needs 11.
PLAYERS_PER_SIDE: int = _get_env_int("PLAYERS_PER_SIDE", 11)


# -------------------------
# Scoring rules (frozen per match in ScoringRules)
# -------------------------
WIDE_PENALTY_RUNS: int = _get_env_int("WIDE_PENALTY_RUNS", 1)
NO_BALL_PENALTY_RUNS: int = _get_env_int("NO_BALL_PENALTY_RUNS", 1)

# Byes/leg-byes counted against the bowler (simplified club-scoring convention).
BYES_CHARGED_TO_BOWLER: bool = _get_env_bool("BYES_CHARGED_TO_BOWLER", True)


# -------------------------
# Snapshot cache
# -------------------------
SNAPSHOT_CACHE_TTL_SECONDS: int = _get_env_int("SNAPSHOT_CACHE_TTL_SECONDS", 30)


# -------------------------
# Roster Provider (OPTIONAL)
# -------------------------
# If 0, startMatch only accepts inline rosters
ROSTER_PROVIDER_ENABLED: bool = _get_env_bool("ROSTER_PROVIDER_ENABLED", False)
ROSTER_PROVIDER_BASE_URL: str = _get_env("ROSTER_PROVIDER_BASE_URL", "http://localhost:8001/api")
ROSTER_PROVIDER_TIMEOUT_SECONDS: int = _get_env_int("ROSTER_PROVIDER_TIMEOUT_SECONDS", 10)


# -------------------------
# Logging
# -------------------------
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()


def validate_config() -> None:
    if DEFAULT_OVERS_LIMIT <= 0 or MAX_OVERS_LIMIT <= 0:
        raise RuntimeError("DEFAULT_OVERS_LIMIT and MAX_OVERS_LIMIT must be positive")

    if DEFAULT_OVERS_LIMIT > MAX_OVERS_LIMIT:
        raise RuntimeError("DEFAULT_OVERS_LIMIT cannot exceed MAX_OVERS_LIMIT")

    if PLAYERS_PER_SIDE < 11:
        raise RuntimeError("PLAYERS_PER_SIDE must be at least 11 (10 wickets make an innings)")

    if WIDE_PENALTY_RUNS < 0 or NO_BALL_PENALTY_RUNS < 0:
        raise RuntimeError("Penalty runs cannot be negative")

    if SNAPSHOT_CACHE_TTL_SECONDS < 0:
        raise RuntimeError("SNAPSHOT_CACHE_TTL_SECONDS cannot be negative")

    # If enabled, the provider URL must be usable
    if ROSTER_PROVIDER_ENABLED:
        if not ROSTER_PROVIDER_BASE_URL.startswith("http"):
            raise RuntimeError("ROSTER_PROVIDER_BASE_URL must start with http/https")
        if ROSTER_PROVIDER_TIMEOUT_SECONDS <= 0:
            raise RuntimeError("ROSTER_PROVIDER_TIMEOUT_SECONDS must be positive")
