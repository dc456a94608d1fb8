# cricket_scoring/overs_math.py
from __future__ import annotations

BALLS_PER_OVER = 6


def balls_to_overs(balls: int) -> str:
    # balls=112 => "18.4"
    if balls <= 0:
        return "0.0"
    return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"


def balls_to_overs_float(balls: int) -> float:
    if balls <= 0:
        return 0.0
    return balls / float(BALLS_PER_OVER)


def run_rate(runs: int, balls: int) -> float:
    """
    Runs per six legal deliveries. Also the bowler's economy rate.
    0.0 when nothing has been bowled.
    """
    overs = balls_to_overs_float(balls)
    if overs == 0.0:
        return 0.0
    return runs / overs


def required_run_rate(runs_needed: int, balls_remaining: int) -> float:
    if runs_needed <= 0:
        return 0.0
    if balls_remaining <= 0:
        return float("inf")
    return run_rate(runs_needed, balls_remaining)


def projected_score(runs: int, balls: int, overs_limit: int) -> int:
    """
    Runs at the current rate over the full innings.
    0 when nothing has been bowled.
    """
    if balls <= 0:
        return 0
    return int(round(runs * overs_limit * BALLS_PER_OVER / float(balls)))
