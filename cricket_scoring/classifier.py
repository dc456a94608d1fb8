# cricket_scoring/classifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

from cricket_scoring.models import BallEvent, ExtrasKind, ScoringRules


@dataclass(frozen=True)
class DeliveryClass:
    is_legal: bool         # advances the over
    credits_striker: bool  # runs go to the striker's personal tally


# Single source of truth for extras rules. Every fold asks this table
# instead of re-deriving it.
_CLASSES: Dict[ExtrasKind, DeliveryClass] = {
    ExtrasKind.NONE: DeliveryClass(is_legal=True, credits_striker=True),
    ExtrasKind.WIDE: DeliveryClass(is_legal=False, credits_striker=False),
    ExtrasKind.NO_BALL: DeliveryClass(is_legal=False, credits_striker=False),
    ExtrasKind.LEG_BYE: DeliveryClass(is_legal=True, credits_striker=False),
    ExtrasKind.BYE: DeliveryClass(is_legal=True, credits_striker=False),
}


def parse_extras(value: Union[str, ExtrasKind, None]) -> ExtrasKind:
    """
    Accepts None / "" (no extra), an ExtrasKind, or its string value.
    Raises ValueError for anything else.
    """
    if value is None or value == "":
        return ExtrasKind.NONE
    if isinstance(value, ExtrasKind):
        return value
    return ExtrasKind(str(value).strip().lower())


def classify(extras: Union[str, ExtrasKind, None]) -> DeliveryClass:
    return _CLASSES[parse_extras(extras)]


def penalty_runs(extras: ExtrasKind, rules: ScoringRules) -> int:
    if extras == ExtrasKind.WIDE:
        return rules.wide_penalty_runs
    if extras == ExtrasKind.NO_BALL:
        return rules.no_ball_penalty_runs
    return 0


def extras_runs(event: BallEvent, rules: ScoringRules) -> int:
    """
    Runs on this delivery NOT credited to the striker.

    - none    : 0
    - wide    : penalty + every run taken (all wides)
    - no_ball : penalty + runs taken
    - bye/leg_bye : the runs taken
    """
    if classify(event.extras).credits_striker:
        return 0
    return event.runs_off_bat + penalty_runs(event.extras, rules)


def striker_runs(event: BallEvent) -> int:
    if classify(event.extras).credits_striker:
        return event.runs_off_bat
    return 0


def total_runs(event: BallEvent, rules: ScoringRules) -> int:
    """Everything the batting side banks from this delivery."""
    return event.runs_off_bat + penalty_runs(event.extras, rules)


def bowler_runs(event: BallEvent, rules: ScoringRules) -> int:
    """
    Runs charged to the bowler. Byes/leg-byes only when the match's rules
    say so.
    """
    if event.extras in (ExtrasKind.BYE, ExtrasKind.LEG_BYE) and not rules.byes_charged_to_bowler:
        return 0
    return total_runs(event, rules)
