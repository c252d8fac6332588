"""Map user-facing sleep goals onto the canonical optimization goals."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict


class CanonicalGoal(str, Enum):
    SLEEP_LATENCY = "sleep_latency"
    WAKE_FRESHNESS = "wake_freshness"
    CONSISTENCY = "consistency"
    MIXED = "mixed"


GOAL_ALIASES: Dict[str, CanonicalGoal] = {
    "fall asleep faster": CanonicalGoal.SLEEP_LATENCY,
    "sleep latency": CanonicalGoal.SLEEP_LATENCY,
    "fewer night wakeups": CanonicalGoal.CONSISTENCY,
    "wake sharper": CanonicalGoal.WAKE_FRESHNESS,
    "wake freshness": CanonicalGoal.WAKE_FRESHNESS,
}


def map_user_goal_to_canonical(goal: Any) -> CanonicalGoal:
    if not goal:
        return CanonicalGoal.MIXED
    return GOAL_ALIASES.get(str(goal).strip().lower(), CanonicalGoal.MIXED)


def canonical_or_mixed(value: Any) -> CanonicalGoal:
    """Re-validate an externally supplied canonical goal, defaulting to mixed."""
    try:
        return CanonicalGoal(value)
    except ValueError:
        return CanonicalGoal.MIXED


def canonicalize_goal(goal: Any) -> CanonicalGoal:
    return canonical_or_mixed(map_user_goal_to_canonical(goal))
