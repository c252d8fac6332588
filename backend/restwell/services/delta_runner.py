"""Run the delta engine for a user and persist the outcome."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.orm import Session

from restwell.db.models.engine_run import EngineRun
from restwell.db.models.ritual import Ritual
from restwell.db.models.timeline import Timeline
from restwell.db.models.user_profile import UserProfile
from restwell.services.delta.anchors import DEFAULT_RULES, NormalizationRules, NormalizedAnchors, normalize_anchors
from restwell.services.delta.goals import CanonicalGoal, canonicalize_goal
from restwell.services.delta.scoring import DeltaResult, Top3Item, UserContext, compute_top3
from restwell.services.user_service import get_or_create_user, user_context_for

logger = logging.getLogger(__name__)

CATEGORY_PALETTE = {
    "sleep": "#8B5CF6",
    "food": "#F59E0B",
    "mind": "#06B6D4",
    "movement": "#22C55E",
}
TIME_BLOCKS = {"Morning", "Day", "Evening", "Night"}


@dataclass
class DeltaComputation:
    canonical_goal: CanonicalGoal
    normalized: NormalizedAnchors
    result: DeltaResult


@dataclass
class DeltaRunOutcome:
    engine_run: EngineRun
    computation: DeltaComputation
    rituals: List[Ritual] = field(default_factory=list)


def compute_delta(
    timeline_json: Any,
    goal: Any,
    ideal_map: Sequence[Mapping[str, Any]],
    user_context: Optional[Mapping[str, Any]] = None,
    rules: NormalizationRules = DEFAULT_RULES,
) -> DeltaComputation:
    """Normalize, canonicalize and score without touching the database."""
    canonical_goal = canonicalize_goal(goal)
    normalized = normalize_anchors(timeline_json, rules)
    result = compute_top3(normalized, canonical_goal, ideal_map, UserContext.from_mapping(user_context))
    return DeltaComputation(canonical_goal=canonical_goal, normalized=normalized, result=result)


def latest_timeline(db: Session, user_id: UUID) -> Optional[Timeline]:
    return (
        db.query(Timeline)
        .filter(Timeline.user_id == user_id)
        .order_by(desc(Timeline.created_at))
        .first()
    )


def run_delta_for_user(
    db: Session,
    user_id: UUID,
    *,
    ideal_map: Sequence[Mapping[str, Any]],
    engine_version: str,
) -> Optional[DeltaRunOutcome]:
    """
    Score the user's latest timeline, store an engine run and upsert rituals.

    Returns ``None`` when the user has no timeline yet. The caller owns the
    transaction and is expected to commit.
    """
    get_or_create_user(db, user_id)
    timeline = latest_timeline(db, user_id)
    if timeline is None:
        return None

    profile = db.get(UserProfile, user_id)
    goal = profile.goal if profile is not None else None
    computation = compute_delta(timeline.timeline_json or {}, goal, ideal_map, user_context_for(profile))
    result = computation.result
    payload = result.to_dict()

    engine_run = EngineRun(
        user_id=user_id,
        timeline_id=timeline.id,
        engine_version=engine_version,
        goal=computation.canonical_goal.value,
        top3_json=payload["top3_json"],
        opportunity_scores=payload["opportunity_scores"],
        fallback_used=result.used_fallback,
    )
    db.add(engine_run)
    db.flush()

    rituals = upsert_rituals(db, user_id, result.top3)
    logger.info(
        "Engine run %s stored (goal=%s, fallback=%s, picks=%d)",
        engine_run.id,
        engine_run.goal,
        result.used_fallback,
        len(result.top3),
    )
    return DeltaRunOutcome(engine_run=engine_run, computation=computation, rituals=rituals)


def upsert_rituals(db: Session, user_id: UUID, items: Sequence[Top3Item]) -> List[Ritual]:
    """Activate one ritual row per Top-3 item, keyed by name, category and time block."""
    rituals: List[Ritual] = []
    for item in items:
        name = (item.ritual_name or "").strip()
        if not name:
            logger.warning("Skipping ritual upsert for an unnamed Top-3 item")
            continue
        category = category_to_enum(item.category)
        values: Dict[str, Any] = {
            "name": name,
            "category": category.capitalize(),
            "time_block": time_block_for(item.system_block),
            "tagline": item.how_to or "",
            "color": CATEGORY_PALETTE.get(category, CATEGORY_PALETTE["sleep"]),
        }
        ritual = (
            db.query(Ritual)
            .filter(
                Ritual.user_id == user_id,
                Ritual.category == values["category"],
                Ritual.time_block == values["time_block"],
                Ritual.name == values["name"],
            )
            .one_or_none()
        )
        if ritual is None:
            ritual = Ritual(user_id=user_id, **values)
            db.add(ritual)
        else:
            ritual.tagline = values["tagline"]
            ritual.color = values["color"]
        ritual.active = True
        db.flush()
        rituals.append(ritual)
    return rituals


def category_to_enum(category: Optional[str]) -> str:
    lowered = (category or "").lower()
    if lowered.startswith("food"):
        return "food"
    if lowered.startswith("move"):
        return "movement"
    if lowered.startswith("mind"):
        return "mind"
    return "sleep"


def time_block_for(system_block: Optional[str]) -> str:
    return system_block if system_block in TIME_BLOCKS else "Night"
