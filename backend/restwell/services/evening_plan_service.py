"""Evening plans, shield events and the morning check-in that closes them."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from restwell.db.models.evening_plan import EveningPlan
from restwell.db.models.sleep_checkin import DailySleepCheckin
from restwell.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

PLAN_FIELDS = (
    "trigger_time_anchor",
    "trigger_place",
    "trigger_mood",
    "shield_type",
    "shield_time",
    "divert_ritual",
    "started_now",
)
EVENING_OUTCOMES = ("done", "partly", "skipped")
NO_PLAN_WARNING = (
    "No evening plan matched the check-in date or the day before; saved the morning check-in only."
)


@dataclass
class CheckinOutcome:
    checkin: DailySleepCheckin
    closed_evening_for: Optional[date] = None
    warning: Optional[str] = None


def local_today(tz_name: str) -> date:
    """Calendar date in the plan timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def upsert_evening_plan(db: Session, user_id: UUID, plan_date: date, fields: Mapping[str, Any]) -> EveningPlan:
    """Create or replace the user's plan for ``plan_date``. The caller commits."""
    get_or_create_user(db, user_id)
    plan = (
        db.query(EveningPlan)
        .filter(EveningPlan.user_id == user_id, EveningPlan.date == plan_date)
        .one_or_none()
    )
    if plan is None:
        plan = EveningPlan(user_id=user_id, date=plan_date)
        db.add(plan)

    for name in PLAN_FIELDS:
        if name in fields:
            setattr(plan, name, fields[name])
    plan.armed_at = datetime.now(timezone.utc) if plan.started_now else None
    db.flush()
    return plan


def get_owned_plan(db: Session, plan_id: UUID, user_id: UUID) -> Optional[EveningPlan]:
    """Return the plan only when it belongs to ``user_id``."""
    plan = db.get(EveningPlan, plan_id)
    if plan is None or plan.user_id != user_id:
        return None
    return plan


def apply_shield_event(plan: EveningPlan, action: str, reason: Optional[str] = None) -> Dict[str, Any]:
    """
    Patch a plan for a runtime shield action and return the applied changes.

    ``shield_snooze`` is rescheduled on the client and changes nothing here.
    """
    patch: Dict[str, Any] = {}
    if action == "shield_done":
        patch = {"completed_evening": "done"}
    elif action == "shield_skip":
        patch = {"completed_evening": "skipped", "skip_reason": reason or None}

    for name, value in patch.items():
        setattr(plan, name, value)
    return patch


def record_morning_checkin(
    db: Session,
    user_id: UUID,
    checkin_date: date,
    sleep_rating: int,
    completed_evening: str,
) -> CheckinOutcome:
    """
    Upsert the check-in for ``checkin_date`` and close last night's plan.

    The plan dated ``checkin_date`` is tried first, then the previous day's.
    When neither exists the check-in is still kept and a warning is returned.
    The caller commits.
    """
    get_or_create_user(db, user_id)
    checkin = (
        db.query(DailySleepCheckin)
        .filter(DailySleepCheckin.user_id == user_id, DailySleepCheckin.date == checkin_date)
        .one_or_none()
    )
    if checkin is None:
        checkin = DailySleepCheckin(user_id=user_id, date=checkin_date, sleep_rating_1_5=sleep_rating)
        db.add(checkin)
    else:
        checkin.sleep_rating_1_5 = sleep_rating
    db.flush()

    for candidate in (checkin_date, checkin_date - timedelta(days=1)):
        plan = (
            db.query(EveningPlan)
            .filter(EveningPlan.user_id == user_id, EveningPlan.date == candidate)
            .one_or_none()
        )
        if plan is not None:
            plan.completed_evening = completed_evening
            db.flush()
            return CheckinOutcome(checkin=checkin, closed_evening_for=candidate)

    logger.warning("Morning check-in for %s has no evening plan to close", checkin_date.isoformat())
    return CheckinOutcome(checkin=checkin, warning=NO_PLAN_WARNING)
