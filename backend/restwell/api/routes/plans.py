"""Evening plan routes: tonight's plan and runtime shield events."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restwell.api.schemas.plan import (
    EveningPlanRequest,
    EveningPlanResponse,
    ShieldEventRequest,
    ShieldEventResponse,
)
from restwell.core.config import settings
from restwell.core.context import bind_user_id
from restwell.db.deps import get_db
from restwell.observability.metrics import log_metric
from restwell.observability.tracing import trace
from restwell.services.evening_plan_service import (
    PLAN_FIELDS,
    apply_shield_event,
    get_owned_plan,
    local_today,
    upsert_evening_plan,
)

router = APIRouter(prefix="/plans", tags=["plans"])


@router.post("/tonight", response_model=EveningPlanResponse)
def create_tonight_plan(
    request: EveningPlanRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> EveningPlanResponse:
    """Create or replace the user's evening plan for a date (one plan per day)."""
    user_id = request.user_id
    request_id = getattr(http_request.state, "request_id", None)
    plan_date = request.date or local_today(settings.plan_timezone)
    metadata: Dict[str, Any] = {
        "route": "/plans/tonight",
        "date": plan_date.isoformat(),
        "started_now": request.started_now,
    }

    with bind_user_id(user_id), trace(
        "plan.tonight",
        metadata=metadata,
        user_id=str(user_id),
        request_id=request_id,
    ):
        plan = upsert_evening_plan(db, user_id, plan_date, request.model_dump(include=set(PLAN_FIELDS)))
        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save evening plan") from exc
        db.refresh(plan)

    log_metric("plan.tonight.armed", 1 if plan.armed_at else 0, metadata={"user_id": str(user_id)})
    return EveningPlanResponse(plan_id=plan.id, date=plan.date, armed=plan.armed_at is not None)


@router.post("/events", response_model=ShieldEventResponse)
def record_shield_event(
    request: ShieldEventRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ShieldEventResponse:
    """Apply a runtime shield action (done, snooze, skip) to the user's plan."""
    user_id = request.user_id
    request_id = getattr(http_request.state, "request_id", None)

    with bind_user_id(user_id), trace(
        "plan.shield_event",
        metadata={"route": "/plans/events", "plan_id": str(request.plan_id), "action": request.action},
        user_id=str(user_id),
        request_id=request_id,
    ):
        plan = get_owned_plan(db, request.plan_id, user_id)
        if plan is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")

        patch = apply_shield_event(plan, request.action, request.reason)
        if patch:
            try:
                db.commit()
            except IntegrityError as exc:  # pragma: no cover - DB constraint guard
                db.rollback()
                raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update plan") from exc
            db.refresh(plan)

    log_metric(f"plan.{request.action}", 1, metadata={"user_id": str(user_id)})
    return ShieldEventResponse(completed_evening=plan.completed_evening, skip_reason=plan.skip_reason)
