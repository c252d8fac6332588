"""Morning check-in route."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restwell.api.schemas.checkin import MorningCheckinRequest, MorningCheckinResponse
from restwell.core.config import settings
from restwell.core.context import bind_user_id
from restwell.db.deps import get_db
from restwell.observability.metrics import log_metric
from restwell.observability.tracing import trace
from restwell.services.evening_plan_service import local_today, record_morning_checkin

router = APIRouter()


@router.post("/checkins/morning", response_model=MorningCheckinResponse, tags=["checkins"])
def create_morning_checkin(
    request: MorningCheckinRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> MorningCheckinResponse:
    """Save last night's sleep rating and close the matching evening plan."""
    user_id = request.user_id
    request_id = getattr(http_request.state, "request_id", None)
    checkin_date = request.date or local_today(settings.plan_timezone)

    with bind_user_id(user_id), trace(
        "checkin.morning",
        metadata={
            "route": "/checkins/morning",
            "date": checkin_date.isoformat(),
            "completed_evening": request.completed_evening,
        },
        user_id=str(user_id),
        request_id=request_id,
    ):
        outcome = record_morning_checkin(
            db,
            user_id,
            checkin_date,
            request.sleep_rating_1_5,
            request.completed_evening,
        )
        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save check-in") from exc

    log_metric("checkin.sleep_rating", request.sleep_rating_1_5, metadata={"user_id": str(user_id)})
    return MorningCheckinResponse(closed_evening_for=outcome.closed_evening_for, warning=outcome.warning)
