"""Timeline ingestion routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restwell.api.schemas.timeline import TimelineCreateRequest, TimelineCreateResponse
from restwell.core.context import bind_user_id
from restwell.db.deps import get_db
from restwell.db.models.timeline import Timeline
from restwell.db.models.user_profile import UserProfile
from restwell.observability.metrics import log_metric
from restwell.observability.tracing import trace
from restwell.services.user_service import get_or_create_user

router = APIRouter()


@router.post("/timelines", response_model=TimelineCreateResponse, tags=["timelines"])
def create_timeline(
    request: TimelineCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TimelineCreateResponse:
    """Store a structurally valid timeline produced by the intake normalizer."""
    user_id = request.user_id
    request_id = getattr(http_request.state, "request_id", None)
    timeline_json = request.timeline_json.model_dump()

    with bind_user_id(user_id), trace(
        "timeline.create",
        metadata={"route": "/timelines", "anchors": len(timeline_json["anchors"])},
        user_id=str(user_id),
        request_id=request_id,
    ):
        get_or_create_user(db, user_id)
        if not timeline_json.get("bedtime_window"):
            profile = db.get(UserProfile, user_id)
            timeline_json["bedtime_window"] = (profile.bedtime_window if profile else None) or ""

        timeline = Timeline(user_id=user_id, timeline_json=timeline_json)
        db.add(timeline)
        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save timeline") from exc
        db.refresh(timeline)

    log_metric("timeline.anchors", len(timeline_json["anchors"]), metadata={"user_id": str(user_id)})
    return TimelineCreateResponse(
        id=timeline.id,
        user_id=timeline.user_id,
        created_at=timeline.created_at,
        anchors_count=len(timeline_json["anchors"]),
        bedtime_window=timeline_json["bedtime_window"],
    )
