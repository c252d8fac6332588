"""Profile API routes."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restwell.api.schemas.profile import ProfileResponse, ProfileUpdateRequest
from restwell.core.context import bind_user_id
from restwell.db.deps import get_db
from restwell.observability.tracing import trace
from restwell.services.delta.goals import canonicalize_goal
from restwell.services.user_service import upsert_profile

router = APIRouter()


@router.put("/profile", response_model=ProfileResponse, tags=["profile"])
def update_profile(
    request: ProfileUpdateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Create or update the goal and life-context flags for a user."""
    user_id = request.user_id
    request_id = getattr(http_request.state, "request_id", None)
    changes: Dict[str, Any] = request.model_dump(exclude={"user_id"}, exclude_unset=True)

    with bind_user_id(user_id), trace(
        "profile.update",
        metadata={"route": "/profile", "fields": sorted(changes)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        profile = upsert_profile(db, user_id, changes)
        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save profile") from exc
        db.refresh(profile)

    return ProfileResponse(
        user_id=profile.user_id,
        preferred_name=profile.preferred_name,
        goal=profile.goal,
        canonical_goal=canonicalize_goal(profile.goal).value,
        bedtime_window=profile.bedtime_window,
        has_kids=bool(profile.has_kids),
        shift_worker=bool(profile.shift_worker),
    )
