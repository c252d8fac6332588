"""Delta engine routes: persisted runs and stateless previews."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restwell.api.schemas.delta import (
    ComputeDeltaRequest,
    ComputeDeltaResponse,
    DeltaPreviewRequest,
    DeltaPreviewResponse,
)
from restwell.core.config import settings
from restwell.core.context import bind_user_id
from restwell.db.deps import get_db
from restwell.observability.metrics import log_delta_metrics
from restwell.observability.tracing import annotate, trace
from restwell.services.delta.catalog import IdealMap, get_ideal_map
from restwell.services.delta_runner import compute_delta, run_delta_for_user

router = APIRouter(prefix="/delta", tags=["delta"])


@router.post("/compute", response_model=ComputeDeltaResponse)
def compute_user_delta(
    request: ComputeDeltaRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    ideal_map: IdealMap = Depends(get_ideal_map),
) -> ComputeDeltaResponse:
    """Score the user's latest timeline, persist the run and activate the Top-3 rituals."""
    user_id = request.user_id
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/delta/compute",
        "engine_version": settings.engine_version,
        "catalog_version": ideal_map.version,
    }

    with bind_user_id(user_id), trace(
        "delta.compute",
        metadata=metadata,
        user_id=str(user_id),
        request_id=request_id,
    ) as span:
        outcome = run_delta_for_user(
            db,
            user_id,
            ideal_map=ideal_map.items,
            engine_version=settings.engine_version,
        )
        if outcome is None:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No timeline found")

        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save engine run") from exc

        computation = outcome.computation
        result = computation.result
        annotate(
            span,
            {
                **metadata,
                "fallback_used": result.used_fallback,
                "avg_confidence": computation.normalized.avg_confidence,
                "rollover_flag": computation.normalized.rollover_flag,
            },
        )

    log_delta_metrics(
        avg_confidence=computation.normalized.avg_confidence,
        used_fallback=result.used_fallback,
        top3_count=len(result.top3),
        engine_version=settings.engine_version,
        user_id=str(user_id),
    )
    payload = result.to_dict()
    return ComputeDeltaResponse(
        engine_version=settings.engine_version,
        top3_json=payload["top3_json"],
        opportunity_scores=payload["opportunity_scores"],
        fallback_used=result.used_fallback,
        engine_run_id=outcome.engine_run.id,
    )


@router.post("/preview", response_model=DeltaPreviewResponse)
def preview_delta(
    request: DeltaPreviewRequest,
    http_request: Request,
    ideal_map: IdealMap = Depends(get_ideal_map),
) -> DeltaPreviewResponse:
    """Run the engine on a supplied timeline without persisting anything."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "delta.preview",
        metadata={"route": "/delta/preview", "engine_version": settings.engine_version},
        request_id=request_id,
    ):
        computation = compute_delta(
            request.timeline_json,
            request.goal,
            ideal_map.items,
            {"has_kids": request.has_kids, "shift_worker": request.shift_worker},
        )

    payload = computation.result.to_dict()
    return DeltaPreviewResponse(
        engine_version=settings.engine_version,
        top3_json=payload["top3_json"],
        opportunity_scores=payload["opportunity_scores"],
        fallback_used=computation.result.used_fallback,
        canonical_goal=computation.canonical_goal.value,
        normalized=computation.normalized.to_dict(),
    )
