"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from restwell.observability.client import get_opik_client

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Log a metric to Opik if it is enabled."""
    client = get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
    except Exception as exc:  # pragma: no cover - remote failure
        logger.debug("Unable to record metric %s: %s", name, exc)
        return

    try:
        metric_trace.end()
    except Exception:  # pragma: no cover
        logger.debug("Failed to close metric trace %s", name, exc_info=True)


def log_delta_metrics(
    *,
    avg_confidence: float,
    used_fallback: bool,
    top3_count: int,
    engine_version: str,
    user_id: Optional[str] = None,
) -> None:
    """Record the standard set of metrics for one engine run."""
    metadata: Dict[str, Any] = {"engine_version": engine_version}
    if user_id:
        metadata["user_id"] = user_id
    log_metric("delta.avg_confidence", round(avg_confidence, 3), metadata=metadata)
    log_metric("delta.fallback_used", 1 if used_fallback else 0, metadata=metadata)
    log_metric("delta.top3_count", top3_count, metadata=metadata)
