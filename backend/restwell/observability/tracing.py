"""Opik spans for route handlers, tagged with the bound request and user."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from restwell.core.context import get_request_id, get_user_id
from restwell.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def span_metadata(
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge caller metadata with the user and request ids, falling back to the bound context."""
    merged = dict(metadata or {})
    user = user_id or get_user_id()
    request = request_id or get_request_id()
    if user:
        merged.setdefault("user_id", str(user))
    if request:
        merged.setdefault("request_id", request)
    return merged


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Open an Opik span around a block of work.

    Yields ``None`` when Opik is off. An exception escaping the block is
    recorded on the span before it propagates; the span is always ended.
    """
    span = _start(name, span_metadata(metadata, user_id, request_id))
    try:
        yield span
    except Exception as exc:
        _call(span, "update", name, error_info={"message": str(exc)})
        raise
    finally:
        _call(span, "end", name)


def annotate(span: Optional["Trace"], metadata: Dict[str, Any]) -> None:
    """Replace the metadata of an open span; no-op when ``span`` is ``None``."""
    _call(span, "update", "annotate", metadata=metadata)


def _start(name: str, metadata: Dict[str, Any]) -> Optional["Trace"]:
    client = get_opik_client()
    if not client:
        return None
    try:
        return client.trace(name=name, metadata=metadata or None)
    except Exception as exc:  # pragma: no cover - remote failure
        logger.debug("Unable to start Opik trace %s: %s", name, exc)
        return None


def _call(span: Optional["Trace"], method: str, name: str, **kwargs: Any) -> None:
    if not span:
        return
    try:
        getattr(span, method)(**kwargs)
    except Exception:  # pragma: no cover - remote failure
        logger.debug("Opik %s failed for trace %s", method, name, exc_info=True)
