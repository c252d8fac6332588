"""Request-scoped middleware: request ids and access logging."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from restwell.core.context import request_id_ctx_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
ELAPSED_HEADER = "X-Elapsed-Ms"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an id (client supplied or generated).

    The id is bound for log records and Opik spans emitted while the request
    runs, echoed back on the response, and the call is logged with its status
    and duration. 5xx responses log at WARNING.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        started = perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (perf_counter() - started) * 1000
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(level, "%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[ELAPSED_HEADER] = f"{elapsed_ms:.1f}"
        return response
