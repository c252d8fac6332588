"""Main FastAPI application for the Restwell backend."""
from fastapi import FastAPI, Request

from restwell.api.routes.checkins import router as checkins_router
from restwell.api.routes.delta import router as delta_router
from restwell.api.routes.plans import router as plans_router
from restwell.api.routes.profile import router as profile_router
from restwell.api.routes.rituals import router as rituals_router
from restwell.api.routes.timelines import router as timelines_router
from restwell.core.config import settings
from restwell.core.logging import configure_logging
from restwell.core.middleware import RequestIDMiddleware
from restwell.observability.client import init_opik
from restwell.observability.tracing import trace
from restwell.services.delta.catalog import get_ideal_map

configure_logging(log_level=settings.log_level, engine_log_level=settings.engine_log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(profile_router)
app.include_router(timelines_router)
app.include_router(delta_router)
app.include_router(rituals_router)
app.include_router(plans_router)
app.include_router(checkins_router)


@app.on_event("startup")
async def startup() -> None:
    """Initialize observability and load the ritual catalog once per process."""
    init_opik()
    get_ideal_map()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
