"""Main FastAPI application for the Opus coaching backend."""
from fastapi import FastAPI, Request

from opus_coach.api.routes.generation import router as generation_router
from opus_coach.api.routes.goals import router as goals_router
from opus_coach.api.routes.program import router as program_router
from opus_coach.api.routes.reflections import router as reflections_router
from opus_coach.core.config import settings
from opus_coach.core.logging import configure_logging
from opus_coach.core.middleware import RequestIDMiddleware
from opus_coach.observability.client import init_opik
from opus_coach.observability.tracing import trace
from opus_coach.services.generation.router import GenerationRouter

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(program_router)
app.include_router(generation_router)
app.include_router(goals_router)
app.include_router(reflections_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.on_event("startup")
async def startup_generation() -> None:
    """Build provider clients once; routes read them from app.state."""
    if getattr(app.state, "generation_router", None) is None:
        app.state.generation_router = GenerationRouter.from_settings(settings)


@app.get("/health", tags=["health"], summary="Readiness check")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can check the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
