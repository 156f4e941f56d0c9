"""AI suggestion endpoints for goals, tasks and weekly-review questions."""
from __future__ import annotations

from time import perf_counter
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from opus_coach.api.deps import get_generation_router
from opus_coach.api.schemas.generation import (
    GoalGenerationRequest,
    GoalGenerationResponse,
    ProviderAttemptResponse,
    ReflectionPromptResponse,
    TaskGenerationRequest,
    TaskGenerationResponse,
)
from opus_coach.core.errors import (
    GoalNotFoundError,
    InvalidWeekError,
    MissingContextError,
    ProgramNotStartedError,
    UserNotFoundError,
)
from opus_coach.db.deps import get_db
from opus_coach.observability.metrics import log_metric
from opus_coach.observability.tracing import trace
from opus_coach.services import coaching
from opus_coach.services.generation.router import GenerationRouter
from opus_coach.services.generation.types import GenerationOutcome

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/goals", response_model=GoalGenerationResponse)
def suggest_goals(
    payload: GoalGenerationRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    generation_router: GenerationRouter = Depends(get_generation_router),
) -> GoalGenerationResponse:
    """Suggest week-themed goals anchored to the user's north star."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/ai/goals", "week": payload.week, "request_id": request_id}
    start = perf_counter()
    try:
        with trace("ai.goals", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            outcome = coaching.generate_goals(db, generation_router, payload.user_id, week=payload.week)
    except Exception as exc:
        db.rollback()
        raise _to_http(exc)

    _record("ai.goals", outcome, start)
    return GoalGenerationResponse(
        week=outcome.week,
        goals=outcome.value,
        request_id=request_id or "",
        **_meta(outcome),
    )


@router.post("/goals/{goal_id}/tasks", response_model=TaskGenerationResponse)
def suggest_tasks(
    goal_id: UUID,
    payload: TaskGenerationRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    generation_router: GenerationRouter = Depends(get_generation_router),
) -> TaskGenerationResponse:
    """Break a stored goal into week-themed tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/ai/goals/{goal_id}/tasks", "goal_id": str(goal_id), "request_id": request_id}
    start = perf_counter()
    try:
        with trace("ai.tasks", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            outcome = coaching.generate_tasks(db, generation_router, payload.user_id, goal_id)
    except Exception as exc:
        db.rollback()
        raise _to_http(exc)

    _record("ai.tasks", outcome, start)
    return TaskGenerationResponse(
        goal_id=goal_id,
        week=outcome.week,
        tasks=outcome.value,
        request_id=request_id or "",
        **_meta(outcome),
    )


@router.get("/reflection-prompt", response_model=ReflectionPromptResponse)
def suggest_reflection_prompt(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID to shape the question for"),
    week: Optional[int] = Query(default=None, description="Defaults to the user's current program week"),
    db: Session = Depends(get_db),
    generation_router: GenerationRouter = Depends(get_generation_router),
) -> ReflectionPromptResponse:
    """Suggest one question to open this week's review."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/ai/reflection-prompt", "week": week, "request_id": request_id}
    start = perf_counter()
    try:
        with trace("ai.reflection_prompt", metadata=metadata, user_id=str(user_id), request_id=request_id):
            outcome = coaching.generate_reflection_prompt(db, generation_router, user_id, week=week)
    except Exception as exc:
        db.rollback()
        raise _to_http(exc)

    _record("ai.reflection_prompt", outcome, start)
    return ReflectionPromptResponse(
        week=outcome.week,
        prompt=outcome.value.prompt,
        request_id=request_id or "",
        **_meta(outcome),
    )


def _to_http(exc: Exception) -> Exception:
    if isinstance(exc, (UserNotFoundError, GoalNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (InvalidWeekError, MissingContextError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ProgramNotStartedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return exc


def _meta(outcome: GenerationOutcome) -> dict:
    return {
        "provider": outcome.provider,
        "used_fallback": outcome.used_fallback,
        "attempts": [
            ProviderAttemptResponse(
                provider=attempt.provider,
                outcome=attempt.outcome,
                latency_ms=attempt.latency_ms,
                error=attempt.error,
            )
            for attempt in outcome.attempts
        ],
    }


def _record(name: str, outcome: GenerationOutcome, start: float) -> None:
    latency_ms = (perf_counter() - start) * 1000
    metadata = {"week": outcome.week, "used_fallback": outcome.used_fallback}
    log_metric(f"{name}.success", 1, metadata=metadata)
    count = len(outcome.value) if isinstance(outcome.value, list) else 1
    log_metric(f"{name}.count", count, metadata=metadata)
    log_metric(f"{name}.latency_ms", latency_ms, metadata=metadata)
