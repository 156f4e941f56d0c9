"""Weekly reflection submission and analysis-job routes."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from opus_coach.api.deps import background_session_factory, get_generation_router
from opus_coach.api.schemas.reflections import (
    AnalysisJobResponse,
    AnalysisRetryRequest,
    ReflectionCreateRequest,
    ReflectionCreateResponse,
)
from opus_coach.core.errors import (
    AnalysisInProgressError,
    InvalidWeekError,
    ProgramNotStartedError,
    ReviewNotFoundError,
    UserNotFoundError,
)
from opus_coach.db.deps import get_db
from opus_coach.db.models.analysis_job import AnalysisJob
from opus_coach.observability.metrics import log_metric
from opus_coach.observability.tracing import trace
from opus_coach.services import analysis_jobs, coaching
from opus_coach.services.generation.router import GenerationRouter

router = APIRouter(prefix="/reflections", tags=["reflections"])


@router.post("", response_model=ReflectionCreateResponse, status_code=status.HTTP_202_ACCEPTED)
def submit_reflection(
    payload: ReflectionCreateRequest,
    http_request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    generation_router: GenerationRouter = Depends(get_generation_router),
) -> ReflectionCreateResponse:
    """Store a weekly review and analyze it in the background."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/reflections", "week": payload.week, "request_id": request_id}
    try:
        with trace("reflection.submit", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            submission = coaching.submit_reflection(
                db,
                payload.user_id,
                wins=payload.wins,
                lessons=payload.lessons,
                next_steps=payload.next_steps,
                week=payload.week,
            )
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidWeekError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProgramNotStartedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    background_tasks.add_task(
        analysis_jobs.run_analysis_job,
        background_session_factory(db),
        submission.job.id,
        generation_router,
    )
    log_metric("reflection.submit.success", 1, metadata={"week": submission.review.week_number})
    return ReflectionCreateResponse(
        review_id=submission.review.id,
        job_id=submission.job.id,
        week_number=submission.review.week_number,
        status=submission.job.status,
        request_id=request_id or "",
    )


@router.get("/{review_id}/analysis", response_model=AnalysisJobResponse)
def get_analysis(
    review_id: UUID,
    http_request: Request,
    user_id: Optional[UUID] = Query(default=None, description="Owner of the review"),
    db: Session = Depends(get_db),
) -> AnalysisJobResponse:
    """Poll the analysis job for a weekly review."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        job = coaching.latest_job_for_review(db, review_id, user_id=user_id)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Weekly review not found") from exc
    return _job_response(job, request_id)


@router.post("/{review_id}/analysis/retry", response_model=AnalysisJobResponse, status_code=status.HTTP_202_ACCEPTED)
def retry_analysis(
    review_id: UUID,
    payload: AnalysisRetryRequest,
    http_request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    generation_router: GenerationRouter = Depends(get_generation_router),
) -> AnalysisJobResponse:
    """Re-run analysis for a review whose job failed or fell back to static content."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace(
            "reflection.analysis.retry",
            metadata={"review_id": str(review_id)},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            job = coaching.latest_job_for_review(db, review_id, user_id=payload.user_id)
            job = analysis_jobs.retry_analysis_job(db, job)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Weekly review not found") from exc
    except AnalysisInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    background_tasks.add_task(
        analysis_jobs.run_analysis_job,
        background_session_factory(db),
        job.id,
        generation_router,
    )
    log_metric("reflection.analysis.retry", 1)
    return _job_response(job, request_id)


def _job_response(job: AnalysisJob, request_id: str | None) -> AnalysisJobResponse:
    result = job.result or {}
    return AnalysisJobResponse(
        job_id=job.id,
        review_id=job.review_id,
        status=job.status,
        attempts=job.attempts or 0,
        max_attempts=job.max_attempts or 0,
        provider=job.provider,
        used_fallback=bool(job.used_fallback),
        analysis=result.get("analysis"),
        last_error=job.last_error,
        completed_at=job.completed_at,
        request_id=request_id or "",
    )
