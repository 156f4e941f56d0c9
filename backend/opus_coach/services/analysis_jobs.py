"""Background runner for weekly-review analysis jobs."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from opus_coach.core.config import settings
from opus_coach.core.context import bind_request_id
from opus_coach.core.errors import AnalysisInProgressError
from opus_coach.db.models.analysis_job import AnalysisJob
from opus_coach.db.models.weekly_review import WeeklyReview
from opus_coach.observability.metrics import log_metric
from opus_coach.observability.tracing import trace
from opus_coach.services import coaching
from opus_coach.services.generation.router import GenerationRouter
from opus_coach.services.program.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

PENDING = "pending"
RUNNING = "running"
SUCCEEDED = "succeeded"
FAILED = "failed"


@dataclass
class SweepResult:
    jobs_found: int
    jobs_run: int
    jobs_succeeded: int


def run_analysis_job(session_factory: SessionFactory, job_id: UUID, router: GenerationRouter) -> Optional[str]:
    """
    Run one analysis job to completion, retrying in-process up to its attempt budget.

    Returns the final status, or None when the job no longer exists. Each attempt is
    committed before the provider call so progress is visible to pollers.
    """
    db = session_factory()
    try:
        job = db.get(AnalysisJob, job_id)
        if job is None:
            logger.warning("Analysis job %s vanished before it could run", job_id)
            return None
        with bind_request_id(job.request_id):
            return _run(db, job, router)
    finally:
        db.close()


def _run(db: Session, job: AnalysisJob, router: GenerationRouter) -> str:
    if job.status == SUCCEEDED:
        return job.status

    job_id = job.id
    while job.attempts < job.max_attempts:
        job.status = RUNNING
        job.attempts += 1
        db.commit()
        attempt = job.attempts
        try:
            with trace(
                "reflection.analysis.job",
                metadata={"job_id": str(job_id), "attempt": attempt},
                user_id=str(job.user_id),
            ):
                review = db.get(WeeklyReview, job.review_id)
                if review is None:
                    raise LookupError(f"Weekly review {job.review_id} not found")
                context = coaching.build_reflection_context(db, review)
                outcome = coaching.analyze_reflection(router, review.week_number, context)
        except Exception as exc:
            db.rollback()
            job = db.get(AnalysisJob, job_id)
            job.last_error = str(exc) or type(exc).__name__
            job.status = FAILED if job.attempts >= job.max_attempts else PENDING
            db.commit()
            logger.exception("Analysis job %s attempt %s/%s failed", job_id, attempt, job.max_attempts)
            log_metric("reflection.analysis.attempt_failed", 1, {"attempt": attempt})
            continue

        job.result = {"analysis": outcome.dump_value(), **outcome.summary()}
        job.provider = outcome.provider
        job.used_fallback = outcome.used_fallback
        job.last_error = None
        job.status = SUCCEEDED
        job.completed_at = utcnow()
        db.commit()
        logger.info(
            "Analysis job %s succeeded on attempt %s (provider=%s, fallback=%s)",
            job_id,
            attempt,
            outcome.provider,
            outcome.used_fallback,
        )
        log_metric("reflection.analysis.succeeded", 1, {"used_fallback": outcome.used_fallback})
        return job.status

    if job.status != FAILED:
        job.status = FAILED
        db.commit()
    log_metric("reflection.analysis.failed", 1)
    return job.status


def retry_analysis_job(db: Session, job: AnalysisJob) -> AnalysisJob:
    """Reset a finished job so it can run again with a fresh attempt budget."""
    if job.status in (PENDING, RUNNING):
        # Pending jobs already have a run queued, or the stale sweep will pick them up.
        raise AnalysisInProgressError(job.id, job.status)
    job.status = PENDING
    job.attempts = 0
    job.max_attempts = settings.reflection_analysis_max_attempts
    job.last_error = None
    job.completed_at = None
    db.commit()
    db.refresh(job)
    logger.info("Analysis job %s reset for manual retry", job.id)
    return job


def find_stale_jobs(db: Session, *, now: Optional[datetime] = None, stale_minutes: Optional[int] = None) -> List[AnalysisJob]:
    """Pending jobs older than the cutoff, plus running jobs that stopped making progress."""
    minutes = settings.analysis_job_stale_minutes if stale_minutes is None else stale_minutes
    cutoff = as_utc(now or utcnow()) - timedelta(minutes=minutes)
    candidates = db.query(AnalysisJob).filter(AnalysisJob.status.in_((PENDING, RUNNING))).all()
    stale = []
    for job in candidates:
        touched = job.updated_at or job.created_at
        if touched is None or as_utc(touched) <= cutoff:
            stale.append(job)
    return stale


def sweep_stale_jobs(
    session_factory: SessionFactory,
    router: GenerationRouter,
    *,
    now: Optional[datetime] = None,
    stale_minutes: Optional[int] = None,
) -> SweepResult:
    db = session_factory()
    try:
        stale = find_stale_jobs(db, now=now, stale_minutes=stale_minutes)
        job_ids = []
        for job in stale:
            if job.status == RUNNING:
                # The worker that owned this attempt died; the attempt does not count.
                job.status = PENDING
                job.attempts = max(job.attempts - 1, 0)
            job_ids.append(job.id)
        db.commit()
    finally:
        db.close()

    succeeded = 0
    for job_id in job_ids:
        status = run_analysis_job(session_factory, job_id, router)
        if status == SUCCEEDED:
            succeeded += 1
    if job_ids:
        logger.info("Analysis sweep re-ran %s stale jobs (%s succeeded)", len(job_ids), succeeded)
    log_metric("reflection.analysis.sweep", len(job_ids), {"succeeded": succeeded})
    return SweepResult(jobs_found=len(stale), jobs_run=len(job_ids), jobs_succeeded=succeeded)
