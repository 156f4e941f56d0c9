"""Caller-facing generation operations: goals, tasks and reflection analysis."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from opus_coach.core.config import settings
from opus_coach.core.context import get_request_id
from opus_coach.core.errors import InvalidWeekError, MissingContextError, ProgramNotStartedError, ReviewNotFoundError
from opus_coach.db.models.analysis_job import AnalysisJob
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.task import Task
from opus_coach.db.models.user import User
from opus_coach.db.models.weekly_review import WeeklyReview
from opus_coach.services import goal_service
from opus_coach.services.generation.router import GenerationRouter
from opus_coach.services.generation.types import (
    ExistingGoal,
    GenerationKind,
    GenerationOutcome,
    GoalContext,
    GoalProgress,
    ReflectionContext,
    ReflectionPromptContext,
    TaskContext,
)
from opus_coach.services.program import clock
from opus_coach.services.program import service as program_service
from opus_coach.services.program.themes import DAYS_PER_WEEK, is_program_week

logger = logging.getLogger(__name__)


@dataclass
class ReflectionSubmission:
    review: WeeklyReview
    job: AnalysisJob


def _resolve_week(db: Session, user_id: UUID, week: Optional[int], now: Optional[datetime]) -> Tuple[User, int]:
    status = program_service.get_current_week(db, user_id, now=now)
    user = db.get(User, user_id)
    if week is None:
        if status.program_week < 1:
            raise ProgramNotStartedError()
        week = status.program_week
    if not is_program_week(week):
        raise InvalidWeekError(week)
    return user, week


def _north_star(user: User) -> str:
    north_star = (user.north_star or "").strip()
    if not north_star:
        raise MissingContextError("A north star is required before generating coaching content")
    return north_star


def generate_goals(
    db: Session,
    router: GenerationRouter,
    user_id: UUID,
    *,
    week: Optional[int] = None,
    now: Optional[datetime] = None,
) -> GenerationOutcome:
    """Suggest goals for `week` (defaults to the user's current week), avoiding existing ones."""
    user, week = _resolve_week(db, user_id, week, now)
    existing = [
        ExistingGoal(title=goal.title, description=goal.description or "")
        for goal in goal_service.list_goals(db, user_id)
    ]
    context = GoalContext(north_star=_north_star(user), existing_goals=tuple(existing))
    return router.route(GenerationKind.GOALS, week, context)


def generate_tasks(
    db: Session,
    router: GenerationRouter,
    user_id: UUID,
    goal_id: UUID,
    *,
    now: Optional[datetime] = None,
) -> GenerationOutcome:
    """Break a stored goal into tasks, using the goal's own week when it has one."""
    goal = goal_service.get_goal(db, goal_id, user_id=user_id)
    user, week = _resolve_week(db, user_id, goal.week_number, now)
    context = TaskContext(
        north_star=_north_star(user),
        goal=ExistingGoal(title=goal.title, description=goal.description or ""),
    )
    return router.route(GenerationKind.TASKS, week, context)


def generate_reflection_prompt(
    db: Session,
    router: GenerationRouter,
    user_id: UUID,
    *,
    week: Optional[int] = None,
    now: Optional[datetime] = None,
) -> GenerationOutcome:
    """Ask for one weekly-review question shaped by the user's recent goals and tasks."""
    user, week = _resolve_week(db, user_id, week, now)
    goals = goal_service.list_goals(db, user_id)
    week_goals = [goal for goal in goals if goal.week_number == week] or goals
    completed = _completed_tasks(db, [goal.id for goal in week_goals])
    day_in_week = 0
    if user.program_start_date is not None:
        day_in_week = max(clock.days_elapsed(user.program_start_date, now), 0) % DAYS_PER_WEEK
    context = ReflectionPromptContext(
        total_goals=len(goals),
        open_goals=tuple(
            GoalProgress(title=goal.title, progress=goal.progress or 0)
            for goal in week_goals
            if (goal.progress or 0) < 100
        ),
        completed_tasks=tuple(task.title for task in completed),
        day_in_week=day_in_week,
    )
    return router.route(GenerationKind.REFLECTION_PROMPT, week, context)


def analyze_reflection(router: GenerationRouter, week: int, context: ReflectionContext) -> GenerationOutcome:
    return router.route(GenerationKind.REFLECTION, week, context)


def build_reflection_context(db: Session, review: WeeklyReview) -> ReflectionContext:
    """Collect the review text plus the week's goal progress and completed tasks."""
    goals: List[Goal] = goal_service.list_goals(db, review.user_id, week_number=review.week_number)
    if not goals:
        goals = goal_service.list_goals(db, review.user_id)
    completed = _completed_tasks(db, [goal.id for goal in goals])
    return ReflectionContext(
        wins=review.wins or "",
        lessons=review.lessons or "",
        next_steps=review.next_steps or "",
        goals=tuple(GoalProgress(title=goal.title, progress=goal.progress or 0) for goal in goals),
        completed_tasks=tuple(task.title for task in completed),
    )


def _completed_tasks(db: Session, goal_ids: List[UUID]) -> List[Task]:
    if not goal_ids:
        return []
    return (
        db.query(Task)
        .filter(Task.goal_id.in_(goal_ids), Task.completed.is_(True))
        .order_by(Task.completed_at.asc())
        .all()
    )


def submit_reflection(
    db: Session,
    user_id: UUID,
    *,
    wins: str | None = None,
    lessons: str | None = None,
    next_steps: str | None = None,
    week: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ReflectionSubmission:
    """Persist a weekly review and queue its analysis job; the caller schedules the run."""
    _, week = _resolve_week(db, user_id, week, now)
    review = WeeklyReview(
        user_id=user_id,
        week_number=week,
        wins=wins,
        lessons=lessons,
        next_steps=next_steps,
    )
    db.add(review)
    db.flush()
    job = AnalysisJob(
        user_id=user_id,
        review_id=review.id,
        status="pending",
        attempts=0,
        max_attempts=settings.reflection_analysis_max_attempts,
        request_id=get_request_id(),
    )
    db.add(job)
    db.commit()
    db.refresh(review)
    db.refresh(job)
    logger.info("Weekly review %s stored for user %s (week %s); analysis job %s queued", review.id, user_id, week, job.id)
    return ReflectionSubmission(review=review, job=job)


def latest_job_for_review(db: Session, review_id: UUID, *, user_id: Optional[UUID] = None) -> AnalysisJob:
    review = db.get(WeeklyReview, review_id)
    if not review or (user_id is not None and review.user_id != user_id):
        raise ReviewNotFoundError(review_id)
    job = (
        db.query(AnalysisJob)
        .filter(AnalysisJob.review_id == review_id)
        .order_by(AnalysisJob.created_at.desc())
        .first()
    )
    if not job:
        raise ReviewNotFoundError(review_id)
    return job
