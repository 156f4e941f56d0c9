"""Persistence helpers for goals and tasks."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from opus_coach.core.errors import GoalNotFoundError, TaskNotFoundError
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.task import Task
from opus_coach.services.program.clock import utcnow
from opus_coach.services.user_service import require_user


def create_goal(
    db: Session,
    user_id: UUID,
    *,
    title: str,
    description: str = "",
    category: str = "personal",
    week_number: Optional[int] = None,
    source: str = "manual",
) -> Goal:
    require_user(db, user_id)
    goal = Goal(
        user_id=user_id,
        title=title,
        description=description,
        category=category,
        week_number=week_number,
        source=source,
    )
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


def list_goals(db: Session, user_id: UUID, *, week_number: Optional[int] = None) -> List[Goal]:
    query = db.query(Goal).filter(Goal.user_id == user_id)
    if week_number is not None:
        query = query.filter(Goal.week_number == week_number)
    return query.order_by(Goal.created_at.asc()).all()


def get_goal(db: Session, goal_id: UUID, *, user_id: Optional[UUID] = None) -> Goal:
    goal = db.get(Goal, goal_id)
    if not goal or (user_id is not None and goal.user_id != user_id):
        raise GoalNotFoundError(goal_id)
    return goal


def create_task(
    db: Session,
    goal: Goal,
    *,
    title: str,
    description: Optional[str] = None,
    recommended_schedule: Optional[str] = None,
    estimated_time: Optional[str] = None,
) -> Task:
    task = Task(
        user_id=goal.user_id,
        goal_id=goal.id,
        title=title,
        description=description,
        recommended_schedule=recommended_schedule,
        estimated_time=estimated_time,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(db: Session, goal_id: UUID) -> List[Task]:
    return db.query(Task).filter(Task.goal_id == goal_id).order_by(Task.created_at.asc()).all()


def update_task(
    db: Session,
    task_id: UUID,
    *,
    user_id: UUID,
    title: Optional[str] = None,
    completed: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Task:
    """Apply a partial update; completing a task stamps completed_at and refreshes goal progress."""
    task = db.get(Task, task_id)
    if not task or task.user_id != user_id:
        raise TaskNotFoundError(task_id)

    if title is not None:
        task.title = title
    if completed is not None and completed != task.completed:
        task.completed = completed
        task.completed_at = (now or utcnow()) if completed else None
        db.flush()
        _refresh_goal_progress(db, task.goal_id)

    db.commit()
    db.refresh(task)
    return task


def _refresh_goal_progress(db: Session, goal_id: UUID) -> None:
    goal = db.get(Goal, goal_id)
    if not goal:
        return
    tasks = list_tasks(db, goal_id)
    if not tasks:
        goal.progress = 0
        return
    done = sum(1 for task in tasks if task.completed)
    goal.progress = round(done * 100 / len(tasks))
