"""Goal and task persistence routes."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from opus_coach.api.schemas.goals import (
    GoalCreateRequest,
    GoalListResponse,
    GoalResponse,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
    TaskUpdateResponse,
)
from opus_coach.core.errors import GoalNotFoundError, TaskNotFoundError, UserNotFoundError
from opus_coach.db.deps import get_db
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.task import Task
from opus_coach.observability.metrics import log_metric
from opus_coach.observability.tracing import trace
from opus_coach.services import goal_service

router = APIRouter()


@router.post("/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED, tags=["goals"])
def create_goal(
    payload: GoalCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> GoalResponse:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/goals", "week_number": payload.week_number, "source": payload.source}
    try:
        with trace("goal.create", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            goal = goal_service.create_goal(
                db,
                payload.user_id,
                title=payload.title,
                description=payload.description,
                category=payload.category,
                week_number=payload.week_number,
                source=payload.source,
            )
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    log_metric("goal.create.success", 1, metadata={"source": payload.source})
    return _goal_response(goal)


@router.get("/goals", response_model=GoalListResponse, tags=["goals"])
def list_goals(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the goals"),
    week: Optional[int] = Query(default=None, ge=1, le=5),
    db: Session = Depends(get_db),
) -> GoalListResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("goal.list", metadata={"route": "/goals", "week": week}, user_id=str(user_id), request_id=request_id):
        goals = goal_service.list_goals(db, user_id, week_number=week)
    log_metric("goal.list.count", len(goals))
    return GoalListResponse(goals=[_goal_response(goal) for goal in goals], request_id=request_id or "")


@router.post(
    "/goals/{goal_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["tasks"],
)
def create_task(
    goal_id: UUID,
    payload: TaskCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace(
            "task.create",
            metadata={"route": "/goals/{goal_id}/tasks", "goal_id": str(goal_id)},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            goal = goal_service.get_goal(db, goal_id, user_id=payload.user_id)
            task = goal_service.create_task(
                db,
                goal,
                title=payload.title,
                description=payload.description,
                recommended_schedule=payload.recommended_schedule,
                estimated_time=payload.estimated_time,
            )
    except GoalNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found") from exc
    except Exception:
        db.rollback()
        raise

    log_metric("task.create.success", 1)
    return _task_response(task)


@router.patch("/tasks/{task_id}", response_model=TaskUpdateResponse, tags=["tasks"])
def update_task(
    task_id: UUID,
    payload: TaskUpdateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskUpdateResponse:
    """Rename a task or mark it complete/incomplete."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/tasks/{task_id}", "task_id": str(task_id), "completed": payload.completed}
    try:
        with trace("task.update", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            task = goal_service.update_task(
                db,
                task_id,
                user_id=payload.user_id,
                title=payload.title,
                completed=payload.completed,
            )
            goal = goal_service.get_goal(db, task.goal_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found") from exc
    except Exception:
        db.rollback()
        raise

    log_metric("task.update.success", 1, metadata={"completed": bool(task.completed)})
    return TaskUpdateResponse(
        **_task_response(task).model_dump(),
        goal_progress=goal.progress or 0,
        request_id=request_id or "",
    )


def _goal_response(goal: Goal) -> GoalResponse:
    return GoalResponse(
        id=goal.id,
        user_id=goal.user_id,
        title=goal.title,
        description=goal.description or "",
        category=goal.category,
        week_number=goal.week_number,
        progress=goal.progress or 0,
        source=goal.source,
        created_at=goal.created_at,
    )


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        goal_id=task.goal_id,
        title=task.title,
        description=task.description,
        recommended_schedule=task.recommended_schedule,
        estimated_time=task.estimated_time,
        completed=bool(task.completed),
        completed_at=task.completed_at,
    )
