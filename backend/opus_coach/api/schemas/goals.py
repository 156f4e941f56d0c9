"""Schemas for goal and task persistence."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from opus_coach.services.generation.types import GoalCategory


class GoalCreateRequest(BaseModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    category: GoalCategory = "personal"
    week_number: Optional[int] = Field(default=None, ge=1, le=5)
    source: str = "manual"


class GoalResponse(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    description: str
    category: str
    week_number: Optional[int]
    progress: int
    source: str
    created_at: datetime


class GoalListResponse(BaseModel):
    goals: List[GoalResponse]
    request_id: str


class TaskCreateRequest(BaseModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    recommended_schedule: Optional[str] = None
    estimated_time: Optional[str] = None


class TaskResponse(BaseModel):
    id: UUID
    goal_id: UUID
    title: str
    description: Optional[str]
    recommended_schedule: Optional[str]
    estimated_time: Optional[str]
    completed: bool
    completed_at: Optional[datetime]


class TaskUpdateRequest(BaseModel):
    user_id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    completed: Optional[bool] = None


class TaskUpdateResponse(TaskResponse):
    goal_progress: int
    request_id: str
