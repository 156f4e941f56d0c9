"""Schemas for AI generation endpoints."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from opus_coach.services.generation.types import GoalSuggestion, TaskSuggestion


class ProviderAttemptResponse(BaseModel):
    provider: str
    outcome: str
    latency_ms: float
    error: Optional[str] = None


class GenerationMeta(BaseModel):
    provider: Optional[str]
    used_fallback: bool
    attempts: List[ProviderAttemptResponse]


class GoalGenerationRequest(BaseModel):
    user_id: UUID
    week: Optional[int] = Field(default=None, description="Defaults to the user's current program week")


class TaskGenerationRequest(BaseModel):
    user_id: UUID


class GoalGenerationResponse(GenerationMeta):
    week: int
    goals: List[GoalSuggestion]
    request_id: str


class TaskGenerationResponse(GenerationMeta):
    goal_id: UUID
    week: int
    tasks: List[TaskSuggestion]
    request_id: str


class ReflectionPromptResponse(GenerationMeta):
    week: int
    prompt: str
    request_id: str
