"""Schemas for weekly reflections and their analysis jobs."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ReflectionCreateRequest(BaseModel):
    user_id: UUID
    wins: Optional[str] = None
    lessons: Optional[str] = None
    next_steps: Optional[str] = None
    week: Optional[int] = Field(default=None, description="Defaults to the user's current program week")


class ReflectionCreateResponse(BaseModel):
    review_id: UUID
    job_id: UUID
    week_number: int
    status: str
    request_id: str


class AnalysisJobResponse(BaseModel):
    job_id: UUID
    review_id: UUID
    status: str
    attempts: int
    max_attempts: int
    provider: Optional[str]
    used_fallback: bool
    analysis: Optional[Dict[str, Any]]
    last_error: Optional[str]
    completed_at: Optional[datetime]
    request_id: str


class AnalysisRetryRequest(BaseModel):
    user_id: UUID
