"""Schemas for program progression endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ThemeResponse(BaseModel):
    week: int
    title: str
    emoji: str
    focus: str
    description: str
    reflection_prompts: List[str]


class ProgramStartRequest(BaseModel):
    user_id: UUID
    north_star: Optional[str] = Field(default=None, max_length=2000)


class AdvanceWeekRequest(BaseModel):
    user_id: UUID


class ProgramStatusResponse(BaseModel):
    user_id: UUID
    program_week: int
    program_start_date: Optional[datetime]
    theme: Optional[ThemeResponse]
    reflection_due: bool
    program_complete: bool
    phase: str
    days_in_program: int
    days_until_next_week: Optional[int]
    request_id: str
