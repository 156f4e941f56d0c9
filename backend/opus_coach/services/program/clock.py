"""Program clock: where a user sits in the five-week timeline.

Everything here is a pure function of a stored start timestamp and the wall clock.
Persisting a corrected week is the caller's job (see program.service).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from opus_coach.services.program.themes import (
    DAYS_PER_WEEK,
    FINAL_WEEK,
    FIRST_WEEK,
    PROGRAM_LENGTH_DAYS,
)

DEFAULT_REFLECTION_DAYS = frozenset({5, 6})
SECONDS_PER_DAY = 24 * 60 * 60


class ProgramPhase(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ProgramState:
    program_week: int = 0
    program_start_date: Optional[datetime] = None

    @property
    def started(self) -> bool:
        return self.program_week >= FIRST_WEEK and self.program_start_date is not None

    @property
    def at_final_week(self) -> bool:
        return self.program_week >= FINAL_WEEK


@dataclass(frozen=True)
class AdvanceResult:
    state: ProgramState
    advanced: bool


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_elapsed(start_date: datetime, now: Optional[datetime] = None) -> int:
    """Whole days between start and now, floored (negative when start is in the future)."""
    delta = as_utc(now or utcnow()) - as_utc(start_date)
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)


def _raw_week(days: int) -> int:
    return days // DAYS_PER_WEEK + 1


def current_week(start_date: datetime, now: Optional[datetime] = None) -> int:
    """Program week for the given start date, clamped to 1..5."""
    return max(FIRST_WEEK, min(_raw_week(days_elapsed(start_date, now)), FINAL_WEEK))


def is_reflection_due(
    start_date: datetime,
    now: Optional[datetime] = None,
    *,
    due_days: Iterable[int] = DEFAULT_REFLECTION_DAYS,
) -> bool:
    """True on the reflection days (default: last two) of each 7-day window within weeks 1..5."""
    days = days_elapsed(start_date, now)
    if days < 0 or _raw_week(days) > FINAL_WEEK:
        return False
    return days % DAYS_PER_WEEK in set(due_days)


def days_until_next_week(start_date: datetime, now: Optional[datetime] = None) -> int:
    """Days left in the current 7-day window (1..7)."""
    days = max(days_elapsed(start_date, now), 0)
    return DAYS_PER_WEEK - days % DAYS_PER_WEEK


def phase(state: ProgramState, now: Optional[datetime] = None) -> ProgramPhase:
    if not state.started:
        return ProgramPhase.NOT_STARTED
    if days_elapsed(state.program_start_date, now) >= PROGRAM_LENGTH_DAYS:
        return ProgramPhase.COMPLETE
    return ProgramPhase.ACTIVE


def start(now: Optional[datetime] = None) -> ProgramState:
    return ProgramState(program_week=FIRST_WEEK, program_start_date=now or utcnow())


def reconcile(state: ProgramState, now: Optional[datetime] = None) -> ProgramState:
    """
    Recompute the week from the clock.

    The week never decreases: a week reached by manual advance is kept until the
    clock catches up with it.
    """
    if not state.started:
        return state
    computed = current_week(state.program_start_date, now)
    week = min(max(state.program_week, computed), FINAL_WEEK)
    if week == state.program_week:
        return state
    return replace(state, program_week=week)


def advance(state: ProgramState, now: Optional[datetime] = None) -> AdvanceResult:
    """Manually move to the next week; a no-op once the final week is reached."""
    if state.at_final_week:
        return AdvanceResult(state=state, advanced=False)
    # Advancing from week 0 starts the program, so the start date is set alongside week 1.
    next_state = ProgramState(
        program_week=state.program_week + 1,
        program_start_date=state.program_start_date or now or utcnow(),
    )
    return AdvanceResult(state=next_state, advanced=True)
