"""Program progression operations backed by the users table."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from opus_coach.core.config import settings
from opus_coach.core.errors import ProgramCompleteError
from opus_coach.db.models.user import User
from opus_coach.services.program import clock
from opus_coach.services.program.clock import ProgramPhase, ProgramState
from opus_coach.services.program.themes import FINAL_WEEK, WeekTheme, theme_for
from opus_coach.services.user_service import get_or_create_user, require_user

logger = logging.getLogger(__name__)


@dataclass
class ProgramStatus:
    program_week: int
    program_start_date: Optional[datetime]
    theme: Optional[WeekTheme]
    reflection_due: bool
    program_complete: bool
    phase: ProgramPhase
    days_in_program: int
    days_until_next_week: Optional[int]


def state_of(user: User) -> ProgramState:
    return ProgramState(
        program_week=user.program_week or 0,
        program_start_date=user.program_start_date,
    )


def build_status(state: ProgramState, now: Optional[datetime] = None) -> ProgramStatus:
    start_date = state.program_start_date
    if not state.started:
        return ProgramStatus(
            program_week=state.program_week,
            program_start_date=start_date,
            theme=None,
            reflection_due=False,
            program_complete=False,
            phase=ProgramPhase.NOT_STARTED,
            days_in_program=0,
            days_until_next_week=None,
        )
    return ProgramStatus(
        program_week=state.program_week,
        program_start_date=clock.as_utc(start_date),
        theme=theme_for(state.program_week),
        reflection_due=clock.is_reflection_due(start_date, now, due_days=settings.reflection_due_days),
        program_complete=state.program_week >= FINAL_WEEK,
        phase=clock.phase(state, now),
        days_in_program=max(clock.days_elapsed(start_date, now), 0),
        days_until_next_week=clock.days_until_next_week(start_date, now),
    )


def start_program(
    db: Session,
    user_id: UUID,
    *,
    north_star: str | None = None,
    now: Optional[datetime] = None,
) -> ProgramStatus:
    """
    Put the user into week 1 and stamp the start date.

    Starting an already started program leaves the existing timeline untouched,
    since the program never returns to an earlier week.
    """
    user = get_or_create_user(db, user_id, north_star=north_star)
    state = state_of(user)
    if not state.started:
        state = clock.start(now)
        _apply(user, state)
        logger.info("Program started for user %s", user_id)
    db.commit()
    return build_status(state, now)


def get_current_week(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> ProgramStatus:
    """Return the program status, persisting the week when the clock has moved on."""
    user = require_user(db, user_id)
    stored = state_of(user)
    state = clock.reconcile(stored, now)
    if state != stored:
        logger.info(
            "Program week drift for user %s: stored=%s computed=%s",
            user_id,
            stored.program_week,
            state.program_week,
        )
        _apply(user, state)
        db.commit()
    return build_status(state, now)


def advance_week(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> ProgramStatus:
    """Manually move the user one week forward; raises ProgramCompleteError at the final week."""
    user = require_user(db, user_id)
    result = clock.advance(state_of(user), now)
    if not result.advanced:
        raise ProgramCompleteError()
    _apply(user, result.state)
    db.commit()
    logger.info("User %s manually advanced to week %s", user_id, result.state.program_week)
    return build_status(result.state, now)


def _apply(user: User, state: ProgramState) -> None:
    user.program_week = state.program_week
    user.program_start_date = state.program_start_date
