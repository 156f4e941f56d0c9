"""Batch reminder jobs run by the scheduler worker."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from opus_coach.core.config import settings
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.user import User
from opus_coach.db.models.weekly_review import WeeklyReview
from opus_coach.services.notifications.hooks import (
    notify_goal_checkin,
    notify_reflection_due,
    notify_weekly_review_reminder,
)
from opus_coach.services.program import clock
from opus_coach.services.program.clock import ProgramPhase
from opus_coach.services.program.service import state_of


logger = logging.getLogger(__name__)


@dataclass
class ReminderRunResult:
    users_checked: int
    reminders_sent: int
    skipped: int = 0


def _active_users(db: Session) -> List[User]:
    return (
        db.query(User)
        .filter(User.program_week >= 1, User.program_start_date.isnot(None))
        .order_by(User.created_at.asc())
        .all()
    )


def _has_review(db: Session, user: User, week: int) -> bool:
    return (
        db.query(WeeklyReview.id)
        .filter(WeeklyReview.user_id == user.id, WeeklyReview.week_number == week)
        .first()
        is not None
    )


def run_reflection_due_reminders(db: Session, *, now: Optional[datetime] = None) -> ReminderRunResult:
    """Remind users whose clock says reflection is due and who have not reflected yet this week."""
    now = now or clock.utcnow()
    users = _active_users(db)
    sent = 0
    skipped = 0
    for user in users:
        state = clock.reconcile(state_of(user), now)
        if not clock.is_reflection_due(state.program_start_date, now, due_days=settings.reflection_due_days):
            continue
        if _has_review(db, user, state.program_week):
            skipped += 1
            logger.debug("Skipping reflection reminder for user %s; week %s already reviewed", user.id, state.program_week)
            continue
        try:
            result = notify_reflection_due(user, state.program_week)
        except Exception:  # pragma: no cover - defensive guard
            logger.exception("Reflection reminder failed for user %s", user.id)
            continue
        if result.status != "skipped":
            sent += 1
    return ReminderRunResult(users_checked=len(users), reminders_sent=sent, skipped=skipped)


def run_weekly_review_reminders(db: Session, *, now: Optional[datetime] = None) -> ReminderRunResult:
    """Nudge every user still inside the program to write this week's review."""
    now = now or clock.utcnow()
    users = _active_users(db)
    sent = 0
    skipped = 0
    for user in users:
        state = clock.reconcile(state_of(user), now)
        if clock.phase(state, now) is not ProgramPhase.ACTIVE or _has_review(db, user, state.program_week):
            skipped += 1
            continue
        try:
            result = notify_weekly_review_reminder(user, state.program_week)
        except Exception:  # pragma: no cover - defensive guard
            logger.exception("Weekly review reminder failed for user %s", user.id)
            continue
        if result.status != "skipped":
            sent += 1
    return ReminderRunResult(users_checked=len(users), reminders_sent=sent, skipped=skipped)


def run_goal_checkin_reminders(db: Session, *, now: Optional[datetime] = None) -> ReminderRunResult:
    """Ask every user with unfinished goals to check in on their progress."""
    now = now or clock.utcnow()
    open_counts = dict(
        db.query(Goal.user_id, func.count(Goal.id))
        .filter(Goal.progress < 100)
        .group_by(Goal.user_id)
        .all()
    )
    if not open_counts:
        return ReminderRunResult(users_checked=0, reminders_sent=0)

    users = db.query(User).filter(User.id.in_(list(open_counts))).order_by(User.created_at.asc()).all()
    sent = 0
    for user in users:
        week = clock.reconcile(state_of(user), now).program_week
        try:
            result = notify_goal_checkin(user, week, open_counts[user.id])
        except Exception:  # pragma: no cover - defensive guard
            logger.exception("Goal check-in reminder failed for user %s", user.id)
            continue
        if result.status != "skipped":
            sent += 1
    return ReminderRunResult(users_checked=len(users), reminders_sent=sent)
