"""Notification hook utilities."""
from __future__ import annotations

import logging
from time import perf_counter

from opus_coach.core.config import settings
from opus_coach.db.models.user import User
from opus_coach.observability.metrics import log_metric
from opus_coach.observability.tracing import trace
from opus_coach.services.notifications.base import NotificationResult
from opus_coach.services.notifications.factory import get_notification_service
from opus_coach.services.program.themes import theme_for


logger = logging.getLogger(__name__)

REFLECTION_DUE = "reflection_due"
WEEKLY_REVIEW = "weekly_review"
GOAL_CHECKIN = "goal_checkin"

_SERVICE_METHODS = {
    REFLECTION_DUE: "notify_reflection_due",
    WEEKLY_REVIEW: "notify_weekly_review_reminder",
    GOAL_CHECKIN: "notify_goal_checkin",
}


def notify_reflection_due(user: User, week: int, request_id: str | None = None) -> NotificationResult:
    return _notify(REFLECTION_DUE, user, week, request_id)


def notify_weekly_review_reminder(user: User, week: int, request_id: str | None = None) -> NotificationResult:
    return _notify(WEEKLY_REVIEW, user, week, request_id)


def notify_goal_checkin(user: User, week: int, active_goals: int, request_id: str | None = None) -> NotificationResult:
    return _notify(GOAL_CHECKIN, user, week, request_id, active_goals=active_goals)


def _notify(job_name: str, user: User, week: int, request_id: str | None, **details) -> NotificationResult:
    if not settings.notifications_enabled:
        log_metric("notifications.skipped", 1, metadata={"job": job_name})
        return NotificationResult(status="skipped", reason="notifications disabled")

    theme = theme_for(week)
    theme_title = theme.title if theme else ""
    service = get_notification_service()
    start = perf_counter()
    with trace(
        f"notifications.{job_name}",
        metadata={"week": week, "theme": theme_title, "provider": settings.notifications_provider},
        user_id=str(user.id),
        request_id=request_id,
    ):
        send = getattr(service, _SERVICE_METHODS[job_name])
        result = send(user_id=user.id, week=week, theme_title=theme_title, request_id=request_id, **details)
    duration_ms = (perf_counter() - start) * 1000
    log_metric("notifications.sent", 1, metadata={"job": job_name, "provider": settings.notifications_provider})
    log_metric("notifications.duration_ms", duration_ms, metadata={"job": job_name})
    logger.debug("Notification %s for user %s: %s", job_name, user.id, result.status)
    return result
