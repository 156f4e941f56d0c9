"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging
from uuid import UUID

from opus_coach.services.notifications.base import NotificationResult, NotificationService


logger = logging.getLogger(__name__)


class NoopNotificationService(NotificationService):
    def notify_reflection_due(
        self,
        *,
        user_id: UUID,
        week: int,
        theme_title: str,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info("Notification queued (noop) reflection_due user=%s week=%s theme=%s", user_id, week, theme_title)
        return NotificationResult(status="noop", reason="notification provider is noop")

    def notify_weekly_review_reminder(
        self,
        *,
        user_id: UUID,
        week: int,
        theme_title: str,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info("Notification queued (noop) weekly_review user=%s week=%s theme=%s", user_id, week, theme_title)
        return NotificationResult(status="noop", reason="notification provider is noop")

    def notify_goal_checkin(
        self,
        *,
        user_id: UUID,
        week: int,
        theme_title: str,
        active_goals: int,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info("Notification queued (noop) goal_checkin user=%s week=%s open_goals=%s", user_id, week, active_goals)
        return NotificationResult(status="noop", reason="notification provider is noop")
