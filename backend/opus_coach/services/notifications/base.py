"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass
class NotificationResult:
    status: str
    reason: str


class NotificationService:
    """Base interface for notification providers."""

    def notify_reflection_due(
        self,
        *,
        user_id: UUID,
        week: int,
        theme_title: str,
        request_id: str | None,
    ) -> NotificationResult:
        raise NotImplementedError

    def notify_weekly_review_reminder(
        self,
        *,
        user_id: UUID,
        week: int,
        theme_title: str,
        request_id: str | None,
    ) -> NotificationResult:
        raise NotImplementedError

    def notify_goal_checkin(
        self,
        *,
        user_id: UUID,
        week: int,
        theme_title: str,
        active_goals: int,
        request_id: str | None,
    ) -> NotificationResult:
        raise NotImplementedError
