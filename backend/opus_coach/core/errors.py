"""Domain errors that are allowed to reach callers.

Provider failures never appear here: they are absorbed by the fallback chain.
"""
from __future__ import annotations


class CoachingError(Exception):
    """Base class for caller-facing coaching errors."""


class InvalidWeekError(CoachingError, ValueError):
    def __init__(self, week: int):
        super().__init__(f"Invalid program week: {week}")
        self.week = week


class ProgramNotStartedError(CoachingError):
    def __init__(self) -> None:
        super().__init__("Program has not been started")


class ProgramCompleteError(CoachingError):
    def __init__(self) -> None:
        super().__init__("Program already complete")


class MissingContextError(CoachingError, ValueError):
    """Raised when a generation request lacks the context its prompt needs."""


class UserNotFoundError(CoachingError, LookupError):
    def __init__(self, user_id) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class GoalNotFoundError(CoachingError, LookupError):
    def __init__(self, goal_id) -> None:
        super().__init__(f"Goal not found: {goal_id}")
        self.goal_id = goal_id


class TaskNotFoundError(CoachingError, LookupError):
    def __init__(self, task_id) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ReviewNotFoundError(CoachingError, LookupError):
    def __init__(self, review_id) -> None:
        super().__init__(f"Weekly review not found: {review_id}")
        self.review_id = review_id


class AnalysisInProgressError(CoachingError):
    def __init__(self, job_id, status: str = "running") -> None:
        super().__init__(f"Analysis job {job_id} is already {status}")
        self.job_id = job_id
        self.status = status
