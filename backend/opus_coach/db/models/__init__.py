"""ORM models exposed for metadata discovery."""
from opus_coach.db.models.analysis_job import AnalysisJob
from opus_coach.db.models.goal import Goal
from opus_coach.db.models.task import Task
from opus_coach.db.models.user import User
from opus_coach.db.models.weekly_review import WeeklyReview

__all__ = [
    "AnalysisJob",
    "Goal",
    "Task",
    "User",
    "WeeklyReview",
]
