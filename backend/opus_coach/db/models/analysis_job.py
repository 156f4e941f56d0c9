"""Background reflection-analysis job ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from opus_coach.db.base import Base
from opus_coach.db.types import JSONBCompat

JOB_STATUSES = ("pending", "running", "succeeded", "failed")


class AnalysisJob(Base):
    __tablename__ = "analysis_jobs"
    __table_args__ = (
        Index("ix_analysis_jobs_review_id", "review_id"),
        Index("ix_analysis_jobs_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    review_id = Column(UUID(as_uuid=True), ForeignKey("weekly_reviews.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(length=20), nullable=False, default="pending", server_default=sa_text("'pending'"))
    attempts = Column(Integer, nullable=False, default=0, server_default=sa_text("0"))
    max_attempts = Column(Integer, nullable=False, default=2, server_default=sa_text("2"))
    request_id = Column(Text, nullable=True)
    provider = Column(String(length=50), nullable=True)
    used_fallback = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    result = Column(JSONBCompat, nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
