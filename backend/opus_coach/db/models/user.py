"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from opus_coach.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    # Purpose statement every prompt is anchored to.
    north_star = Column(Text, nullable=True)
    # 0 means the program has not been started; program_start_date is set iff program_week >= 1.
    program_week = Column(Integer, nullable=False, default=0, server_default=sa_text("0"))
    program_start_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
