"""Helpers for working with users."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opus_coach.core.errors import UserNotFoundError
from opus_coach.db.models.user import User


def get_or_create_user(db: Session, user_id: UUID, *, north_star: str | None = None) -> User:
    """Fetch an existing user or create a new row safely, updating the north star when given."""
    user = db.get(User, user_id)
    if user:
        if north_star:
            user.north_star = north_star
        return user

    user = User(id=user_id, north_star=north_star, program_week=0)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def require_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFoundError(user_id)
    return user
