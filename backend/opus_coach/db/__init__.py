"""Database utilities and models."""

from opus_coach.db.base import Base
from opus_coach.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
