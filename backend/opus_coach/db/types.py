"""Database column type helpers."""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, TypeDecorator


class JSONBCompat(TypeDecorator):
    """JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)."""

    impl = JSONB
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":  # pragma: no cover - dialect specific
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())
