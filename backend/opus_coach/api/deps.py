"""Shared FastAPI dependencies for API routes."""
from __future__ import annotations

from typing import Callable

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from opus_coach.core.config import settings
from opus_coach.services.generation.router import GenerationRouter


def get_generation_router(request: Request) -> GenerationRouter:
    """Return the router built at startup, creating it on first use if startup did not run."""
    router = getattr(request.app.state, "generation_router", None)
    if router is None:
        router = GenerationRouter.from_settings(settings)
        request.app.state.generation_router = router
    return router


def background_session_factory(db: Session) -> Callable[[], Session]:
    """Session factory for background work, bound to the same engine as the request session."""
    return sessionmaker(bind=db.get_bind(), autoflush=False, autocommit=False, future=True)
