"""Program progression API routes."""
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from opus_coach.api.schemas.program import (
    AdvanceWeekRequest,
    ProgramStartRequest,
    ProgramStatusResponse,
    ThemeResponse,
)
from opus_coach.core.errors import ProgramCompleteError, UserNotFoundError
from opus_coach.db.deps import get_db
from opus_coach.observability.metrics import log_metric
from opus_coach.observability.tracing import trace
from opus_coach.services.program import service as program_service
from opus_coach.services.program.service import ProgramStatus
from opus_coach.services.program.themes import WeekTheme, all_themes

router = APIRouter(prefix="/program", tags=["program"])


@router.get("/themes", response_model=List[ThemeResponse])
def list_themes() -> List[ThemeResponse]:
    """Return the five weekly themes in program order."""
    return [_theme_response(theme) for theme in all_themes()]


@router.post("/start", response_model=ProgramStatusResponse, status_code=status.HTTP_200_OK)
def start_program(
    payload: ProgramStartRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ProgramStatusResponse:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/program/start", "user_id": str(payload.user_id), "request_id": request_id}
    try:
        with trace("program.start", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            program_status = program_service.start_program(db, payload.user_id, north_star=payload.north_star)
    except Exception:
        db.rollback()
        raise

    log_metric("program.start.success", 1, metadata={"week": program_status.program_week})
    return _status_response(payload.user_id, program_status, request_id)


@router.get("/current-week", response_model=ProgramStatusResponse)
def get_current_week(
    http_request: Request,
    user_id: UUID = Query(..., description="User whose program status to fetch"),
    db: Session = Depends(get_db),
) -> ProgramStatusResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace(
            "program.current_week",
            metadata={"route": "/program/current-week", "request_id": request_id},
            user_id=str(user_id),
            request_id=request_id,
        ):
            program_status = program_service.get_current_week(db, user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    return _status_response(user_id, program_status, request_id)


@router.post("/advance-week", response_model=ProgramStatusResponse)
def advance_week(
    payload: AdvanceWeekRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ProgramStatusResponse:
    """Manually move the user to the next week."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/program/advance-week", "request_id": request_id}
    try:
        with trace("program.advance_week", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            program_status = program_service.advance_week(db, payload.user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ProgramCompleteError as exc:
        log_metric("program.advance.rejected", 1)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    log_metric("program.advance.success", 1, metadata={"week": program_status.program_week})
    return _status_response(payload.user_id, program_status, request_id)


def _theme_response(theme: WeekTheme) -> ThemeResponse:
    return ThemeResponse(**theme.to_dict())


def _status_response(user_id: UUID, program_status: ProgramStatus, request_id: str | None) -> ProgramStatusResponse:
    return ProgramStatusResponse(
        user_id=user_id,
        program_week=program_status.program_week,
        program_start_date=program_status.program_start_date,
        theme=_theme_response(program_status.theme) if program_status.theme else None,
        reflection_due=program_status.reflection_due,
        program_complete=program_status.program_complete,
        phase=program_status.phase.value,
        days_in_program=program_status.days_in_program,
        days_until_next_week=program_status.days_until_next_week,
        request_id=request_id or "",
    )
