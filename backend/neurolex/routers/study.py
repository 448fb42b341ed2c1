"""
Study Session API Router

Endpoints driving the study session state machine. Sessions live in an
in-process registry; every endpoint returns the session snapshot.

Endpoints:
- POST /api/study/sessions - Create a session (selection state)
- GET /api/study/sessions/{id} - Get session state
- POST /api/study/sessions/{id}/start - Start (standard or ai)
- POST /api/study/sessions/{id}/answer - Submit an answer
- POST /api/study/sessions/{id}/grade - Grade the current item manually (0-5)
- POST /api/study/sessions/{id}/continue - Next item or finish
- POST /api/study/sessions/{id}/retry - Reload after an error
- POST /api/study/sessions/{id}/change-mode - Back to selection
- POST /api/study/sessions/{id}/restart - Back to selection after finishing
- DELETE /api/study/sessions/{id} - Discard a session

Actions that are not valid in the current state are ignored and simply
return the unchanged snapshot.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from neurolex.db.base import async_session_maker
from neurolex.middleware.error_handling import NotFoundError
from neurolex.models.learning import (
    AnswerRequest,
    GradeRequest,
    SessionStateResponse,
    StartSessionRequest,
)
from neurolex.services.learning import SessionRegistry, StudySessionController

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/study/sessions", tags=["study"])

_registry = SessionRegistry()


# ===========================================
# Dependency Injection
# ===========================================


def get_session_registry() -> SessionRegistry:
    """Get the in-process study session registry."""
    return _registry


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the database session factory used by study sessions."""
    return async_session_maker


def get_controller(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> StudySessionController:
    """Look up a study session by ID."""
    controller = registry.get(session_id)
    if controller is None:
        raise NotFoundError(
            f"Study session {session_id} not found",
            user_message="This study session has expired. Start a new one.",
        )
    return controller


# ===========================================
# Endpoints
# ===========================================


@router.post("", response_model=SessionStateResponse, status_code=201)
async def create_session(
    registry: SessionRegistry = Depends(get_session_registry),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> SessionStateResponse:
    """Create a study session in the selection state."""
    controller = registry.create(session_maker=session_maker)
    logger.info(f"Created study session {controller.session_id}")
    return controller.snapshot()


@router.get("/{session_id}", response_model=SessionStateResponse)
async def get_session(
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Get the current session state."""
    return controller.snapshot()


@router.post("/{session_id}/start", response_model=SessionStateResponse)
async def start_session(
    request: StartSessionRequest,
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """
    Start the session.

    Loads up to STUDY_BATCH_SIZE due items. `ai` sessions also request a
    quiz for the first item.
    """
    await controller.start(request.session_type, request.preferred_quiz_type)
    return controller.snapshot()


@router.post("/{session_id}/answer", response_model=SessionStateResponse)
async def submit_answer(
    request: AnswerRequest,
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Submit an answer to the current question."""
    await controller.submit_answer(request.answer)
    return controller.snapshot()


@router.post("/{session_id}/grade", response_model=SessionStateResponse)
async def grade_item(
    request: GradeRequest,
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Grade the current item manually and persist the review."""
    await controller.grade(request.grade)
    return controller.snapshot()


@router.post("/{session_id}/continue", response_model=SessionStateResponse)
async def continue_session(
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Move to the next item, or finish when the queue is empty."""
    await controller.next_item()
    return controller.snapshot()


@router.post("/{session_id}/retry", response_model=SessionStateResponse)
async def retry_session(
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Reload the queue after an error."""
    await controller.retry()
    return controller.snapshot()


@router.post("/{session_id}/change-mode", response_model=SessionStateResponse)
async def change_mode(
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Return to session type selection."""
    await controller.change_mode()
    return controller.snapshot()


@router.post("/{session_id}/restart", response_model=SessionStateResponse)
async def restart_session(
    controller: StudySessionController = Depends(get_controller),
) -> SessionStateResponse:
    """Return to selection after finishing."""
    await controller.restart()
    return controller.snapshot()


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> None:
    """Discard a study session."""
    if not registry.remove(session_id):
        raise NotFoundError(f"Study session {session_id} not found")
