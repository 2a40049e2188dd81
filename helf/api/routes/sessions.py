"""API routes for training sessions."""
import logging

from fastapi import APIRouter, Depends, Request, status

from helf.api.routes.dependencies import (
    batch_warnings,
    envelope,
    get_current_user_id,
    get_plan_service,
    get_session_service,
)
from helf.schemas.base import APIResponse
from helf.schemas.plan import SessionPlanRequest, WeekCreationResult
from helf.schemas.session import (
    SessionCreate,
    SessionCreateResult,
    SessionDetail,
    SessionSaveRequest,
    SessionSaveResult,
    SessionSummary,
)
from helf.services.plan import PlanService
from helf.services.session import SessionService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=APIResponse[list[SessionSummary]])
async def list_sessions(
    request: Request,
    service: SessionService = Depends(get_session_service),
    user_id: int = Depends(get_current_user_id),
):
    sessions = await service.list_sessions(user_id)
    return envelope(request, [SessionSummary.model_validate(s) for s in sessions])


@router.get("/next", response_model=APIResponse[SessionDetail | None])
async def get_next_session(
    request: Request,
    service: SessionService = Depends(get_session_service),
    user_id: int = Depends(get_current_user_id),
):
    """The earliest session that is not completed, or null."""
    return envelope(request, await service.get_next_session(user_id))


@router.post("", response_model=APIResponse[SessionCreateResult], status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    request: Request,
    service: SessionService = Depends(get_session_service),
    user_id: int = Depends(get_current_user_id),
):
    result = await service.create_session(user_id, body)
    return envelope(request, result, batch_warnings(result.batch))


@router.post(
    "/from-plan",
    response_model=APIResponse[WeekCreationResult],
    status_code=status.HTTP_201_CREATED,
)
async def create_session_from_plan(
    body: SessionPlanRequest,
    request: Request,
    service: PlanService = Depends(get_plan_service),
    user_id: int = Depends(get_current_user_id),
):
    """Materialize a single assistant-proposed session, scheduled for today."""
    result = await service.create_session_from_plan(user_id, body.session)
    return envelope(request, result, batch_warnings(result.batch))


@router.get("/{session_id}", response_model=APIResponse[SessionDetail])
async def get_session(
    session_id: int,
    request: Request,
    service: SessionService = Depends(get_session_service),
    user_id: int = Depends(get_current_user_id),
):
    return envelope(request, await service.get_session_with_exercises(session_id, user_id))


@router.put("/{session_id}", response_model=APIResponse[SessionSaveResult])
async def save_session(
    session_id: int,
    body: SessionSaveRequest,
    request: Request,
    service: SessionService = Depends(get_session_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Save a session.

    Session fields are a partial update. When ``exercises`` is present it is the
    full exercise list: persisted entries are updated, pending ones inserted and
    entries missing from the list removed. ``resolved`` maps pending tokens to
    the ids they were given.
    """
    result = await service.update_session(session_id, body.session, body.exercises, user_id=user_id)
    return envelope(request, result, batch_warnings(result.batch))


@router.delete("/{session_id}", response_model=APIResponse[dict])
async def delete_session(
    session_id: int,
    request: Request,
    service: SessionService = Depends(get_session_service),
    user_id: int = Depends(get_current_user_id),
):
    batch = await service.delete_session(session_id, user_id)
    return envelope(request, batch.to_dict(), batch_warnings(batch.to_dict()))
