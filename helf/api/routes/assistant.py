"""API routes for the training assistant."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from helf.api.routes.dependencies import envelope, get_current_user_id
from helf.db.database import async_session_maker, get_db
from helf.schemas.assistant import AssistantReply, AssistantRequest
from helf.schemas.base import APIResponse
from helf.schemas.session import SessionContext
from helf.services.assistant import AssistantService

router = APIRouter()


def get_assistant_service(db: AsyncSession = Depends(get_db)) -> AssistantService:
    return AssistantService(db, async_session_maker)


@router.post("/messages", response_model=APIResponse[AssistantReply])
async def send_message(
    body: AssistantRequest,
    request: Request,
    service: AssistantService = Depends(get_assistant_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Run one assistant turn over the conversation so far.

    Model timeouts and transport failures come back as a fallback reply with
    ``success: false`` and an ``error_code``, not as an HTTP error.
    """
    context = SessionContext(session_id=body.session_id) if body.session_id else None
    reply = await service.generate_response(user_id, body.messages, session_context=context)
    return envelope(request, reply)
