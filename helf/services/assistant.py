"""
AssistantService - one assistant turn: context, model call, structured-data handling.

Context (active plan, next session and, when the user is on a session page,
that session) is fetched concurrently, each read on its own database session.
The model call has a hard deadline; a timeout or transport error yields a
fallback reply and is never retried.
"""
import asyncio
import logging
import time
from datetime import date

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from helf.config.settings import Settings, get_settings
from helf.core.exceptions import AssistantTimeoutError, AssistantUnavailableError, DomainError
from helf.llm import LLMProvider, get_llm_provider
from helf.llm.base import LLMConfig, Message
from helf.llm.prompts import build_system_messages
from helf.schemas.assistant import AssistantReply, ChatMessage
from helf.schemas.plan import ActivePlan
from helf.schemas.session import SessionContext, SessionDetail
from helf.services.exercise import ExerciseService
from helf.services.plan import PlanService
from helf.services.response_processor import ResponseProcessor
from helf.services.session import SessionService

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't generate a response right now. Please try again in a moment."


class AssistantService:
    def __init__(
        self,
        session: AsyncSession,
        session_factory: async_sessionmaker,
        provider: LLMProvider | None = None,
        settings: Settings | None = None,
        timeout: float | None = None,
    ):
        self._session = session
        self._session_factory = session_factory
        self._provider = provider or get_llm_provider()
        self._settings = settings or get_settings()
        self._timeout = timeout or self._settings.assistant_timeout_seconds
        self._processor = ResponseProcessor(ExerciseService(session))

    async def _active_plan(self, user_id: int) -> ActivePlan | None:
        async with self._session_factory() as db:
            return await PlanService(db).get_active_plan(user_id)

    async def _next_session(self, user_id: int) -> SessionDetail | None:
        async with self._session_factory() as db:
            return await SessionService(db).get_next_session(user_id)

    async def _current_session(self, user_id: int, context: SessionContext | None) -> SessionDetail | None:
        if context is None:
            return None
        try:
            async with self._session_factory() as db:
                return await SessionService(db).get_session_with_exercises(context.session_id, user_id)
        except (DomainError, SQLAlchemyError) as e:
            logger.error("[ASSISTANT] Could not load session %s for context: %s", context.session_id, e)
            return None

    async def generate_response(
        self,
        user_id: int,
        messages: list[ChatMessage],
        session_context: SessionContext | None = None,
    ) -> AssistantReply:
        active_plan, next_session, current_session = await asyncio.gather(
            self._active_plan(user_id),
            self._next_session(user_id),
            self._current_session(user_id, session_context),
        )

        prompt = build_system_messages(date.today(), active_plan, next_session, current_session)
        prompt.extend(Message(role=m.role, content=m.content) for m in messages)
        config = LLMConfig(temperature=self._settings.llm_temperature)

        logger.info("[ASSISTANT] Sending %d messages for user_id=%s", len(prompt), user_id)
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(self._provider.chat(prompt, config), timeout=self._timeout)
        except asyncio.TimeoutError:
            error = AssistantTimeoutError(self._timeout)
            logger.error("[ASSISTANT] %s", error.message)
            return AssistantReply(content=FALLBACK_REPLY, success=False, message=error.message, error_code=error.code)
        except httpx.HTTPError as e:
            error = AssistantUnavailableError(f"Assistant request failed: {e}")
            logger.error("[ASSISTANT] Request failed after %.0fms: %s", (time.perf_counter() - started) * 1000, e)
            return AssistantReply(content=FALLBACK_REPLY, success=False, message=error.message, error_code=error.code)

        logger.info(
            "[ASSISTANT] Response received after %.0fms, %d chars",
            (time.perf_counter() - started) * 1000, len(response.content),
        )
        processed = await self._processor.process(response.content)
        return AssistantReply(**processed.model_dump())
