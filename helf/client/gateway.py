"""Transports the session client uses to read and save sessions."""
import logging
from typing import Protocol

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from helf.core.exceptions import NotFoundError
from helf.schemas.session import SessionDetail, SessionSaveRequest, SessionSaveResult
from helf.services.session import SessionService

logger = logging.getLogger(__name__)


class SessionGateway(Protocol):
    async def fetch_session(self, session_id: int) -> SessionDetail: ...

    async def save_session(self, session_id: int, request: SessionSaveRequest) -> SessionSaveResult: ...


class LocalSessionGateway:
    """In-process gateway over SessionService, one database session per call."""

    def __init__(self, session_factory: async_sessionmaker, user_id: int):
        self._session_factory = session_factory
        self._user_id = user_id

    async def fetch_session(self, session_id: int) -> SessionDetail:
        async with self._session_factory() as db:
            return await SessionService(db).get_session_with_exercises(session_id, self._user_id)

    async def save_session(self, session_id: int, request: SessionSaveRequest) -> SessionSaveResult:
        async with self._session_factory() as db:
            result = await SessionService(db).update_session(
                session_id, request.session, request.exercises, user_id=self._user_id
            )
            await db.commit()
            return result


def _save_body(request: SessionSaveRequest) -> dict:
    # Session fields are a partial update; exercises always carry their identity tags
    return {
        "session": request.session.model_dump(mode="json", exclude_unset=True),
        "exercises": None if request.exercises is None else [
            exercise.model_dump(mode="json") for exercise in request.exercises
        ],
    }


class HttpSessionGateway:
    """Gateway talking to the /sessions API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            headers=headers or {},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        response = await self._client.request(method, url, **kwargs)
        if response.status_code == 404:
            raise NotFoundError("Session", f"{url} not found")
        response.raise_for_status()
        return response.json()["data"]

    async def fetch_session(self, session_id: int) -> SessionDetail:
        data = await self._request("GET", f"/sessions/{session_id}")
        return SessionDetail.model_validate(data)

    async def save_session(self, session_id: int, request: SessionSaveRequest) -> SessionSaveResult:
        data = await self._request("PUT", f"/sessions/{session_id}", json=_save_body(request))
        logger.debug("Saved session %s over HTTP", session_id)
        return SessionSaveResult.model_validate(data)
