"""
Session cache engine: decides between cached and server data on open.

Without a forced refresh, a cache entry at most ``staleness_seconds`` old is
used as-is and the server is not contacted; an older or missing entry is
replaced by a fresh server copy. A forced refresh always fetches, and if a
cache entry exists its sets win over the server's for every exercise with
the same catalog id. There is no timestamp comparison in that merge. Cached
sets whose ids the server entry does not own come back as pending sets.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from helf.client.cache_store import SessionCacheEntry, SessionCacheStore
from helf.client.gateway import SessionGateway
from helf.models.enums import SessionStatus
from helf.schemas.session import (
    ExerciseSnapshot,
    Pending,
    Persisted,
    SessionContext,
    SessionSnapshot,
    SetSnapshot,
)

logger = logging.getLogger(__name__)


class CacheOrigin(str, Enum):
    CACHE = "cache"
    SERVER = "server"
    MERGED = "merged"


class LoadedSession(BaseModel):
    session: SessionSnapshot
    exercises: list[ExerciseSnapshot]
    origin: CacheOrigin


def _adopt_sets(server: ExerciseSnapshot, local: ExerciseSnapshot) -> list[SetSnapshot]:
    # Cached set ids that the server entry does not own would be rejected on
    # save, so those sets are re-created instead
    owned = {s.identity.id for s in server.sets if isinstance(s.identity, Persisted)}
    adopted = []
    for s in local.sets:
        if isinstance(s.identity, Persisted) and s.identity.id not in owned:
            adopted.append(s.model_copy(update={"identity": Pending()}))
        else:
            adopted.append(s.model_copy())
    return adopted


def merge_exercises(server: list[ExerciseSnapshot], cached: list[ExerciseSnapshot]) -> list[ExerciseSnapshot]:
    """Server structure, cached sets for exercises sharing a catalog id."""
    cached_by_catalog: dict[int, ExerciseSnapshot] = {}
    for exercise in cached:
        if exercise.exercise_id is not None:
            cached_by_catalog.setdefault(exercise.exercise_id, exercise)

    merged = []
    for exercise in server:
        local = cached_by_catalog.get(exercise.exercise_id)
        if local is None:
            merged.append(exercise)
        else:
            merged.append(exercise.model_copy(update={"sets": _adopt_sets(exercise, local)}))
    return merged


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionCacheEngine:
    def __init__(
        self,
        store: SessionCacheStore,
        gateway: SessionGateway,
        staleness_seconds: float = 60.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._gateway = gateway
        self._staleness_seconds = staleness_seconds
        self._clock = clock

    def is_fresh(self, entry: SessionCacheEntry) -> bool:
        last_updated = entry.last_updated
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        return (self._clock() - last_updated).total_seconds() <= self._staleness_seconds

    async def open(self, context: SessionContext) -> LoadedSession:
        session_id = context.session_id
        cached = await self._store.load(session_id)

        if context.force_refresh:
            detail = await self._gateway.fetch_session(session_id)
            if cached is not None:
                logger.info("Forced refresh of session %s; merging cached sets", session_id)
                exercises = merge_exercises(detail.exercises, cached.exercises)
                origin = CacheOrigin.MERGED
            else:
                exercises = detail.exercises
                origin = CacheOrigin.SERVER
            loaded = LoadedSession(session=detail.session, exercises=exercises, origin=origin)
        elif cached is not None and self.is_fresh(cached):
            logger.debug("Session %s served from cache", session_id)
            loaded = LoadedSession(session=cached.session, exercises=cached.exercises, origin=CacheOrigin.CACHE)
        else:
            if cached is not None:
                logger.info("Cache entry for session %s is stale; refetching", session_id)
            detail = await self._gateway.fetch_session(session_id)
            loaded = LoadedSession(session=detail.session, exercises=detail.exercises, origin=CacheOrigin.SERVER)

        if loaded.origin is not CacheOrigin.CACHE:
            await self.write(loaded.session, loaded.exercises)
        if loaded.session.status != SessionStatus.COMPLETED:
            await self._store.set_last_active(session_id)
        return loaded

    async def write(self, session: SessionSnapshot, exercises: list[ExerciseSnapshot]) -> SessionCacheEntry:
        entry = SessionCacheEntry(
            id=self._store.key(session.id),
            session=session,
            exercises=exercises,
            last_updated=self._clock(),
        )
        await self._store.save(entry)
        return entry

    async def purge(self, session_id: int) -> None:
        """Drop the cache entry and forget the session as last active."""
        await self._store.delete(session_id)
        if await self._store.get_last_active() == session_id:
            await self._store.set_last_active(None)
        logger.info("Purged cached session %s", session_id)
