"""On-device store for in-progress session snapshots.

One SQLite file on the device holds a row per cached session, keyed
``<prefix>session_<id>``, plus a small pointer table remembering the last
active session. The store is scoped to one client; nothing coordinates
concurrent writers on other devices.
"""
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite
from pydantic import BaseModel, ConfigDict, Field

from helf.schemas.session import ExerciseSnapshot, SessionSnapshot

logger = logging.getLogger(__name__)

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS session_cache (
            key TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            last_updated TEXT NOT NULL
        )""",
    """CREATE TABLE IF NOT EXISTS cache_pointers (
            name TEXT PRIMARY KEY,
            value TEXT
        )""",
)


class SessionCacheEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    session: SessionSnapshot
    exercises: list[ExerciseSnapshot] = Field(default_factory=list)
    last_updated: datetime = Field(alias="lastUpdated")


class SessionCacheStore:
    def __init__(self, path: Path | str, prefix: str = "helf_"):
        self._path = str(path)
        self._prefix = prefix
        self._initialized = False

    def key(self, session_id: int) -> str:
        return f"{self._prefix}session_{session_id}"

    @property
    def _last_active_key(self) -> str:
        return f"{self._prefix}last_active_session"

    @asynccontextmanager
    async def _connection(self):
        conn = await aiosqlite.connect(self._path)
        try:
            if not self._initialized:
                for statement in _SCHEMA:
                    await conn.execute(statement)
                self._initialized = True
            yield conn
            await conn.commit()
        finally:
            await conn.close()

    async def save(self, entry: SessionCacheEntry) -> None:
        payload = entry.model_dump_json(by_alias=True)
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO session_cache (key, payload, last_updated) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET payload = excluded.payload, last_updated = excluded.last_updated",
                (entry.id, payload, entry.last_updated.isoformat()),
            )
        logger.debug("Cached %s at %s", entry.id, entry.last_updated.isoformat())

    async def load(self, session_id: int) -> SessionCacheEntry | None:
        async with self._connection() as conn:
            cursor = await conn.execute("SELECT payload FROM session_cache WHERE key = ?", (self.key(session_id),))
            row = await cursor.fetchone()
        if row is None:
            return None
        return SessionCacheEntry.model_validate(json.loads(row[0]))

    async def delete(self, session_id: int) -> None:
        async with self._connection() as conn:
            await conn.execute("DELETE FROM session_cache WHERE key = ?", (self.key(session_id),))

    async def clear(self) -> None:
        async with self._connection() as conn:
            await conn.execute("DELETE FROM session_cache")
            await conn.execute("DELETE FROM cache_pointers")

    async def set_last_active(self, session_id: int | None) -> None:
        async with self._connection() as conn:
            if session_id is None:
                await conn.execute("DELETE FROM cache_pointers WHERE name = ?", (self._last_active_key,))
            else:
                await conn.execute(
                    "INSERT INTO cache_pointers (name, value) VALUES (?, ?) "
                    "ON CONFLICT(name) DO UPDATE SET value = excluded.value",
                    (self._last_active_key, str(session_id)),
                )

    async def get_last_active(self) -> int | None:
        async with self._connection() as conn:
            cursor = await conn.execute("SELECT value FROM cache_pointers WHERE name = ?", (self._last_active_key,))
            row = await cursor.fetchone()
        return int(row[0]) if row and row[0] is not None else None
