from __future__ import annotations

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helf.models.enums import SessionStatus
from helf.models.session import ExerciseEntry, ExerciseSet, Session
from helf.repositories.base import Repository


class SessionRepository(Repository[Session, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Session | None:
        return await self._session.get(Session, id)

    async def get_with_entries(self, session_id: int, user_id: int | None = None) -> Session | None:
        """Session with entries, their catalog exercise and sets, refreshed from the database."""
        query = (
            select(Session)
            .options(
                selectinload(Session.plan_week),
                selectinload(Session.entries).selectinload(ExerciseEntry.exercise),
                selectinload(Session.entries).selectinload(ExerciseEntry.sets),
            )
            .where(Session.id == session_id)
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            query = query.where(Session.user_id == user_id)
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: int, plan_id: int | None = None) -> list[Session]:
        query = select(Session).where(Session.user_id == user_id)
        if plan_id is not None:
            query = query.where(Session.plan_id == plan_id)
        query = query.order_by(Session.scheduled_date.is_(None), Session.scheduled_date, Session.session_order, Session.id)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def get_next_session(self, user_id: int) -> Session | None:
        result = await self._session.execute(
            select(Session)
            .where(
                and_(
                    Session.user_id == user_id,
                    Session.status.in_(
                        [SessionStatus.PLANNED, SessionStatus.UPCOMING, SessionStatus.IN_PROGRESS]
                    ),
                )
            )
            .order_by(Session.scheduled_date.is_(None), Session.scheduled_date, Session.session_order, Session.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, entity: Session) -> Session:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def update(self, id: int, updates: dict) -> Session | None:
        session = await self.get(id)
        if session:
            for key, value in updates.items():
                setattr(session, key, value)
            await self._session.flush()
        return session

    async def delete(self, id: int) -> bool:
        result = await self._session.execute(delete(Session).where(Session.id == id))
        return result.rowcount > 0

    async def list_session_ids_for_plan(self, plan_id: int) -> list[int]:
        result = await self._session.execute(select(Session.id).where(Session.plan_id == plan_id))
        return list(result.scalars().all())

    async def delete_sessions(self, session_ids: list[int]) -> int:
        if not session_ids:
            return 0
        result = await self._session.execute(delete(Session).where(Session.id.in_(session_ids)))
        return result.rowcount

    # Exercise entries

    async def create_entry(self, entry: ExerciseEntry) -> ExerciseEntry:
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def get_entry(self, entry_id: int, session_id: int) -> ExerciseEntry | None:
        result = await self._session.execute(
            select(ExerciseEntry).where(
                ExerciseEntry.id == entry_id,
                ExerciseEntry.session_id == session_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_entry_ids(self, session_ids: list[int]) -> list[int]:
        if not session_ids:
            return []
        result = await self._session.execute(
            select(ExerciseEntry.id).where(ExerciseEntry.session_id.in_(session_ids))
        )
        return list(result.scalars().all())

    async def delete_entries(self, entry_ids: list[int]) -> int:
        if not entry_ids:
            return 0
        result = await self._session.execute(delete(ExerciseEntry).where(ExerciseEntry.id.in_(entry_ids)))
        return result.rowcount

    # Sets

    async def get_set(self, set_id: int, entry_id: int) -> ExerciseSet | None:
        result = await self._session.execute(
            select(ExerciseSet).where(
                ExerciseSet.id == set_id,
                ExerciseSet.exercise_entry_id == entry_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_set_ids(self, entry_ids: list[int]) -> list[int]:
        if not entry_ids:
            return []
        result = await self._session.execute(
            select(ExerciseSet.id).where(ExerciseSet.exercise_entry_id.in_(entry_ids))
        )
        return list(result.scalars().all())

    async def delete_sets_for_entries(self, entry_ids: list[int]) -> int:
        if not entry_ids:
            return 0
        result = await self._session.execute(
            delete(ExerciseSet).where(ExerciseSet.exercise_entry_id.in_(entry_ids))
        )
        return result.rowcount

    async def delete_sets(self, set_ids: list[int]) -> int:
        if not set_ids:
            return 0
        result = await self._session.execute(delete(ExerciseSet).where(ExerciseSet.id.in_(set_ids)))
        return result.rowcount

    async def create_sets(self, sets: list[ExerciseSet]) -> list[ExerciseSet]:
        self._session.add_all(sets)
        await self._session.flush()
        return sets

    async def list_entries_for_sessions(self, session_ids: list[int]) -> list[ExerciseEntry]:
        if not session_ids:
            return []
        result = await self._session.execute(
            select(ExerciseEntry)
            .options(selectinload(ExerciseEntry.exercise))
            .where(ExerciseEntry.session_id.in_(session_ids))
            .order_by(ExerciseEntry.session_id, ExerciseEntry.exercise_order, ExerciseEntry.id)
        )
        return list(result.scalars().all())
