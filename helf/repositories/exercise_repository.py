from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from helf.models.exercise import Exercise
from helf.repositories.base import Repository


class ExerciseRepository(Repository[Exercise, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Exercise | None:
        return await self._session.get(Exercise, id)

    async def list(self, search: str | None = None, limit: int = 200) -> list[Exercise]:
        query = select(Exercise)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Exercise.name).like(pattern),
                    func.lower(func.coalesce(Exercise.variation, "")).like(pattern),
                )
            )
        query = query.order_by(Exercise.name, Exercise.id).limit(limit)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def find_by_name_and_variation(self, name: str, variation: str | None) -> Exercise | None:
        """Case-insensitive match on name and variation; a missing variation matches NULL or ''."""
        result = await self._session.execute(
            select(Exercise)
            .where(
                func.lower(Exercise.name) == name.lower(),
                func.lower(func.coalesce(Exercise.variation, "")) == (variation or "").lower(),
            )
            .order_by(Exercise.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_name(self, name: str) -> Exercise | None:
        result = await self._session.execute(
            select(Exercise)
            .where(func.lower(Exercise.name) == name.lower())
            .order_by(Exercise.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def max_id(self) -> int:
        result = await self._session.execute(select(func.max(Exercise.id)))
        return result.scalar() or 0

    async def create(self, entity: Exercise) -> Exercise:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def update(self, id: int, updates: dict) -> Exercise | None:
        exercise = await self.get(id)
        if exercise:
            for key, value in updates.items():
                setattr(exercise, key, value)
            await self._session.flush()
        return exercise

    async def delete(self, id: int) -> bool:
        exercise = await self.get(id)
        if exercise:
            await self._session.delete(exercise)
            await self._session.flush()
            return True
        return False
