from __future__ import annotations

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from helf.models.enums import PlanStatus
from helf.models.plan import Plan, PlanWeek
from helf.repositories.base import Repository


class PlanRepository(Repository[Plan, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Plan | None:
        return await self._session.get(Plan, id)

    async def create(self, entity: Plan) -> Plan:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def update(self, id: int, updates: dict) -> Plan | None:
        plan = await self.get(id)
        if plan:
            for key, value in updates.items():
                setattr(plan, key, value)
            await self._session.flush()
        return plan

    async def delete(self, id: int) -> bool:
        result = await self._session.execute(delete(Plan).where(Plan.id == id))
        return result.rowcount > 0

    async def get_plan_by_id_and_user(self, plan_id: int, user_id: int) -> Plan | None:
        result = await self._session.execute(
            select(Plan).where(
                and_(
                    Plan.id == plan_id,
                    Plan.user_id == user_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_active_plan(self, user_id: int) -> Plan | None:
        result = await self._session.execute(
            select(Plan)
            .where(Plan.user_id == user_id, Plan.status == PlanStatus.ACTIVE)
            .order_by(Plan.created_at.desc(), Plan.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: int, status: PlanStatus | None = None) -> list[Plan]:
        query = select(Plan).where(Plan.user_id == user_id)
        if status is not None:
            query = query.where(Plan.status == status)
        result = await self._session.execute(query.order_by(Plan.id))
        return list(result.scalars().all())

    async def archive_other_plans(self, user_id: int, exclude_plan_id: int) -> int:
        result = await self._session.execute(
            update(Plan)
            .where(
                and_(
                    Plan.user_id == user_id,
                    Plan.status == PlanStatus.ACTIVE,
                    Plan.id != exclude_plan_id,
                )
            )
            .values(status=PlanStatus.ARCHIVED)
        )
        return result.rowcount

    async def create_week(self, week: PlanWeek) -> PlanWeek:
        self._session.add(week)
        await self._session.flush()
        return week

    async def get_week(self, plan_id: int, week_number: int) -> PlanWeek | None:
        result = await self._session.execute(
            select(PlanWeek).where(
                PlanWeek.plan_id == plan_id,
                PlanWeek.week_number == week_number,
            )
        )
        return result.scalar_one_or_none()

    async def list_weeks(self, plan_id: int) -> list[PlanWeek]:
        result = await self._session.execute(
            select(PlanWeek).where(PlanWeek.plan_id == plan_id).order_by(PlanWeek.week_number)
        )
        return list(result.scalars().all())

    async def list_week_ids(self, plan_id: int) -> list[int]:
        result = await self._session.execute(select(PlanWeek.id).where(PlanWeek.plan_id == plan_id))
        return list(result.scalars().all())

    async def delete_weeks(self, week_ids: list[int]) -> int:
        if not week_ids:
            return 0
        result = await self._session.execute(delete(PlanWeek).where(PlanWeek.id.in_(week_ids)))
        return result.rowcount
