"""Tests for plan materialization, reads and the deletion cascade."""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from helf.core.exceptions import NotFoundError
from helf.models.enums import PlanStatus, SessionStatus
from helf.models.exercise import Exercise
from helf.models.plan import Plan, PlanWeek
from helf.models.session import ExerciseEntry, ExerciseSet, Session
from helf.repositories.plan_repository import PlanRepository
from helf.schemas.assistant import AssistantPlan, SessionPlan, WeekPlan
from helf.services.plan import PlanService, compute_current_week


def macro_plan(name="Base", weeks=(1, 2)) -> AssistantPlan:
    return AssistantPlan.model_validate({
        "name": name,
        "goal": "Get stronger",
        "weeks": [
            {"week_number": n, "focus": f"Focus {n}", "sessions": [{"name": "Placeholder"}]}
            for n in weeks
        ],
    })


def week_plan(week_number: int, set_counts: list[list[int]]) -> WeekPlan:
    return WeekPlan.model_validate({
        "week_number": week_number,
        "sessions": [
            {
                "name": f"W{week_number} S{s}",
                "exercises": [
                    {"name": f"Lift {s}-{e}", "target_sets": sets, "target_reps": "5"}
                    for e, sets in enumerate(counts, start=1)
                ],
            }
            for s, counts in enumerate(set_counts, start=1)
        ],
    })


async def count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def plan_status(db, plan_id: int) -> PlanStatus:
    return (await db.execute(select(Plan.status).where(Plan.id == plan_id))).scalar_one()


@pytest.mark.asyncio
async def test_create_plan_leaves_one_active_plan(db):
    service = PlanService(db)

    first = await service.create_plan(1, macro_plan("First"))
    second = await service.create_plan(1, macro_plan("Second"))
    other_user = await service.create_plan(2, macro_plan("Other"))

    active = await PlanRepository(db).list_by_user(1, status=PlanStatus.ACTIVE)
    assert [p.id for p in active] == [second.plan_id]
    assert await plan_status(db, first.plan_id) == PlanStatus.ARCHIVED
    assert await plan_status(db, other_user.plan_id) == PlanStatus.ACTIVE


@pytest.mark.asyncio
async def test_create_plan_writes_weeks_only(db):
    result = await PlanService(db).create_plan(1, macro_plan())

    assert result.batch["succeeded"] is True
    assert await count(db, PlanWeek) == 2
    assert await count(db, Session) == 0
    plan = await db.get(Plan, result.plan_id)
    assert "start_date" in plan.plan_metadata
    assert plan.source == "assistant"


@pytest.mark.asyncio
async def test_duplicate_week_fails_alone(db):
    plan = AssistantPlan.model_validate({
        "name": "Dup",
        "weeks": [
            {"week_number": 1, "sessions": []},
            {"week_number": 1, "sessions": []},
            {"week_number": 2, "sessions": []},
        ],
    })

    result = await PlanService(db).create_plan(1, plan)

    assert result.batch["succeeded"] is False
    assert result.batch["partial"] is True
    failed = [s["name"] for s in result.batch["steps"] if not s["ok"]]
    assert failed == ["week_1"]
    weeks = await PlanRepository(db).list_weeks(result.plan_id)
    assert [w.week_number for w in weeks] == [1, 2]


@pytest.mark.asyncio
async def test_week_sessions_match_targets(db):
    service = PlanService(db)
    plan = await service.create_plan(1, macro_plan())

    result = await service.create_week_sessions(1, plan.plan_id, week_plan(2, [[3, 4], [2]]))

    assert result.batch["succeeded"] is True
    assert len(result.session_ids) == 2
    sessions = [await db.get(Session, sid) for sid in result.session_ids]
    assert all(s.status == SessionStatus.UPCOMING for s in sessions)
    assert all(s.scheduled_date == date.today() + timedelta(days=7) for s in sessions)
    assert [s.session_order for s in sessions] == [1, 2]

    entries = (await db.execute(select(ExerciseEntry).order_by(ExerciseEntry.id))).scalars().all()
    assert [e.exercise_order for e in entries] == [1, 2, 1]
    for entry in entries:
        sets = (await db.execute(
            select(ExerciseSet).where(ExerciseSet.exercise_entry_id == entry.id).order_by(ExerciseSet.set_number)
        )).scalars().all()
        assert [s.set_number for s in sets] == list(range(1, entry.target_sets + 1))
        assert not any(s.completed for s in sets)


@pytest.mark.asyncio
async def test_week_sessions_reuse_existing_week(db):
    service = PlanService(db)
    plan = await service.create_plan(1, macro_plan(weeks=(1,)))

    result = await service.create_week_sessions(1, plan.plan_id, week_plan(1, [[1]]))
    week = await PlanRepository(db).get_week(plan.plan_id, 1)

    assert result.plan_week_id == week.id
    assert await count(db, PlanWeek) == 1


@pytest.mark.asyncio
async def test_week_sessions_create_missing_week(db):
    service = PlanService(db)
    plan = await service.create_plan(1, macro_plan(weeks=(1,)))

    result = await service.create_week_sessions(1, plan.plan_id, week_plan(3, [[1]]))

    assert result.plan_week_id is not None
    assert (await PlanRepository(db).get_week(plan.plan_id, 3)).id == result.plan_week_id


@pytest.mark.asyncio
async def test_week_sessions_require_owner(db):
    service = PlanService(db)
    plan = await service.create_plan(1, macro_plan())

    with pytest.raises(NotFoundError):
        await service.create_week_sessions(2, plan.plan_id, week_plan(1, [[1]]))


@pytest.mark.asyncio
async def test_shared_catalog_across_sessions(db):
    service = PlanService(db)
    plan = await service.create_plan(1, macro_plan())
    week = WeekPlan.model_validate({
        "week_number": 1,
        "sessions": [
            {"name": "A", "exercises": [{"name": "Bench Press", "variation": "Barbell"}]},
            {"name": "B", "exercises": [{"name": "bench press", "variation": "barbell"}]},
        ],
    })

    await service.create_week_sessions(1, plan.plan_id, week)

    assert await count(db, Exercise) == 1
    assert await count(db, ExerciseEntry) == 2


@pytest.mark.asyncio
async def test_session_from_plan(db):
    session_plan = SessionPlan.model_validate({
        "name": "Quick Pull",
        "exercises": [{"name": "Chin Up", "target_sets": 3}],
    })

    result = await PlanService(db).create_session_from_plan(1, session_plan)

    session = await db.get(Session, result.session_ids[0])
    assert session.status == SessionStatus.PLANNED
    assert session.plan_id is None
    assert session.scheduled_date == date.today()
    assert await count(db, ExerciseSet) == 3


@pytest.mark.asyncio
async def test_active_plan_view(db):
    service = PlanService(db)
    plan = await service.create_plan(1, macro_plan())
    await service.create_week_sessions(1, plan.plan_id, week_plan(1, [[2, 1]]))

    active = await service.get_active_plan(1)

    assert active.id == plan.plan_id
    assert active.current_week == 1
    assert [w.week_number for w in active.weeks] == [1, 2]
    week_one = active.weeks[0]
    assert len(week_one.sessions) == 1
    assert week_one.sessions[0].week_number == 1
    assert [e.name for e in week_one.sessions[0].exercises] == ["Lift 1-1", "Lift 1-2"]
    assert active.weeks[1].sessions == []


@pytest.mark.asyncio
async def test_no_active_plan(db):
    assert await PlanService(db).get_active_plan(1) is None


class TestCurrentWeek:
    now = datetime(2026, 3, 15, 12, tzinfo=timezone.utc)

    def test_first_day_is_week_one(self):
        assert compute_current_week({"start_date": self.now.isoformat()}, None, self.now) == 1

    def test_counts_started_weeks(self):
        start = self.now - timedelta(days=8)
        assert compute_current_week({"start_date": start.isoformat()}, None, self.now) == 2

    def test_falls_back_to_created_at(self):
        created = (self.now - timedelta(days=15)).replace(tzinfo=None)
        assert compute_current_week({"start_date": "not a date"}, created, self.now) == 3

    def test_no_dates(self):
        assert compute_current_week(None, None, self.now) == 1


class TestDeletePlan:
    @pytest.mark.asyncio
    async def test_removes_whole_hierarchy(self, db):
        service = PlanService(db)
        plan = await service.create_plan(1, macro_plan())
        # 2 sessions per week, 3 exercises per session, 15 sets per week
        await service.create_week_sessions(1, plan.plan_id, week_plan(1, [[3, 3, 2], [3, 2, 2]]))
        await service.create_week_sessions(1, plan.plan_id, week_plan(2, [[3, 3, 2], [3, 2, 2]]))

        assert await count(db, ExerciseSet) == 30
        assert await count(db, ExerciseEntry) == 12
        assert await count(db, Session) == 4
        assert await count(db, PlanWeek) == 2

        result = await service.delete_plan(1, plan.plan_id)

        assert result.succeeded
        assert sum(step.count for step in result.steps) == 49
        for model in (ExerciseSet, ExerciseEntry, Session, PlanWeek, Plan):
            assert await count(db, model) == 0
        # Catalog rows are shared and survive
        assert await count(db, Exercise) > 0

    @pytest.mark.asyncio
    async def test_not_owned(self, db):
        service = PlanService(db)
        plan = await service.create_plan(1, macro_plan())

        with pytest.raises(NotFoundError):
            await service.delete_plan(2, plan.plan_id)
        assert await count(db, Plan) == 1
