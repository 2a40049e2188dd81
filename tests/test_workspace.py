"""Tests for editing, saving and completing a session on the device."""
import asyncio
from datetime import date

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from helf.client.cache_store import SessionCacheStore
from helf.client.gateway import LocalSessionGateway
from helf.client.merge import CacheOrigin, SessionCacheEngine
from helf.client.workspace import SessionWorkspace
from helf.core.exceptions import ValidationError
from helf.models.enums import SessionStatus
from helf.models.session import ExerciseSet
from helf.schemas.assistant import AssistantPlan, WeekPlan
from helf.schemas.session import Pending, Persisted, SessionContext, SessionSaveRequest, SetSnapshot
from helf.services.plan import PlanService


@pytest_asyncio.fixture
async def planned_session_id(session_factory):
    async with session_factory() as db:
        service = PlanService(db)
        plan = await service.create_plan(1, AssistantPlan.model_validate({
            "name": "Block", "weeks": [{"week_number": 1, "sessions": []}],
        }))
        week = await service.create_week_sessions(1, plan.plan_id, WeekPlan.model_validate({
            "week_number": 1,
            "sessions": [
                {"name": "Lower A", "exercises": [
                    {"name": "Back Squat", "target_sets": 3, "target_reps": "5"},
                    {"name": "Plank", "target_sets": 2},
                ]},
                {"name": "Upper A", "exercises": [{"name": "Bench Press", "target_sets": 3}]},
            ],
        }))
        return week.session_ids[0]


@pytest.fixture
def store(tmp_path):
    return SessionCacheStore(tmp_path / "device.db")


@pytest.fixture
def gateway(session_factory):
    return LocalSessionGateway(session_factory, user_id=1)


async def open_workspace(store, gateway, session_id, delay=10.0, force_refresh=False):
    engine = SessionCacheEngine(store, gateway)
    return await SessionWorkspace.open(
        SessionContext(session_id=session_id, force_refresh=force_refresh),
        engine,
        gateway,
        autosave_delay=delay,
    )


@pytest.mark.asyncio
async def test_open_from_server(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)

    assert workspace.origin == CacheOrigin.SERVER
    assert workspace.session.week_number == 1
    assert [e.name for e in workspace.exercises] == ["Back Squat", "Plank"]
    assert await store.get_last_active() == planned_session_id


@pytest.mark.asyncio
async def test_set_edit_propagates_forward(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)

    workspace.update_set(0, 1, weight=100, reps=5)

    weights = [s.weight for s in workspace.exercises[0].sets]
    assert weights == [None, 100, 100]
    assert workspace.exercises[0].sets[2].reps == 5
    assert workspace.autosave.pending
    workspace.autosave.cancel()


@pytest.mark.asyncio
async def test_completed_flag_does_not_propagate(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)

    workspace.update_set(0, 0, completed=True)

    assert [s.completed for s in workspace.exercises[0].sets] == [True, False, False]
    workspace.autosave.cancel()


@pytest.mark.asyncio
async def test_unknown_field_rejected(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)

    with pytest.raises(ValidationError):
        workspace.update_set(0, 0, tempo="3-1-1")
    with pytest.raises(ValidationError):
        workspace.update_session(status=SessionStatus.COMPLETED)


@pytest.mark.asyncio
async def test_readiness_range(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)

    workspace.set_readiness(7)
    assert workspace.session.readiness_score == 7
    with pytest.raises(ValidationError):
        workspace.set_readiness(11)
    workspace.autosave.cancel()


@pytest.mark.asyncio
async def test_add_and_delete_sets(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)
    workspace.update_set(0, 2, weight=90, reps=3)

    added = workspace.add_set(0)
    assert isinstance(added.identity, Pending)
    assert (added.set_number, added.weight, added.reps) == (4, 90, 3)

    workspace.delete_set(0, 0)
    assert [s.set_number for s in workspace.exercises[0].sets] == [1, 2, 3]
    workspace.autosave.cancel()


@pytest.mark.asyncio
async def test_exercise_edits(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)

    workspace.add_exercise("Walking Lunge", target_sets=2)
    workspace.replace_exercise(1, "Side Plank")
    workspace.delete_exercise(0)

    assert [e.name for e in workspace.exercises] == ["Side Plank", "Walking Lunge"]
    assert [e.exercise_order for e in workspace.exercises] == [1, 2]
    assert len(workspace.exercises[1].sets) == 2
    workspace.autosave.cancel()


@pytest.mark.asyncio
async def test_autosave_writes_cache(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id, delay=0.01)

    workspace.update_set(0, 0, weight=100, reps=5)
    await workspace.autosave.flush_now()

    cached = await store.load(planned_session_id)
    assert cached.exercises[0].sets[0].weight == 100

    # Reopening within the staleness window serves the edit from the cache
    reopened = await open_workspace(store, gateway, planned_session_id)
    assert reopened.origin == CacheOrigin.CACHE
    assert reopened.exercises[0].sets[2].weight == 100


@pytest.mark.asyncio
async def test_leave_flushes(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)
    workspace.update_session(notes="Knee felt fine")

    await workspace.leave()

    assert not workspace.autosave.pending
    assert (await store.load(planned_session_id)).session.notes == "Knee felt fine"


@pytest.mark.asyncio
async def test_save_resolves_pending_ids(store, gateway, planned_session_id, session_factory):
    workspace = await open_workspace(store, gateway, planned_session_id)
    workspace.add_set(0)
    workspace.add_exercise("Nordic Curl", target_sets=1)
    workspace.autosave.cancel()

    result = await workspace.save()

    assert result.batch["succeeded"] is True
    assert all(isinstance(s.identity, Persisted) for e in workspace.exercises for s in e.sets)
    assert all(isinstance(e.entry, Persisted) for e in workspace.exercises)

    detail = await gateway.fetch_session(planned_session_id)
    assert len(detail.exercises[0].sets) == 4
    assert detail.exercises[2].name == "Nordic Curl"


@pytest.mark.asyncio
async def test_complete(store, gateway, planned_session_id, session_factory):
    workspace = await open_workspace(store, gateway, planned_session_id)
    workspace.update_set(0, 0, weight=100, reps=5)
    workspace.update_set(0, 2, weight=None)

    result = await workspace.complete()

    assert workspace.is_completed
    assert not workspace.autosave.pending
    assert await store.load(planned_session_id) is None
    assert await store.get_last_active() is None

    detail = await gateway.fetch_session(planned_session_id)
    assert detail.session.status == SessionStatus.COMPLETED
    assert detail.session.completed_date == date.today()
    assert [s.completed for s in detail.exercises[0].sets] == [True, True, False]
    assert detail.exercises[1].sets[0].completed is False

    assert result.session_id == planned_session_id
    assert "Week 2 Session 1" in result.next_session_prompt
    assert "Week 1 Session 1" in result.next_session_prompt

    async with session_factory() as db:
        completed = (await db.execute(select(ExerciseSet).where(ExerciseSet.completed.is_(True)))).scalars().all()
    assert len(completed) == 2


@pytest.mark.asyncio
async def test_leave_after_complete_does_not_recache(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)
    await workspace.complete()

    await workspace.leave()

    assert await store.load(planned_session_id) is None


class OfflineGateway:
    """Reads through to the database, fails every save like a dropped connection."""

    def __init__(self, inner):
        self._inner = inner

    async def fetch_session(self, session_id):
        return await self._inner.fetch_session(session_id)

    async def save_session(self, session_id, request):
        raise httpx.ConnectError("network unreachable")


class SlowStore(SessionCacheStore):
    async def save(self, entry):
        await asyncio.sleep(0.2)
        await super().save(entry)


@pytest.mark.asyncio
async def test_failed_complete_keeps_local_edits(store, gateway, planned_session_id):
    workspace = await open_workspace(store, OfflineGateway(gateway), planned_session_id)
    workspace.update_set(0, 0, weight=120, reps=5)

    with pytest.raises(httpx.ConnectError):
        await workspace.complete()

    assert not workspace.is_completed
    assert workspace.session.completed_date is None
    assert workspace.exercises[0].sets[0].completed is False

    await workspace.leave()

    cached = await store.load(planned_session_id)
    assert cached.session.status != SessionStatus.COMPLETED
    assert cached.exercises[0].sets[0].weight == 120
    assert await store.get_last_active() == planned_session_id

    detail = await gateway.fetch_session(planned_session_id)
    assert detail.session.status != SessionStatus.COMPLETED


@pytest.mark.asyncio
async def test_complete_waits_for_running_autosave(tmp_path, gateway, planned_session_id):
    slow_store = SlowStore(tmp_path / "slow.db")
    workspace = await open_workspace(slow_store, gateway, planned_session_id, delay=0.01)
    workspace.update_set(0, 0, weight=100, reps=5)

    # Let the timer fire so the flush is already writing when completion starts
    await asyncio.sleep(0.05)
    assert not workspace.autosave.pending

    await workspace.complete()
    await workspace.autosave.wait_idle()

    assert await slow_store.load(planned_session_id) is None
    assert await slow_store.get_last_active() is None
    detail = await gateway.fetch_session(planned_session_id)
    assert detail.session.status == SessionStatus.COMPLETED


@pytest.mark.asyncio
async def test_forced_refresh_after_entry_recreated_saves_cleanly(store, gateway, planned_session_id):
    workspace = await open_workspace(store, gateway, planned_session_id)
    workspace.update_set(0, 0, weight=100, reps=5)
    await workspace.leave()

    # Another client replaces the squat entry with a fresh one for the same exercise
    detail = await gateway.fetch_session(planned_session_id)
    squat = detail.exercises[0]
    recreated = squat.model_copy(update={
        "entry": Pending(),
        "sets": [SetSnapshot(set_number=n) for n in range(1, 4)],
    })
    await gateway.save_session(
        planned_session_id,
        SessionSaveRequest(exercises=[recreated, *detail.exercises[1:]]),
    )

    refreshed = await open_workspace(store, gateway, planned_session_id, force_refresh=True)
    assert refreshed.origin == CacheOrigin.MERGED
    assert refreshed.exercises[0].entry != squat.entry
    assert refreshed.exercises[0].sets[0].weight == 100

    result = await refreshed.save()

    assert result.batch["succeeded"] is True
    saved = await gateway.fetch_session(planned_session_id)
    assert [s.weight for s in saved.exercises[0].sets] == [100, 100, 100]
