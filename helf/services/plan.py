"""
PlanService - materializes assistant plans into plan/week/session/entry/set rows.

Creation happens in two stages:
- create_plan writes the macro plan and its weeks only. Sessions listed in
  a macro plan are placeholders and are never written.
- create_week_sessions writes the sessions of one week together with their
  exercise entries and empty sets, once the assistant has produced the
  detailed week plan.

Neither stage runs in a single transaction. Each row group is a step of a
BestEffortBatch: it commits on its own and a failed step does not stop the
next one. The same holds for delete_plan, which removes the hierarchy bottom-up.
"""
import logging
import math
from datetime import date, datetime, timedelta, timezone
from functools import partial

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helf.core.batch import BatchResult, BestEffortBatch
from helf.core.exceptions import BusinessRuleError, NotFoundError
from helf.models.enums import PlanStatus, SessionStatus
from helf.models.plan import Plan, PlanWeek
from helf.models.session import ExerciseEntry, ExerciseSet, Session
from helf.repositories.plan_repository import PlanRepository
from helf.repositories.session_repository import SessionRepository
from helf.schemas.assistant import AssistantExercise, AssistantPlan, SessionPlan, TrainingPlanSession, WeekPlan
from helf.schemas.exercise import ExerciseRef
from helf.schemas.plan import (
    ActivePlan,
    PlanCreationResult,
    PlanExerciseSummary,
    PlanSessionSummary,
    PlanWeekSummary,
    WeekCreationResult,
)
from helf.services.base import BaseService
from helf.services.exercise import ExerciseResolver

logger = logging.getLogger(__name__)


def compute_current_week(metadata: dict | None, created_at: datetime | None, now: datetime | None = None) -> int:
    """Week of the plan ``now`` falls in, counted from ``metadata.start_date``."""
    now = now or datetime.now(timezone.utc)
    start: datetime | None = None

    raw = (metadata or {}).get("start_date")
    if isinstance(raw, str):
        try:
            start = datetime.fromisoformat(raw)
        except ValueError:
            logger.warning("Unparseable plan start_date %r, falling back to created_at", raw)
    if start is None:
        start = created_at
    if start is None:
        return 1
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)

    weeks = math.ceil((now - start).total_seconds() / timedelta(weeks=1).total_seconds())
    return weeks if weeks > 0 else 1


class PlanService(BaseService):
    """Creates, reads and deletes training plans for one database session."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self._plan_repo = PlanRepository(session)
        self._session_repo = SessionRepository(session)
        self._resolver = ExerciseResolver(session)

    async def create_plan(self, user_id: int, plan: AssistantPlan) -> PlanCreationResult:
        """
        Insert the plan as the owner's only active plan, then one PlanWeek per week.

        Raises:
            BusinessRuleError: If the plan row itself cannot be written
        """
        logger.info("[CREATE_PLAN] Creating plan '%s' with %d weeks for user_id=%s", plan.name, len(plan.weeks), user_id)

        try:
            record = await self._plan_repo.create(
                Plan(
                    user_id=user_id,
                    name=plan.name,
                    description=plan.description or "",
                    goal=plan.goal or "",
                    status=PlanStatus.ACTIVE,
                    source="assistant",
                    plan_metadata=plan.metadata or {"start_date": datetime.now(timezone.utc).isoformat()},
                )
            )
            plan_id = record.id
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error("[CREATE_PLAN] Failed to insert plan for user_id=%s: %s", user_id, e)
            raise BusinessRuleError(
                "Failed to create training plan",
                code="BR_PLAN_CREATE_001",
                details={"user_id": user_id},
            ) from e

        logger.info("[CREATE_PLAN] Created plan_id=%s", plan_id)
        batch = BestEffortBatch(self._session, "CREATE_PLAN")

        await batch.run("archive_previous_plans", partial(self._plan_repo.archive_other_plans, user_id, plan_id))

        for week in plan.weeks:
            await batch.run(f"week_{week.week_number}", partial(self._insert_week, plan_id, week.week_number, week.focus, week.instructions))
            # Sessions in a macro plan are placeholders; create_week_sessions writes them later

        return PlanCreationResult(
            plan_id=plan_id,
            message=f'Training plan "{plan.name}" created successfully',
            batch=batch.result.to_dict(),
        )

    async def _insert_week(self, plan_id: int, week_number: int, focus: str | None, instructions: str | None) -> int:
        await self._plan_repo.create_week(
            PlanWeek(
                plan_id=plan_id,
                week_number=week_number,
                focus=focus or "",
                instructions=instructions or "",
            )
        )
        return 1

    async def create_week_sessions(self, user_id: int, plan_id: int, week: WeekPlan) -> WeekCreationResult:
        """
        Write the sessions of one week with their exercise entries and empty sets.

        Sessions are scheduled ``(week_number - 1) * 7`` days from today.

        Raises:
            NotFoundError: If the plan does not exist or belongs to another user
        """
        logger.info("[CREATE_WEEK] plan_id=%s week=%s sessions=%d", plan_id, week.week_number, len(week.sessions))

        plan = await self._plan_repo.get_plan_by_id_and_user(plan_id, user_id)
        if plan is None:
            raise NotFoundError("Plan", "Plan not found or not owned by this user", {"plan_id": plan_id})

        batch = BestEffortBatch(self._session, "CREATE_WEEK")

        existing_week = await self._plan_repo.get_week(plan_id, week.week_number)
        if existing_week is not None:
            plan_week_id = existing_week.id
        else:
            step = await batch.run(
                f"week_{week.week_number}",
                partial(self._insert_week, plan_id, week.week_number, week.focus, week.instructions),
            )
            if not step.ok:
                return WeekCreationResult(
                    plan_id=plan_id,
                    message=f"Could not create week {week.week_number}",
                    batch=batch.result.to_dict(),
                )
            plan_week_id = (await self._plan_repo.get_week(plan_id, week.week_number)).id

        scheduled = date.today() + timedelta(days=(week.week_number - 1) * 7)
        session_ids = []
        for position, session_data in enumerate(week.sessions, start=1):
            session_id = await self._materialize_session(
                batch,
                user_id,
                session_data,
                position,
                status=SessionStatus.UPCOMING,
                scheduled_date=scheduled,
                plan_id=plan_id,
                plan_week_id=plan_week_id,
            )
            if session_id is not None:
                session_ids.append(session_id)

        return WeekCreationResult(
            plan_id=plan_id,
            plan_week_id=plan_week_id,
            session_ids=session_ids,
            message=f"Created {len(session_ids)} sessions for week {week.week_number}",
            batch=batch.result.to_dict(),
        )

    async def create_session_from_plan(self, user_id: int, session_plan: SessionPlan) -> WeekCreationResult:
        """Write an ad-hoc session (no plan) from a sessionPlan payload."""
        logger.info("[CREATE_SESSION_PLAN] '%s' with %d exercises for user_id=%s", session_plan.name, len(session_plan.exercises), user_id)

        batch = BestEffortBatch(self._session, "CREATE_SESSION_PLAN")
        session_id = await self._materialize_session(
            batch,
            user_id,
            session_plan,
            1,
            status=SessionStatus.PLANNED,
            scheduled_date=date.today(),
        )
        return WeekCreationResult(
            session_ids=[session_id] if session_id is not None else [],
            message=f'Session "{session_plan.name}" created' if session_id else "Could not create session",
            batch=batch.result.to_dict(),
        )

    async def _materialize_session(
        self,
        batch: BestEffortBatch,
        user_id: int,
        session_data: TrainingPlanSession | SessionPlan,
        position: int,
        *,
        status: SessionStatus,
        scheduled_date: date,
        plan_id: int | None = None,
        plan_week_id: int | None = None,
    ) -> int | None:
        created: list[int] = []

        async def insert_session() -> int:
            record = await self._session_repo.create(
                Session(
                    user_id=user_id,
                    plan_id=plan_id,
                    plan_week_id=plan_week_id,
                    name=session_data.name,
                    type=session_data.type or "strength",
                    scheduled_date=scheduled_date,
                    status=status,
                    instructions=session_data.instructions or "",
                    notes=session_data.notes or "",
                    session_order=getattr(session_data, "session_order", None) or position,
                )
            )
            created.append(record.id)
            return 1

        step = await batch.run(f"session_{position}", insert_session)
        if not step.ok:
            return None
        session_id = created[0]

        for index, exercise in enumerate(session_data.exercises or [], start=1):
            await batch.run(
                f"session_{position}_exercise_{index}",
                partial(self._insert_exercise_entry, session_id, exercise, index),
            )
        return session_id

    async def _insert_exercise_entry(self, session_id: int, exercise: AssistantExercise, position: int) -> int:
        exercise_id = await self._resolver.resolve(
            ExerciseRef(
                name=exercise.name,
                variation=exercise.variation,
                type=exercise.type,
                instructions=exercise.instructions,
            )
        )
        entry = await self._session_repo.create_entry(
            ExerciseEntry(
                session_id=session_id,
                exercise_id=exercise_id,
                exercise_order=exercise.exercise_order or position,
                target_sets=exercise.target_sets,
                target_reps=exercise.target_reps,
                target_rpe=exercise.target_rpe,
                target_weight=exercise.target_weight,
                instructions=exercise.instructions or "",
                notes=exercise.notes or "",
            )
        )

        # Empty slots the session page fills in
        sets = [
            ExerciseSet(exercise_entry_id=entry.id, set_number=number, completed=False)
            for number in range(1, (exercise.target_sets or 0) + 1)
        ]
        if sets:
            await self._session_repo.create_sets(sets)
        return 1 + len(sets)

    async def get_active_plan(self, user_id: int) -> ActivePlan | None:
        plan = await self._plan_repo.get_active_plan(user_id)
        if plan is None:
            return None

        weeks = await self._plan_repo.list_weeks(plan.id)
        sessions = await self._session_repo.list_by_user(user_id, plan_id=plan.id)
        entries = await self._session_repo.list_entries_for_sessions([s.id for s in sessions])

        exercises_by_session: dict[int, list[PlanExerciseSummary]] = {}
        for entry in entries:
            exercises_by_session.setdefault(entry.session_id, []).append(
                PlanExerciseSummary(
                    id=entry.exercise_id,
                    name=entry.exercise.name if entry.exercise else "Unknown Exercise",
                    type=entry.exercise.type if entry.exercise else None,
                    variation=entry.exercise.variation if entry.exercise else None,
                    exercise_order=entry.exercise_order,
                    target_sets=entry.target_sets,
                    target_reps=entry.target_reps,
                    target_rpe=entry.target_rpe,
                    target_weight=entry.target_weight,
                )
            )

        week_numbers = {week.id: week.week_number for week in weeks}
        sessions_by_week: dict[int, list[PlanSessionSummary]] = {}
        for s in sorted(sessions, key=lambda s: (s.session_order or 0, s.id)):
            sessions_by_week.setdefault(s.plan_week_id, []).append(
                PlanSessionSummary(
                    id=s.id,
                    name=s.name,
                    type=s.type,
                    scheduled_date=s.scheduled_date,
                    completed_date=s.completed_date,
                    status=s.status,
                    session_order=s.session_order,
                    week_number=week_numbers.get(s.plan_week_id),
                    exercises=exercises_by_session.get(s.id, []),
                )
            )

        return ActivePlan(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            goal=plan.goal,
            status=plan.status,
            current_week=compute_current_week(plan.plan_metadata, plan.created_at),
            metadata=plan.plan_metadata or {},
            weeks=[
                PlanWeekSummary(
                    id=week.id,
                    week_number=week.week_number,
                    focus=week.focus,
                    instructions=week.instructions,
                    sessions=sessions_by_week.get(week.id, []),
                )
                for week in weeks
            ],
        )

    async def delete_plan(self, user_id: int, plan_id: int) -> BatchResult:
        """
        Delete a plan and everything under it, bottom-up.

        Sets and entries go per session, then sessions, weeks and the plan.
        A failed step is logged and recorded; the remaining steps still run.

        Raises:
            NotFoundError: If the plan does not exist or belongs to another user
        """
        logger.info("[DELETE_PLAN] Deleting plan_id=%s for user_id=%s", plan_id, user_id)

        plan = await self._plan_repo.get_plan_by_id_and_user(plan_id, user_id)
        if plan is None:
            raise NotFoundError("Plan", "Plan not found or not owned by this user", {"plan_id": plan_id})

        week_ids = await self._plan_repo.list_week_ids(plan_id)
        session_ids = await self._session_repo.list_session_ids_for_plan(plan_id)
        logger.info("[DELETE_PLAN] Found %d weeks and %d sessions", len(week_ids), len(session_ids))

        batch = BestEffortBatch(self._session, "DELETE_PLAN")
        for session_id in session_ids:
            await batch.run(f"session_{session_id}_sets", partial(self._delete_session_sets, session_id))
            await batch.run(f"session_{session_id}_entries", partial(self._delete_session_entries, session_id))

        await batch.run("sessions", partial(self._session_repo.delete_sessions, session_ids))
        await batch.run("weeks", partial(self._plan_repo.delete_weeks, week_ids))
        await batch.run("plan", partial(self._delete_plan_row, plan_id))

        if batch.result.succeeded:
            logger.info("[DELETE_PLAN] Successfully deleted plan_id=%s", plan_id)
        else:
            logger.warning(
                "[DELETE_PLAN] plan_id=%s partially deleted; failed steps: %s",
                plan_id, [step.name for step in batch.result.failed_steps],
            )
        return batch.result

    async def _delete_session_sets(self, session_id: int) -> int:
        entry_ids = await self._session_repo.list_entry_ids([session_id])
        return await self._session_repo.delete_sets_for_entries(entry_ids)

    async def _delete_session_entries(self, session_id: int) -> int:
        entry_ids = await self._session_repo.list_entry_ids([session_id])
        return await self._session_repo.delete_entries(entry_ids)

    async def _delete_plan_row(self, plan_id: int) -> int:
        return 1 if await self._plan_repo.delete(plan_id) else 0
