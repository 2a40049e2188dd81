"""
SessionService - server side of the session page.

Reads sessions as ``SessionDetail`` snapshots (the same shape the device
cache stores) and saves edited snapshots back. A save is a full-state
upsert of the exercise list: persisted entries and sets are updated, pending
ones are inserted and reported back in ``resolved``, and persisted rows
missing from the snapshot are deleted.
"""
import logging
from datetime import date
from functools import partial

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helf.core.batch import BatchResult, BestEffortBatch
from helf.core.exceptions import BusinessRuleError, NotFoundError
from helf.models.enums import ExerciseType, SessionStatus
from helf.models.session import ExerciseEntry, ExerciseSet, Session
from helf.repositories.session_repository import SessionRepository
from helf.schemas.exercise import ExerciseRef
from helf.schemas.session import (
    ExerciseSnapshot,
    Persisted,
    SessionCreate,
    SessionCreateResult,
    SessionDetail,
    SessionSaveResult,
    SessionSnapshot,
    SessionUpdate,
    SetSnapshot,
)
from helf.services.base import BaseService
from helf.services.exercise import ExerciseResolver

logger = logging.getLogger(__name__)


def to_session_detail(session: Session) -> SessionDetail:
    """Snapshot of a session loaded with its week, entries, catalog exercises and sets."""
    return SessionDetail(
        session=SessionSnapshot(
            id=session.id,
            name=session.name,
            type=session.type,
            scheduled_date=session.scheduled_date,
            completed_date=session.completed_date,
            status=session.status,
            readiness_score=session.readiness_score,
            session_order=session.session_order,
            instructions=session.instructions,
            notes=session.notes,
            plan_id=session.plan_id,
            plan_week_id=session.plan_week_id,
            week_number=session.plan_week.week_number if session.plan_week else None,
        ),
        exercises=[
            ExerciseSnapshot(
                entry=Persisted(id=entry.id),
                exercise_id=entry.exercise_id,
                name=entry.exercise.name if entry.exercise else "Unknown Exercise",
                variation=entry.exercise.variation if entry.exercise else None,
                type=entry.exercise.type if entry.exercise else ExerciseType.WEIGHT,
                description=entry.exercise.description if entry.exercise else None,
                exercise_order=entry.exercise_order,
                target_sets=entry.target_sets,
                target_reps=entry.target_reps,
                target_rpe=entry.target_rpe,
                target_weight=entry.target_weight,
                instructions=entry.instructions,
                notes=entry.notes,
                sets=[
                    SetSnapshot(
                        identity=Persisted(id=s.id),
                        set_number=s.set_number,
                        weight=s.weight,
                        reps=s.reps,
                        rpe=s.rpe,
                        completed=s.completed,
                        notes=s.notes,
                    )
                    for s in sorted(entry.sets, key=lambda s: s.set_number)
                ],
            )
            for entry in entry_order(session.entries)
        ],
    )


def entry_order(entries: list[ExerciseEntry]) -> list[ExerciseEntry]:
    return sorted(entries, key=lambda e: (e.exercise_order or 0, e.id))


class SessionService(BaseService):
    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self._repo = SessionRepository(session)
        self._resolver = ExerciseResolver(session)

    async def get_session_with_exercises(self, session_id: int, user_id: int | None = None) -> SessionDetail:
        session = await self._repo.get_with_entries(session_id, user_id)
        if session is None:
            raise NotFoundError("Session", f"Session {session_id} not found", {"id": session_id})
        return to_session_detail(session)

    async def list_sessions(self, user_id: int) -> list[Session]:
        return await self._repo.list_by_user(user_id)

    async def get_next_session(self, user_id: int) -> SessionDetail | None:
        session = await self._repo.get_next_session(user_id)
        if session is None:
            return None
        return await self.get_session_with_exercises(session.id, user_id)

    async def create_session(self, user_id: int, data: SessionCreate) -> SessionCreateResult:
        """
        Create a session with its entries and sets.

        Raises:
            BusinessRuleError: If the session row itself cannot be written
        """
        logger.info("[CREATE_SESSION] '%s' with %d exercises for user_id=%s", data.name, len(data.exercises), user_id)
        try:
            record = await self._repo.create(
                Session(
                    user_id=user_id,
                    plan_id=data.plan_id,
                    plan_week_id=data.plan_week_id,
                    name=data.name,
                    type=data.type or "strength",
                    scheduled_date=data.scheduled_date or date.today(),
                    status=data.status,
                    readiness_score=data.readiness_score,
                    instructions=data.instructions or "",
                    notes=data.notes or "",
                    session_order=data.session_order,
                )
            )
            session_id = record.id
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error("[CREATE_SESSION] Failed to insert session: %s", e)
            raise BusinessRuleError("Failed to create training session", code="BR_SESSION_CREATE_001") from e

        batch = BestEffortBatch(self._session, "CREATE_SESSION")
        for position, exercise in enumerate(data.exercises, start=1):
            await batch.run(
                f"exercise_{position}",
                partial(self._insert_entry, session_id, exercise, position, {}),
            )

        return SessionCreateResult(
            session_id=session_id,
            message="Training session created successfully",
            batch=batch.result.to_dict(),
        )

    async def update_session(
        self,
        session_id: int,
        update: SessionUpdate,
        exercises: list[ExerciseSnapshot] | None = None,
        user_id: int | None = None,
    ) -> SessionSaveResult:
        """
        Save session fields and, when ``exercises`` is given, the full exercise list.

        Completing a session stamps ``completed_date`` (given or today).

        Raises:
            NotFoundError: If the session does not exist or belongs to another user
        """
        session = await self._repo.get(session_id)
        if session is None or (user_id is not None and session.user_id != user_id):
            raise NotFoundError("Session", f"Session {session_id} not found", {"id": session_id})

        fields = update.model_dump(exclude_unset=True)
        if fields.get("status") == SessionStatus.COMPLETED:
            fields["completed_date"] = fields.get("completed_date") or date.today()

        logger.info("[SAVE_SESSION] session_id=%s fields=%s exercises=%s", session_id, sorted(fields), None if exercises is None else len(exercises))

        batch = BestEffortBatch(self._session, "SAVE_SESSION")
        resolved: dict[str, int] = {}

        if fields:
            await batch.run("session_fields", partial(self._update_fields, session_id, fields))

        if exercises is not None:
            kept_entry_ids: set[int] = set()
            for position, exercise in enumerate(exercises, start=1):
                found: dict[str, int] = {}
                if isinstance(exercise.entry, Persisted):
                    kept_entry_ids.add(exercise.entry.id)
                    step = partial(self._update_entry, session_id, exercise, position, found)
                    name = f"entry_{exercise.entry.id}"
                else:
                    step = partial(self._insert_entry, session_id, exercise, position, found)
                    name = f"new_entry_{position}"

                outcome = await batch.run(name, step)
                if outcome.ok:
                    resolved.update(found)
                    if not isinstance(exercise.entry, Persisted):
                        kept_entry_ids.add(found[exercise.entry.token])

            await batch.run("prune_entries", partial(self._prune_entries, session_id, kept_entry_ids))

        return SessionSaveResult(session_id=session_id, resolved=resolved, batch=batch.result.to_dict())

    async def delete_session(self, session_id: int, user_id: int) -> BatchResult:
        session = await self._repo.get(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError("Session", f"Session {session_id} not found", {"id": session_id})

        logger.info("[DELETE_SESSION] session_id=%s user_id=%s", session_id, user_id)
        batch = BestEffortBatch(self._session, "DELETE_SESSION")
        await batch.run("sets", partial(self._delete_sets_of_sessions, [session_id]))
        await batch.run("entries", partial(self._delete_entries_of_sessions, [session_id]))
        await batch.run("session", partial(self._repo.delete_sessions, [session_id]))
        return batch.result

    # Steps

    async def _update_fields(self, session_id: int, fields: dict) -> int:
        await self._repo.update(session_id, fields)
        return 1

    async def _update_entry(self, session_id: int, exercise: ExerciseSnapshot, position: int, resolved: dict[str, int]) -> int:
        entry = await self._repo.get_entry(exercise.entry.id, session_id)
        if entry is None:
            raise NotFoundError("ExerciseEntry", f"Exercise entry {exercise.entry.id} not in session {session_id}")

        entry.exercise_order = exercise.exercise_order or position
        entry.target_sets = exercise.target_sets
        entry.target_reps = exercise.target_reps
        entry.target_rpe = exercise.target_rpe
        entry.target_weight = exercise.target_weight
        entry.instructions = exercise.instructions or ""
        entry.notes = exercise.notes or ""
        if exercise.exercise_id and exercise.exercise_id > 0 and exercise.exercise_id != entry.exercise_id:
            logger.info("[SAVE_SESSION] entry %s switched to exercise %s", entry.id, exercise.exercise_id)
            entry.exercise_id = exercise.exercise_id

        kept_set_ids: set[int] = set()
        new_sets: list[tuple[str, ExerciseSet]] = []
        for snapshot in exercise.sets:
            if isinstance(snapshot.identity, Persisted):
                row = await self._repo.get_set(snapshot.identity.id, entry.id)
                if row is None:
                    raise NotFoundError("ExerciseSet", f"Set {snapshot.identity.id} not in entry {entry.id}")
                _apply_set(row, snapshot)
                kept_set_ids.add(row.id)
            else:
                row = ExerciseSet(exercise_entry_id=entry.id)
                _apply_set(row, snapshot)
                new_sets.append((snapshot.identity.token, row))

        if new_sets:
            await self._repo.create_sets([row for _, row in new_sets])
            for token, row in new_sets:
                resolved[token] = row.id
                kept_set_ids.add(row.id)

        stale = [set_id for set_id in await self._repo.list_set_ids([entry.id]) if set_id not in kept_set_ids]
        removed = await self._repo.delete_sets(stale)
        await self._session.flush()
        return 1 + len(exercise.sets) + removed

    async def _insert_entry(self, session_id: int, exercise: ExerciseSnapshot, position: int, resolved: dict[str, int]) -> int:
        exercise_id = await self._resolver.resolve(
            ExerciseRef(
                id=exercise.exercise_id,
                name=exercise.name,
                variation=exercise.variation,
                type=exercise.type,
                instructions=exercise.instructions,
            )
        )
        entry = await self._repo.create_entry(
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
        if not isinstance(exercise.entry, Persisted):
            resolved[exercise.entry.token] = entry.id

        rows = []
        for snapshot in exercise.sets:
            row = ExerciseSet(exercise_entry_id=entry.id)
            _apply_set(row, snapshot)
            rows.append((snapshot.identity, row))
        if rows:
            await self._repo.create_sets([row for _, row in rows])
            for identity, row in rows:
                if not isinstance(identity, Persisted):
                    resolved[identity.token] = row.id
        return 1 + len(rows)

    async def _prune_entries(self, session_id: int, kept_entry_ids: set[int]) -> int:
        stale = [entry_id for entry_id in await self._repo.list_entry_ids([session_id]) if entry_id not in kept_entry_ids]
        if not stale:
            return 0
        logger.info("[SAVE_SESSION] Removing %d entries no longer in session %s", len(stale), session_id)
        await self._repo.delete_sets_for_entries(stale)
        return await self._repo.delete_entries(stale)

    async def _delete_sets_of_sessions(self, session_ids: list[int]) -> int:
        return await self._repo.delete_sets_for_entries(await self._repo.list_entry_ids(session_ids))

    async def _delete_entries_of_sessions(self, session_ids: list[int]) -> int:
        return await self._repo.delete_entries(await self._repo.list_entry_ids(session_ids))


def _apply_set(row: ExerciseSet, snapshot: SetSnapshot) -> None:
    row.set_number = snapshot.set_number
    row.weight = snapshot.weight
    row.reps = snapshot.reps
    row.rpe = snapshot.rpe
    row.completed = snapshot.completed
    row.notes = snapshot.notes
