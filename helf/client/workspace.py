"""
SessionWorkspace - editing state of one open session on the device.

Every edit changes the in-memory snapshot and schedules an autosave into
the local cache; nothing goes to the server until the session is saved or
completed. Records created here carry ``Pending`` identities until a save
response maps them to persisted ids.
"""
import logging
from datetime import date

from pydantic import BaseModel

from helf.client.autosave import AutosaveScheduler
from helf.client.gateway import SessionGateway
from helf.client.merge import CacheOrigin, SessionCacheEngine
from helf.core.exceptions import ValidationError
from helf.models.enums import ExerciseType, SessionStatus
from helf.schemas.session import (
    ExerciseSnapshot,
    Pending,
    Persisted,
    SessionContext,
    SessionSaveRequest,
    SessionSaveResult,
    SessionSnapshot,
    SessionUpdate,
    SetSnapshot,
)

logger = logging.getLogger(__name__)

_SESSION_FIELDS = {"name", "type", "scheduled_date", "instructions", "notes"}
_EXERCISE_FIELDS = {
    "exercise_order", "target_sets", "target_reps", "target_rpe",
    "target_weight", "instructions", "notes",
}
# Entering one of these on a set carries it to every later set of the exercise
_PROPAGATED_SET_FIELDS = {"weight", "reps", "rpe"}
_SET_FIELDS = _PROPAGATED_SET_FIELDS | {"completed", "notes"}


class CompletionResult(BaseModel):
    session_id: int
    saved: SessionSaveResult
    next_session_prompt: str | None = None


def _check_fields(given: dict, allowed: set[str], what: str) -> None:
    unknown = set(given) - allowed
    if unknown:
        raise ValidationError(what, f"unknown fields {sorted(unknown)}")


class SessionWorkspace:
    def __init__(
        self,
        context: SessionContext,
        engine: SessionCacheEngine,
        gateway: SessionGateway,
        session: SessionSnapshot,
        exercises: list[ExerciseSnapshot],
        origin: CacheOrigin,
        autosave_delay: float = 3.0,
    ):
        self.context = context
        self.session = session
        self.exercises = exercises
        self.origin = origin
        self._engine = engine
        self._gateway = gateway
        self._autosave = AutosaveScheduler(self.flush, delay=autosave_delay)

    @classmethod
    async def open(
        cls,
        context: SessionContext,
        engine: SessionCacheEngine,
        gateway: SessionGateway,
        autosave_delay: float = 3.0,
    ) -> "SessionWorkspace":
        loaded = await engine.open(context)
        logger.info("Opened session %s from %s", context.session_id, loaded.origin.value)
        return cls(
            context,
            engine,
            gateway,
            loaded.session,
            loaded.exercises,
            loaded.origin,
            autosave_delay=autosave_delay,
        )

    @property
    def autosave(self) -> AutosaveScheduler:
        return self._autosave

    @property
    def is_completed(self) -> bool:
        return self.session.status == SessionStatus.COMPLETED

    def _changed(self) -> None:
        self._autosave.schedule()

    # Session

    def update_session(self, **fields) -> None:
        _check_fields(fields, _SESSION_FIELDS, "session")
        self.session = self.session.model_copy(update=fields)
        self._changed()

    def set_readiness(self, score: int) -> None:
        if not 1 <= score <= 10:
            raise ValidationError("readiness_score", "must be between 1 and 10")
        self.session = self.session.model_copy(update={"readiness_score": score})
        self._changed()

    # Exercises

    def update_exercise(self, index: int, **fields) -> None:
        _check_fields(fields, _EXERCISE_FIELDS, "exercise")
        self.exercises[index] = self.exercises[index].model_copy(update=fields)
        self._changed()

    def add_exercise(
        self,
        name: str,
        variation: str | None = None,
        type: ExerciseType = ExerciseType.WEIGHT,
        exercise_id: int | None = None,
        target_sets: int = 0,
        target_reps: str | None = None,
    ) -> ExerciseSnapshot:
        exercise = ExerciseSnapshot(
            entry=Pending(),
            exercise_id=exercise_id,
            name=name,
            variation=variation,
            type=type,
            exercise_order=len(self.exercises) + 1,
            target_sets=target_sets or None,
            target_reps=target_reps,
            sets=[SetSnapshot(identity=Pending(), set_number=n) for n in range(1, target_sets + 1)],
        )
        self.exercises.append(exercise)
        self._changed()
        return exercise

    def replace_exercise(
        self,
        index: int,
        name: str,
        variation: str | None = None,
        type: ExerciseType = ExerciseType.WEIGHT,
        exercise_id: int | None = None,
    ) -> None:
        """Swap the catalog exercise of an entry, keeping its targets and sets."""
        self.exercises[index] = self.exercises[index].model_copy(update={
            "exercise_id": exercise_id,
            "name": name,
            "variation": variation,
            "type": type,
        })
        self._changed()

    def delete_exercise(self, index: int) -> None:
        del self.exercises[index]
        for order, exercise in enumerate(self.exercises, start=1):
            exercise.exercise_order = order
        self._changed()

    # Sets

    def update_set(self, exercise_index: int, set_index: int, **fields) -> None:
        _check_fields(fields, _SET_FIELDS, "set")
        sets = self.exercises[exercise_index].sets
        sets[set_index] = sets[set_index].model_copy(update=fields)

        carried = {k: v for k, v in fields.items() if k in _PROPAGATED_SET_FIELDS}
        if carried:
            for later in range(set_index + 1, len(sets)):
                sets[later] = sets[later].model_copy(update=carried)
        self._changed()

    def add_set(self, exercise_index: int) -> SetSnapshot:
        sets = self.exercises[exercise_index].sets
        previous = sets[-1] if sets else None
        new_set = SetSnapshot(
            identity=Pending(),
            set_number=len(sets) + 1,
            weight=previous.weight if previous else None,
            reps=previous.reps if previous else None,
            rpe=previous.rpe if previous else None,
        )
        sets.append(new_set)
        self._changed()
        return new_set

    def delete_set(self, exercise_index: int, set_index: int) -> None:
        sets = self.exercises[exercise_index].sets
        del sets[set_index]
        for number, s in enumerate(sets, start=1):
            s.set_number = number
        self._changed()

    # Persistence

    async def flush(self) -> None:
        """Write the current state to the device cache."""
        await self._engine.write(self.session, self.exercises)

    async def leave(self) -> None:
        """Navigating away: flush right away unless the session is already completed."""
        if self.is_completed:
            self._autosave.cancel()
            return
        await self._autosave.flush_now()

    def _session_update(self, session: SessionSnapshot) -> SessionUpdate:
        return SessionUpdate(
            name=session.name,
            type=session.type,
            scheduled_date=session.scheduled_date,
            readiness_score=session.readiness_score,
            instructions=session.instructions,
            notes=session.notes,
            status=session.status,
            completed_date=session.completed_date,
        )

    def _apply_resolved(self, resolved: dict[str, int]) -> None:
        for exercise in self.exercises:
            if isinstance(exercise.entry, Pending) and exercise.entry.token in resolved:
                exercise.entry = Persisted(id=resolved[exercise.entry.token])
            for s in exercise.sets:
                if isinstance(s.identity, Pending) and s.identity.token in resolved:
                    s.identity = Persisted(id=resolved[s.identity.token])

    async def _push(self, session: SessionSnapshot, exercises: list[ExerciseSnapshot]) -> SessionSaveResult:
        result = await self._gateway.save_session(
            session.id,
            SessionSaveRequest(session=self._session_update(session), exercises=exercises),
        )
        if not result.batch.get("succeeded", True):
            logger.warning("Session %s saved partially: %s", session.id, result.batch)
        return result

    async def save(self) -> SessionSaveResult:
        """Push the current state to the server and adopt the persisted ids."""
        result = await self._push(self.session, self.exercises)
        self._apply_resolved(result.resolved)
        return result

    async def _settle_autosave(self) -> None:
        self._autosave.cancel()
        await self._autosave.wait_idle()

    async def complete(self) -> CompletionResult:
        """
        Save and complete the session.

        Sets holding both weight and reps are marked completed, the session
        is saved as completed, and its cache entry is purged. The completed
        state is built on copies and adopted only once the server accepted
        it; if the save raises, the workspace is left as it was.
        """
        await self._settle_autosave()

        exercises = [
            exercise.model_copy(update={"sets": [
                s.model_copy(update={"completed": True} if s.weight is not None and s.reps is not None else {})
                for s in exercise.sets
            ]})
            for exercise in self.exercises
        ]
        session = self.session.model_copy(update={
            "status": SessionStatus.COMPLETED,
            "completed_date": self.session.completed_date or date.today(),
        })

        try:
            saved = await self._push(session, exercises)
        except Exception:
            logger.warning("Completing session %s failed; keeping local edits", session.id)
            raise

        self.session = session
        self.exercises = exercises
        self._apply_resolved(saved.resolved)

        # Edits made while the save was in flight must not recreate the entry
        await self._settle_autosave()
        await self._engine.purge(session.id)

        return CompletionResult(
            session_id=session.id,
            saved=saved,
            next_session_prompt=self._next_session_prompt(),
        )

    def _next_session_prompt(self) -> str | None:
        week = self.session.week_number
        order = self.session.session_order
        if week is None or order is None:
            return None
        return (
            f'I just completed Week {week} Session {order} ("{self.session.name}"). '
            f"Please create the next session: Week {week + 1} Session {order}, "
            f"taking my results and exercise notes into account."
        )
