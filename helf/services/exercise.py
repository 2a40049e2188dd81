"""
Exercise catalog services.

ExerciseResolver maps a free-text exercise reference (name, optional variation,
optional type hint) onto a catalog row, creating one when nothing matches.
The catalog is shared by every user, so lookups are case-insensitive and a
missing variation is treated as the empty string.

New rows take ``max(id) + 1`` as their id. Two concurrent resolutions of the
same unseen exercise can pick the same id; the loser fails on the primary key.
This is known and left as is. On PostgreSQL the id sequence must be re-synced
afterwards with ``scripts/fix_exercise_sequence.py``.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from helf.models.enums import ExerciseType
from helf.models.exercise import Exercise
from helf.repositories.exercise_repository import ExerciseRepository
from helf.schemas.exercise import ExerciseRef, ExerciseUpdate
from helf.services.base import BaseService

logger = logging.getLogger(__name__)

_TIME_WORDS = (
    "plank", "hold", "hang", "farmer", "carry", "cardio",
    "rowing", "run", "bike", "jog", "sprint", "walk",
)
_REPS_WORDS = (
    "push up", "pushup", "chin up", "pull up", "pullup", "chinup",
    "burpee", "bodyweight", "bw ", "jump",
)
_CAL_WORDS = ("cal", "calorie", "energy")


def classify_exercise_type(name: str, instructions: str | None = None) -> ExerciseType:
    """Guess the tracking type of an exercise from its name and instructions.

    Instruction text that mentions timing or calories overrides the guess
    made from the name.
    """
    name = name.lower()
    text = (instructions or "").lower()

    if any(word in name for word in _TIME_WORDS):
        kind = ExerciseType.TIME
    elif any(word in name for word in _REPS_WORDS) or ("up" in name and "body weight" in name):
        kind = ExerciseType.REPS
    elif any(word in name for word in _CAL_WORDS):
        kind = ExerciseType.CAL
    else:
        kind = ExerciseType.WEIGHT

    if text:
        if "for time" in text or "timed" in text or "seconds" in text:
            kind = ExerciseType.TIME
        elif "calories" in text:
            kind = ExerciseType.CAL

    return kind


class ExerciseResolver:
    """Find-or-create for catalog exercises. Flushes; the caller commits."""

    def __init__(self, session: AsyncSession):
        self._repo = ExerciseRepository(session)

    async def resolve(self, ref: ExerciseRef) -> int:
        if ref.id and ref.id > 0:
            return ref.id

        existing = await self._repo.find_by_name_and_variation(ref.name, ref.variation)
        if existing is None:
            existing = await self._repo.find_by_name(ref.name)
            if existing is not None:
                logger.debug(
                    "[RESOLVE] '%s' (%s) matched by name only -> %s",
                    ref.name, ref.variation or "no variation", existing.id,
                )

        if existing is not None:
            if ref.type is not None and existing.type != ref.type:
                logger.info(
                    "[RESOLVE] Updating exercise %s type from %s to %s",
                    existing.id, existing.type.value, ref.type.value,
                )
                await self._repo.update(existing.id, {"type": ref.type})
            return existing.id

        exercise_type = ref.type or classify_exercise_type(ref.name, ref.instructions)
        next_id = await self._repo.max_id() + 1
        exercise = await self._repo.create(
            Exercise(
                id=next_id,
                name=ref.name,
                variation=ref.variation or None,
                type=exercise_type,
            )
        )
        logger.info(
            "[RESOLVE] Created exercise %s '%s' (%s) type=%s",
            exercise.id, ref.name, ref.variation or "no variation", exercise_type.value,
        )
        return exercise.id


class ExerciseService(BaseService):
    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self._repo = ExerciseRepository(session)

    async def list_exercises(self, search: str | None = None) -> list[Exercise]:
        return await self._repo.list(search=search)

    async def get_exercise(self, exercise_id: int) -> Exercise:
        return await self._get_or_404(Exercise, exercise_id)

    async def update_exercise(self, exercise_id: int, update: ExerciseUpdate) -> tuple[Exercise, str]:
        await self._get_or_404(Exercise, exercise_id)
        changes = update.model_dump(exclude_none=True)
        exercise = await self._repo.update(exercise_id, changes)
        logger.info("[UPDATE_EXERCISE] exercise_id=%s fields=%s", exercise_id, sorted(changes))
        return exercise, "Exercise updated successfully"
