"""SQLAlchemy models."""
from helf.models.enums import ExerciseType, PlanStatus, SessionStatus
from helf.models.exercise import Exercise
from helf.models.plan import Plan, PlanWeek
from helf.models.session import ExerciseEntry, ExerciseSet, Session

__all__ = [
    "Exercise",
    "ExerciseEntry",
    "ExerciseSet",
    "ExerciseType",
    "Plan",
    "PlanStatus",
    "PlanWeek",
    "Session",
    "SessionStatus",
]
