from helf.repositories.exercise_repository import ExerciseRepository
from helf.repositories.plan_repository import PlanRepository
from helf.repositories.session_repository import SessionRepository

__all__ = ["ExerciseRepository", "PlanRepository", "SessionRepository"]
