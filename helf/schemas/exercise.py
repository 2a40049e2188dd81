"""Pydantic schemas for the exercise catalog."""
from pydantic import BaseModel, Field

from helf.models.enums import ExerciseType


class ExerciseRef(BaseModel):
    """Free-text reference to a catalog exercise, as produced by the assistant or the session page."""
    id: int | None = None
    name: str = Field(min_length=1)
    variation: str | None = None
    type: ExerciseType | None = None
    instructions: str | None = None


class ExerciseResponse(BaseModel):
    id: int
    name: str
    variation: str | None = None
    type: ExerciseType
    description: str | None = None

    class Config:
        from_attributes = True


class ExerciseUpdate(BaseModel):
    name: str | None = None
    variation: str | None = None
    type: ExerciseType | None = None
    description: str | None = None


class ExerciseUpdateResult(BaseModel):
    exercise: ExerciseResponse
    message: str


class ExerciseResolveResponse(BaseModel):
    exercise_id: int
