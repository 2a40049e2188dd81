"""Pydantic schemas for sessions, their exercise entries and sets.

Client snapshots identify entries and sets with an explicit ``Identity``:
``Persisted(id)`` for rows the server already owns, ``Pending(token)`` for
records created on the device and not yet saved. The server resolves pending
tokens on save and returns the mapping in ``SessionSaveResult.resolved``.
"""
from datetime import date
from typing import Annotated, Any, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, Field

from helf.models.enums import ExerciseType, SessionStatus


class Persisted(BaseModel):
    kind: Literal["persisted"] = "persisted"
    id: int = Field(gt=0)


class Pending(BaseModel):
    kind: Literal["pending"] = "pending"
    token: str = Field(default_factory=lambda: uuid4().hex)


Identity = Annotated[Union[Persisted, Pending], Field(discriminator="kind")]


class SetSnapshot(BaseModel):
    identity: Identity = Field(default_factory=Pending)
    set_number: int = Field(gt=0)
    weight: float | None = None
    reps: int | None = None
    rpe: float | None = Field(default=None, ge=0, le=10)
    completed: bool = False
    notes: str | None = None


class ExerciseSnapshot(BaseModel):
    """One exercise entry of a session together with its catalog data and sets."""
    entry: Identity = Field(default_factory=Pending)
    exercise_id: int | None = None
    name: str = Field(min_length=1)
    variation: str | None = None
    type: ExerciseType = ExerciseType.WEIGHT
    description: str | None = None
    exercise_order: int | None = None
    target_sets: int | None = None
    target_reps: str | None = None
    target_rpe: float | None = Field(default=None, ge=0, le=10)
    target_weight: str | None = None
    instructions: str | None = None
    notes: str | None = None
    sets: list[SetSnapshot] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    id: int
    name: str
    type: str | None = None
    scheduled_date: date | None = None
    completed_date: date | None = None
    status: SessionStatus = SessionStatus.PLANNED
    readiness_score: int | None = Field(default=None, ge=1, le=10)
    session_order: int | None = None
    instructions: str | None = None
    notes: str | None = None
    plan_id: int | None = None
    plan_week_id: int | None = None
    week_number: int | None = None


class SessionDetail(BaseModel):
    session: SessionSnapshot
    exercises: list[ExerciseSnapshot] = Field(default_factory=list)


class SessionSummary(BaseModel):
    id: int
    name: str
    type: str | None = None
    scheduled_date: date | None = None
    completed_date: date | None = None
    status: SessionStatus
    session_order: int | None = None
    plan_id: int | None = None
    plan_week_id: int | None = None

    class Config:
        from_attributes = True


class SessionUpdate(BaseModel):
    """Partial session update; only fields explicitly set are written."""
    name: str | None = None
    type: str | None = None
    scheduled_date: date | None = None
    completed_date: date | None = None
    status: SessionStatus | None = None
    readiness_score: int | None = Field(default=None, ge=1, le=10)
    instructions: str | None = None
    notes: str | None = None


class SessionSaveRequest(BaseModel):
    """Session fields plus, when given, the complete exercise list of the session."""
    session: SessionUpdate = Field(default_factory=SessionUpdate)
    exercises: list[ExerciseSnapshot] | None = None


class SessionSaveResult(BaseModel):
    session_id: int
    resolved: dict[str, int] = Field(default_factory=dict)
    batch: dict[str, Any] = Field(default_factory=dict)


class SessionCreate(BaseModel):
    name: str = Field(min_length=1)
    type: str | None = "strength"
    scheduled_date: date | None = None
    status: SessionStatus = SessionStatus.IN_PROGRESS
    readiness_score: int | None = Field(default=None, ge=1, le=10)
    instructions: str | None = None
    notes: str | None = None
    plan_id: int | None = None
    plan_week_id: int | None = None
    session_order: int | None = None
    exercises: list[ExerciseSnapshot] = Field(default_factory=list)


class SessionCreateResult(BaseModel):
    session_id: int
    message: str
    batch: dict[str, Any] = Field(default_factory=dict)


class SessionContext(BaseModel):
    """The session a caller is working in, passed explicitly instead of read from ambient state."""
    session_id: int
    force_refresh: bool = False
