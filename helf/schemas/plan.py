"""Pydantic schemas for plan creation and the active-plan view."""
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from helf.models.enums import ExerciseType, PlanStatus, SessionStatus
from helf.schemas.assistant import AssistantPlan, SessionPlan, WeekPlan


class PlanCreateRequest(BaseModel):
    plan: AssistantPlan


class WeekPlanRequest(BaseModel):
    week: WeekPlan


class SessionPlanRequest(BaseModel):
    session: SessionPlan


class PlanCreationResult(BaseModel):
    plan_id: int
    message: str
    batch: dict[str, Any] = Field(default_factory=dict)


class WeekCreationResult(BaseModel):
    plan_id: int | None = None
    plan_week_id: int | None = None
    session_ids: list[int] = Field(default_factory=list)
    message: str
    batch: dict[str, Any] = Field(default_factory=dict)


class PlanDeletionResult(BaseModel):
    plan_id: int
    message: str
    batch: dict[str, Any] = Field(default_factory=dict)


class PlanExerciseSummary(BaseModel):
    id: int
    name: str
    type: ExerciseType | None = None
    variation: str | None = None
    exercise_order: int | None = None
    target_sets: int | None = None
    target_reps: str | None = None
    target_rpe: float | None = None
    target_weight: str | None = None


class PlanSessionSummary(BaseModel):
    id: int
    name: str
    type: str | None = None
    scheduled_date: date | None = None
    completed_date: date | None = None
    status: SessionStatus
    session_order: int | None = None
    week_number: int | None = None
    exercises: list[PlanExerciseSummary] = Field(default_factory=list)


class PlanWeekSummary(BaseModel):
    id: int
    week_number: int
    focus: str | None = None
    instructions: str | None = None
    sessions: list[PlanSessionSummary] = Field(default_factory=list)


class ActivePlan(BaseModel):
    id: int
    name: str
    description: str | None = None
    goal: str | None = None
    status: PlanStatus
    current_week: int = 1
    metadata: dict[str, Any] = Field(default_factory=dict)
    weeks: list[PlanWeekSummary] = Field(default_factory=list)
