"""Payload schemas for the fenced JSON blocks the assistant emits.

Every block carries a ``type`` tag; the closed set of tags is listed in
``PAYLOAD_MODELS``. ``trainingPlan`` additionally has a legacy shape that is
converted into ``AssistantPlan`` (see ``helf.services.legacy_plan``).
"""
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from helf.models.enums import ExerciseType
from helf.schemas.exercise import ExerciseUpdate


def _number_to_str(value: Any) -> Any:
    # The model often writes reps/weight as bare numbers ("target_reps": 8)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


LooseStr = Annotated[str | None, BeforeValidator(_number_to_str)]


class AssistantExercise(BaseModel):
    name: str = Field(min_length=1)
    variation: str | None = None
    type: ExerciseType | None = None
    details: str | None = None
    exercise_order: int | None = None
    target_sets: int | None = Field(default=None, ge=0)
    target_reps: LooseStr = None
    target_rpe: float | None = Field(default=None, ge=0, le=10)
    target_weight: LooseStr = None
    instructions: str | None = None
    notes: str | None = None


class TrainingPlanSession(BaseModel):
    """Session placeholder inside a macro plan; exercises are optional."""
    name: str = Field(min_length=1)
    type: str | None = None
    notes: str | None = None
    instructions: str | None = None
    session_order: int | None = None
    exercises: list[AssistantExercise] | None = None


class WeekPlanSession(TrainingPlanSession):
    exercises: list[AssistantExercise]


class AssistantWeek(BaseModel):
    week_number: int = Field(gt=0)
    focus: str | None = None
    notes: str | None = None
    instructions: str | None = None
    sessions: list[TrainingPlanSession]


class AssistantPlan(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    goal: str | None = None
    weeks: list[AssistantWeek] = Field(min_length=1)
    metadata: dict[str, Any] | None = None


class WeekPlan(BaseModel):
    week_number: int = Field(gt=0)
    focus: str | None = None
    notes: str | None = None
    instructions: str | None = None
    sessions: list[WeekPlanSession]


class SessionPlan(BaseModel):
    name: str = Field(min_length=1)
    type: str | None = None
    notes: str | None = None
    instructions: str | None = None
    exercises: list[AssistantExercise]


class ExerciseUpdateData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exercise_id: int = Field(alias="exerciseId")
    update: ExerciseUpdate


# ============== Tagged payloads ==============

class TrainingPlanPayload(BaseModel):
    type: Literal["trainingPlan"]
    data: AssistantPlan


class SessionPlanPayload(BaseModel):
    type: Literal["sessionPlan"]
    data: SessionPlan


class WeekPlanPayload(BaseModel):
    type: Literal["weekPlan"]
    data: WeekPlan


class ExerciseUpdatePayload(BaseModel):
    type: Literal["exerciseUpdate"]
    data: ExerciseUpdateData


AssistantPayload = Annotated[
    Union[TrainingPlanPayload, SessionPlanPayload, WeekPlanPayload, ExerciseUpdatePayload],
    Field(discriminator="type"),
]

PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    "trainingPlan": TrainingPlanPayload,
    "sessionPlan": SessionPlanPayload,
    "weekPlan": WeekPlanPayload,
    "exerciseUpdate": ExerciseUpdatePayload,
}


# ============== Legacy plan shape ==============

class LegacyExercise(BaseModel):
    name: str = Field(min_length=1)
    details: str | None = None
    type: str | None = None
    sets: int | None = Field(default=None, ge=0)
    reps_range: LooseStr = Field(default=None, alias="repsRange")
    rpe: float | None = None
    notes: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class LegacySession(BaseModel):
    focus: str | None = None
    day: str | None = None
    exercises: list[LegacyExercise] = Field(default_factory=list)


class LegacyWeek(BaseModel):
    week: int
    focus: str | None = None
    sessions: list[LegacySession] = Field(default_factory=list)


class LegacyPlanData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    description: str | None = None
    duration_weeks: int | None = Field(default=None, alias="durationWeeks")
    weekly_structure: list[LegacyWeek] | None = Field(default=None, alias="weeklyStructure")
    sessions: list[LegacySession] | None = None

    @model_validator(mode="after")
    def require_sessions_source(self) -> "LegacyPlanData":
        if self.weekly_structure is None and self.sessions is None:
            raise ValueError("weeklyStructure or sessions is required")
        return self


class LegacyPlanPayload(BaseModel):
    type: Literal["trainingPlan"]
    data: LegacyPlanData


# ============== Processing result ==============

class ProcessedResponse(BaseModel):
    """Outcome of scanning one assistant reply for a structured block."""
    content: str
    success: bool | None = None
    message: str | None = None
    structured_data_type: str | None = None
    payload: dict[str, Any] | None = None
    error_code: str | None = None


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class AssistantRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)
    session_id: int | None = None


class AssistantReply(BaseModel):
    content: str
    success: bool | None = None
    message: str | None = None
    structured_data_type: str | None = None
    payload: dict[str, Any] | None = None
    error_code: str | None = None
