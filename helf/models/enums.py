"""Enumerations shared by models and schemas."""
from enum import Enum


class PlanStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class SessionStatus(str, Enum):
    PLANNED = "planned"
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ExerciseType(str, Enum):
    WEIGHT = "weight"
    REPS = "reps"
    TIME = "time"
    CAL = "cal"


def enum_column_type(enum_cls: type[Enum], name: str):
    """Non-native SQLAlchemy enum persisted by value, portable across SQLite and PostgreSQL."""
    from sqlalchemy import Enum as SAEnum

    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
