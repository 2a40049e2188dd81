from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from helf.db.database import Base
from helf.models.enums import ExerciseType, enum_column_type


class Exercise(Base):
    """Shared exercise catalog row, deduplicated by (name, variation) ignoring case."""

    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    variation = Column(String(200), nullable=True)
    type = Column(enum_column_type(ExerciseType, "exercise_type"), nullable=False, default=ExerciseType.WEIGHT)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_exercises_name", "name"),
    )
