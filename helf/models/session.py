from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from helf.db.database import Base
from helf.models.enums import SessionStatus, enum_column_type


class Session(Base):
    """One workout, either scheduled by a plan or created ad hoc."""

    __tablename__ = "training_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=True, index=True)
    plan_week_id = Column(Integer, ForeignKey("plan_weeks.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    type = Column(String(50), default="strength")
    scheduled_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    status = Column(enum_column_type(SessionStatus, "session_status"), nullable=False, default=SessionStatus.PLANNED)
    readiness_score = Column(Integer, nullable=True)
    session_order = Column(Integer, nullable=True)
    instructions = Column(Text, default="")
    notes = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    plan_week = relationship("PlanWeek")
    entries = relationship("ExerciseEntry", back_populates="session", order_by="ExerciseEntry.exercise_order")

    __table_args__ = (
        CheckConstraint("readiness_score IS NULL OR (readiness_score >= 1 AND readiness_score <= 10)", name="ck_session_readiness_range"),
    )


class ExerciseEntry(Base):
    __tablename__ = "exercise_entries"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False, index=True)
    exercise_order = Column(Integer, nullable=False, default=1)
    target_sets = Column(Integer, nullable=True)
    target_reps = Column(String(50), nullable=True)
    target_rpe = Column(Float, nullable=True)
    target_weight = Column(String(50), nullable=True)
    instructions = Column(Text, default="")
    notes = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("Session", back_populates="entries")
    exercise = relationship("Exercise")
    sets = relationship("ExerciseSet", back_populates="entry", order_by="ExerciseSet.set_number")

    __table_args__ = (
        CheckConstraint("target_rpe IS NULL OR (target_rpe >= 0 AND target_rpe <= 10)", name="ck_entry_target_rpe_range"),
    )


class ExerciseSet(Base):
    __tablename__ = "exercise_sets"

    id = Column(Integer, primary_key=True, index=True)
    exercise_entry_id = Column(Integer, ForeignKey("exercise_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    set_number = Column(Integer, nullable=False)
    weight = Column(Float, nullable=True)
    reps = Column(Integer, nullable=True)
    rpe = Column(Float, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    entry = relationship("ExerciseEntry", back_populates="sets")

    __table_args__ = (
        CheckConstraint("set_number > 0", name="ck_set_number_positive"),
    )
