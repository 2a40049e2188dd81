from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from helf.db.database import Base
from helf.models.enums import PlanStatus, enum_column_type


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    goal = Column(Text, default="")
    status = Column(enum_column_type(PlanStatus, "plan_status"), nullable=False, default=PlanStatus.ACTIVE, index=True)
    source = Column(String(50), default="assistant")
    # "metadata" is reserved on declarative classes
    plan_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    weeks = relationship("PlanWeek", back_populates="plan", order_by="PlanWeek.week_number")


class PlanWeek(Base):
    __tablename__ = "plan_weeks"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    focus = Column(Text, default="")
    instructions = Column(Text, default="")

    plan = relationship("Plan", back_populates="weeks")

    __table_args__ = (
        UniqueConstraint("plan_id", "week_number", name="uq_plan_week_number"),
        CheckConstraint("week_number > 0", name="ck_plan_week_number_positive"),
    )
