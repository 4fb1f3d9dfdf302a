"""Timestamped daily tracking records scoped to a member."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, Float
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class MealLog(Base):
    """A logged meal with its macro totals."""

    __tablename__ = "meal_logs"

    id = Column(Integer, primary_key=True)
    member_id = Column(
        UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255))
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    calories = Column(Float, nullable=False, default=0)
    protein = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fat = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    member = relationship("Member", back_populates="meal_logs")

    __table_args__ = (Index("idx_meal_logs_member_date", "member_id", "date"),)


class WaterLog(Base):
    """Water intake in glasses."""

    __tablename__ = "water_logs"

    id = Column(Integer, primary_key=True)
    member_id = Column(
        UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    amount = Column(Integer, nullable=False, default=1)

    member = relationship("Member", back_populates="water_logs")

    __table_args__ = (Index("idx_water_logs_member_date", "member_id", "date"),)


class ExerciseLog(Base):
    """A workout with its estimated energy burn."""

    __tablename__ = "exercise_logs"

    id = Column(Integer, primary_key=True)
    member_id = Column(
        UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    duration = Column(Integer, default=0)  # Minutes
    calories = Column(Integer, nullable=False, default=0)

    member = relationship("Member", back_populates="exercise_logs")

    __table_args__ = (Index("idx_exercise_logs_member_date", "member_id", "date"),)


class WeightLog(Base):
    __tablename__ = "weight_logs"

    id = Column(Integer, primary_key=True)
    member_id = Column(
        UUID(as_uuid=True), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    weight = Column(Float, nullable=False)  # kg

    member = relationship("Member", back_populates="weight_logs")

    __table_args__ = (Index("idx_weight_logs_member_date", "member_id", "date"),)
