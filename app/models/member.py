from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    Float,
    ForeignKey,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from app.database import Base


class Member(Base):
    """LINE member with subscription state, coaching preferences and targets."""

    __tablename__ = "members"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    line_user_id = Column(String(64), unique=True, nullable=True)
    name = Column(String(255))
    display_name = Column(String(255))  # LINE profile name

    # Subscription
    member_type_id = Column(
        Integer, ForeignKey("member_types.id", ondelete="SET NULL"), nullable=True
    )
    ai_coach_expire_date = Column(DateTime(timezone=True))
    course_start_date = Column(DateTime(timezone=True))

    is_active = Column(Boolean, nullable=False, default=True)
    activity_status = Column(
        String(20), nullable=False, default="active"
    )  # 'active' or 'inactive'

    # Coaching preferences
    notify_morning_coach = Column(Boolean, nullable=False, default=True)
    notify_lunch_suggestion = Column(Boolean, nullable=False, default=True)
    notify_dinner_suggestion = Column(Boolean, nullable=False, default=True)
    notify_evening_summary = Column(Boolean, nullable=False, default=True)
    notify_water_reminder = Column(Boolean, nullable=False, default=True)
    notify_weekly_insights = Column(Boolean, nullable=False, default=True)
    notify_progress_photo = Column(Boolean, nullable=False, default=True)
    notify_post_exercise = Column(Boolean, nullable=False, default=True)
    notify_weight_reminder = Column(Boolean, nullable=False, default=False)
    notifications_paused_until = Column(DateTime(timezone=True))

    # Daily targets (null falls back to settings defaults)
    daily_calories = Column(Integer)
    daily_protein = Column(Integer)
    daily_carbs = Column(Integer)
    daily_fat = Column(Integer)
    daily_water = Column(Integer)  # Glasses

    # Goal
    goal_type = Column(String(20))  # 'lose', 'gain' or 'maintain'
    weight = Column(Float)
    goal_weight = Column(Float)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    member_type = relationship("MemberType", back_populates="members")
    meal_logs = relationship(
        "MealLog", back_populates="member", cascade="all, delete-orphan"
    )
    water_logs = relationship(
        "WaterLog", back_populates="member", cascade="all, delete-orphan"
    )
    exercise_logs = relationship(
        "ExerciseLog", back_populates="member", cascade="all, delete-orphan"
    )
    weight_logs = relationship(
        "WeightLog", back_populates="member", cascade="all, delete-orphan"
    )
    orders = relationship("Order", back_populates="member", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_members_member_type_id", "member_type_id"),
        Index("idx_members_is_active", "is_active"),
    )
