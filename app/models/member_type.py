from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class MemberType(Base):
    """AI-coach subscription tier with its course length and send schedule."""

    __tablename__ = "member_types"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    course_duration = Column(
        Integer, nullable=False, default=0
    )  # Days; 0 means unlimited
    is_active = Column(Boolean, nullable=False, default=True)
    inactive_reminder_days = Column(Integer, nullable=False, default=2)

    # Local "HH:MM" send times
    morning_coach_time = Column(String(5), default="07:00")
    lunch_reminder_time = Column(String(5), default="11:30")
    dinner_reminder_time = Column(String(5), default="17:30")
    evening_summary_time = Column(String(5), default="20:00")
    water_reminder_times = Column(
        String(100), default="09:00,11:00,14:00,16:00"
    )  # Comma-separated
    weekly_insights_time = Column(String(5), default="09:00")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    members = relationship("Member", back_populates="member_type")
