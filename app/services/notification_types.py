"""
Shared vocabulary for coaching notifications.

Every coaching send is requested by one of these type tags. Each tag maps to
a single member preference column, a card icon/title, and the soft length cap
given to the message generator.
"""

from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    MORNING = "morning"
    LUNCH = "lunch"
    DINNER = "dinner"
    EVENING = "evening"
    WATER = "water"
    WEEKLY = "weekly"
    PHOTO = "photo"
    EXERCISE = "exercise"
    MILESTONE = "milestone"
    INACTIVE = "inactive"

    @classmethod
    def parse(cls, value: str) -> "NotificationType":
        """Parse a type tag, raising ValueError with the allowed values."""
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValueError(
                f"Unknown notification type '{value}'. Use one of: {allowed}"
            ) from None


# Types sent by the time-of-day coaching driver
MEAL_COACHING_TYPES = (
    NotificationType.MORNING,
    NotificationType.LUNCH,
    NotificationType.DINNER,
    NotificationType.EVENING,
)

# None means always enabled
PREFERENCE_FLAGS: dict[NotificationType, Optional[str]] = {
    NotificationType.MORNING: "notify_morning_coach",
    NotificationType.LUNCH: "notify_lunch_suggestion",
    NotificationType.DINNER: "notify_dinner_suggestion",
    NotificationType.EVENING: "notify_evening_summary",
    NotificationType.WATER: "notify_water_reminder",
    NotificationType.WEEKLY: "notify_weekly_insights",
    NotificationType.PHOTO: "notify_progress_photo",
    NotificationType.EXERCISE: "notify_post_exercise",
    NotificationType.MILESTONE: None,
    NotificationType.INACTIVE: None,
}

# (icon, card title)
DISPLAY: dict[NotificationType, tuple[str, str]] = {
    NotificationType.MORNING: ("🌅", "Morning boost"),
    NotificationType.LUNCH: ("🍽️", "Lunch suggestion"),
    NotificationType.DINNER: ("🍽️", "Dinner suggestion"),
    NotificationType.EVENING: ("📊", "Today's summary"),
    NotificationType.WATER: ("💧", "Water reminder"),
    NotificationType.WEEKLY: ("💡", "Weekly insights"),
    NotificationType.PHOTO: ("📸", "Progress photo"),
    NotificationType.EXERCISE: ("🏃", "After your workout"),
    NotificationType.MILESTONE: ("🎉", "Congratulations!"),
    NotificationType.INACTIVE: ("😊", "We miss you"),
}

# Soft character caps stated in prompts
MAX_LENGTH: dict[NotificationType, int] = {
    NotificationType.MORNING: 200,
    NotificationType.LUNCH: 250,
    NotificationType.DINNER: 250,
    NotificationType.EVENING: 200,
    NotificationType.WATER: 100,
    NotificationType.WEEKLY: 250,
    NotificationType.PHOTO: 150,
    NotificationType.EXERCISE: 150,
    NotificationType.MILESTONE: 150,
    NotificationType.INACTIVE: 150,
}


def preference_enabled(member, notification_type: NotificationType) -> bool:
    """Check the member's opt-in flag for this type."""
    flag = PREFERENCE_FLAGS[notification_type]
    if flag is None:
        return True
    return bool(getattr(member, flag))
