"""
Eligibility rules for coaching notifications.

Decides, for one member and one notification type, whether a message should
go out right now. The checks short-circuit in a fixed order:

1. Member exists
2. AI coach subscription is active (unlimited or not yet expired)
3. Notifications are not globally paused
4. The member has the type's preference flag switched on
5. Type-specific suppression (water pacing, meal already logged, weekly cadence)

The outcome is a value describing why a member was skipped, so a single
decision explains a missing message without re-deriving it from raw fields.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.config import settings
from app.models import Member, MealLog, WaterLog
from app.services.notification_types import NotificationType, preference_enabled
from app.services.scheduling import (
    ensure_utc,
    local_day_bounds,
    local_time_today,
    to_local,
    utcnow,
)

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)

# Local hour ranges [start, end] used to detect an already-logged meal
MEAL_WINDOWS = {
    "breakfast": (5, 10),
    "lunch": (10, 15),
    "dinner": (15, 22),
}

# Hydration is paced across 07:00-21:00 local
WATER_DAY_START_HOUR = 7
WATER_ACTIVE_HOURS = 14

COURSE_MILESTONE_PERCENTS = (25, 50, 75, 100)


class IneligibleReason(str, Enum):
    MEMBER_NOT_FOUND = "member_not_found"
    AI_COACH_INACTIVE = "ai_coach_inactive"
    NOTIFICATIONS_PAUSED = "notifications_paused"
    PREFERENCE_DISABLED = "preference_disabled"
    WATER_ON_PACE = "water_on_pace"
    MEAL_ALREADY_LOGGED = "meal_already_logged"
    NOT_WEEKLY_MILESTONE = "not_weekly_milestone"


@dataclass(frozen=True)
class EligibilityDecision:
    """Eligible, or ineligible with the first failing rule."""

    reason: Optional[IneligibleReason] = None

    @property
    def eligible(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.eligible

    @classmethod
    def allow(cls) -> "EligibilityDecision":
        return cls()

    @classmethod
    def deny(cls, reason: IneligibleReason) -> "EligibilityDecision":
        return cls(reason=reason)


@dataclass(frozen=True)
class AiCoachStatus:
    is_active: bool
    is_unlimited: bool
    days_remaining: Optional[int]
    expire_date: Optional[datetime] = None


def get_ai_coach_status(
    expire_date: Optional[datetime],
    course_duration: int,
    now: Optional[datetime] = None,
) -> AiCoachStatus:
    """
    Summarize subscription state for display and prompts.

    days_remaining is the ceiling of the days left while active, 0 once
    expired, and None when unlimited or no expiry is set.
    """
    now = now or utcnow()
    expire_date = ensure_utc(expire_date)

    if course_duration == 0:
        return AiCoachStatus(True, True, None, expire_date)
    if expire_date is None:
        return AiCoachStatus(False, False, None, None)

    is_active = expire_date > now
    days_remaining = math.ceil((expire_date - now) / DAY) if is_active else 0
    return AiCoachStatus(is_active, False, days_remaining, expire_date)


def is_ai_coach_active(member: Member, now: Optional[datetime] = None) -> bool:
    """Unlimited tiers are always active; others need a future expiry date."""
    if member.member_type is None:
        return False
    if member.member_type.course_duration == 0:
        return True
    expire_date = ensure_utc(member.ai_coach_expire_date)
    if expire_date is None:
        return False
    return expire_date > (now or utcnow())


def days_since(start: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since start (floored), or None without a start."""
    if start is None:
        return None
    return math.floor(((now or utcnow()) - ensure_utc(start)) / DAY)


def is_weekly_milestone(created_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True on day 7, 14, 21, ... after enrollment, never on day 0."""
    days = days_since(created_at, now)
    if days is None:
        return False
    return days >= 7 and days % 7 == 0


def is_notifications_paused(member: Member, now: Optional[datetime] = None) -> bool:
    paused_until = ensure_utc(member.notifications_paused_until)
    return paused_until is not None and paused_until > (now or utcnow())


class EligibilityService:
    """Evaluates whether a member should receive a given coaching notification."""

    def __init__(self, db: Session):
        self.db = db

    def get_member(self, member_id) -> Optional[Member]:
        return (
            self.db.query(Member)
            .options(joinedload(Member.member_type))
            .filter(Member.id == member_id)
            .first()
        )

    # =========================================================================
    # DECISIONS
    # =========================================================================

    def should_notify(
        self,
        member_id,
        notification_type: NotificationType,
        now: Optional[datetime] = None,
    ) -> bool:
        return self.evaluate(member_id, notification_type, now).eligible

    def evaluate(
        self,
        member_id,
        notification_type: NotificationType,
        now: Optional[datetime] = None,
    ) -> EligibilityDecision:
        member = self.get_member(member_id)
        if member is None:
            return EligibilityDecision.deny(IneligibleReason.MEMBER_NOT_FOUND)
        return self.evaluate_member(member, notification_type, now)

    def evaluate_member(
        self,
        member: Member,
        notification_type: NotificationType,
        now: Optional[datetime] = None,
    ) -> EligibilityDecision:
        now = now or utcnow()

        base = self._check_base(member, now)
        if not base:
            return base

        if not preference_enabled(member, notification_type):
            return EligibilityDecision.deny(IneligibleReason.PREFERENCE_DISABLED)

        if notification_type == NotificationType.WATER:
            if not self.should_send_water_reminder(member, now):
                return EligibilityDecision.deny(IneligibleReason.WATER_ON_PACE)
        elif notification_type in (NotificationType.LUNCH, NotificationType.DINNER):
            if self.has_meal_log_today(member.id, notification_type.value, now):
                return EligibilityDecision.deny(IneligibleReason.MEAL_ALREADY_LOGGED)
        elif notification_type in (NotificationType.WEEKLY, NotificationType.PHOTO):
            if not is_weekly_milestone(member.created_at, now):
                return EligibilityDecision.deny(IneligibleReason.NOT_WEEKLY_MILESTONE)

        return EligibilityDecision.allow()

    def evaluate_weight_reminder(
        self, member: Member, now: Optional[datetime] = None
    ) -> EligibilityDecision:
        """Weekly weigh-in reminder: base gates, its own flag, weekly cadence."""
        now = now or utcnow()

        base = self._check_base(member, now)
        if not base:
            return base
        if not member.notify_weight_reminder:
            return EligibilityDecision.deny(IneligibleReason.PREFERENCE_DISABLED)
        if not is_weekly_milestone(member.created_at, now):
            return EligibilityDecision.deny(IneligibleReason.NOT_WEEKLY_MILESTONE)
        return EligibilityDecision.allow()

    def _check_base(self, member: Member, now: datetime) -> EligibilityDecision:
        if not is_ai_coach_active(member, now):
            return EligibilityDecision.deny(IneligibleReason.AI_COACH_INACTIVE)
        # Global pause overrides every per-type preference
        if is_notifications_paused(member, now):
            return EligibilityDecision.deny(IneligibleReason.NOTIFICATIONS_PAUSED)
        return EligibilityDecision.allow()

    # =========================================================================
    # TYPE-SPECIFIC RULES
    # =========================================================================

    def expected_water_by_now(self, member: Member, now: datetime) -> int:
        """Glasses the member should have had by the current local hour."""
        daily_target = (
            member.daily_water if member.daily_water is not None else settings.default_daily_water
        )
        hour = to_local(now).hour
        active_hours = max(0, min(WATER_ACTIVE_HOURS, hour - WATER_DAY_START_HOUR))
        return math.floor(active_hours / WATER_ACTIVE_HOURS * daily_target)

    def water_today(self, member_id, now: datetime) -> int:
        start_of_day, _ = local_day_bounds(now)
        total = (
            self.db.query(func.coalesce(func.sum(WaterLog.amount), 0))
            .filter(WaterLog.member_id == member_id, WaterLog.date >= start_of_day)
            .scalar()
        )
        return int(total or 0)

    def should_send_water_reminder(
        self, member: Member, now: Optional[datetime] = None
    ) -> bool:
        """Remind only members who are behind their pace for the day."""
        now = now or utcnow()
        expected = self.expected_water_by_now(member, now)
        actual = self.water_today(member.id, now)
        logger.debug(
            "Water pacing for member %s: actual=%d expected=%d", member.id, actual, expected
        )
        return actual < expected

    def has_meal_log_today(
        self, member_id, meal: str, now: Optional[datetime] = None
    ) -> bool:
        """Whether a meal was logged inside that meal's local window today."""
        now = now or utcnow()
        start_hour, end_hour = MEAL_WINDOWS[meal]
        window_start = local_time_today(now, start_hour)
        window_end = local_time_today(now, end_hour)

        count = (
            self.db.query(func.count(MealLog.id))
            .filter(
                MealLog.member_id == member_id,
                MealLog.date >= window_start,
                MealLog.date <= window_end,
            )
            .scalar()
        )
        return count > 0

    # =========================================================================
    # INACTIVITY AND COURSE PROGRESS
    # =========================================================================

    def days_since_last_meal(
        self, member: Member, now: Optional[datetime] = None
    ) -> Optional[int]:
        last_logged = (
            self.db.query(func.max(MealLog.date))
            .filter(MealLog.member_id == member.id)
            .scalar()
        )
        return days_since(last_logged, now)

    def is_inactive(self, member: Member, now: Optional[datetime] = None) -> bool:
        """
        Whether the member has gone quiet for the tier's reminder threshold.

        Members who never logged a meal are measured from their course start,
        or from enrollment when no course start is recorded.
        """
        now = now or utcnow()
        threshold = 2
        if member.member_type is not None and member.member_type.inactive_reminder_days:
            threshold = member.member_type.inactive_reminder_days

        idle_days = self.days_since_last_meal(member, now)
        if idle_days is None:
            idle_days = days_since(member.course_start_date or member.created_at, now)
        if idle_days is None:
            return False
        return idle_days >= threshold

    def course_progress(
        self, member: Member, now: Optional[datetime] = None
    ) -> Optional[tuple[int, int]]:
        """
        Current course day (1 on the start day) and percent complete.

        Returns None for unlimited tiers or members without a course start.
        """
        if member.member_type is None or not member.member_type.course_duration:
            return None
        elapsed = days_since(member.course_start_date, now)
        if elapsed is None:
            return None
        duration = member.member_type.course_duration
        day = elapsed + 1
        return day, min(100, round(day / duration * 100))

    def course_milestone_percent(
        self, member: Member, now: Optional[datetime] = None
    ) -> Optional[int]:
        """The milestone percent reached exactly today, if any."""
        progress = self.course_progress(member, now)
        if progress is None:
            return None
        day, _ = progress
        duration = member.member_type.course_duration
        for percent in COURSE_MILESTONE_PERCENTS:
            if day == math.ceil(percent / 100 * duration):
                return percent
        return None
