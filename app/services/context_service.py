"""
Member context aggregation for coaching messages.

Builds a point-in-time snapshot of a member's intake, hydration, exercise,
weight trend, order stock and logging streak. The snapshot is built fresh on
every call and never persisted. Missing logs produce zero totals.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.models import (
    ExerciseLog,
    MealLog,
    Order,
    STOCK_ORDER_STATUSES,
    WaterLog,
    WeightLog,
)
from app.services.eligibility_service import (
    AiCoachStatus,
    EligibilityService,
    get_ai_coach_status,
)
from app.services.scheduling import local_day_bounds, to_local, utcnow

logger = logging.getLogger(__name__)

STREAK_MAX_DAYS = 30
STOCK_ORDER_LIMIT = 3
STOCK_ITEM_LIMIT = 10
WEIGHT_TREND_DAYS = 7

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _or_default(value, default):
    """Personal target when set (0 included), otherwise the default."""
    return value if value is not None else default


@dataclass(frozen=True)
class GoalInfo:
    type: str
    current_weight: Optional[float]
    target_weight: Optional[float]


@dataclass(frozen=True)
class NutritionTotals:
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    meal_count: int = 0
    meals: tuple[str, ...] = ()


@dataclass(frozen=True)
class Targets:
    calories: int
    protein: int
    carbs: int
    fat: int


@dataclass(frozen=True)
class Hydration:
    current: int
    target: int


@dataclass(frozen=True)
class StockItem:
    name: str
    calories: int
    protein: float


@dataclass(frozen=True)
class ExerciseSummary:
    name: str
    calories: int
    duration: int = 0


@dataclass(frozen=True)
class MemberContext:
    member_id: object
    name: str
    goal: GoalInfo
    ai_coach: AiCoachStatus
    today: NutritionTotals
    yesterday: NutritionTotals
    targets: Targets
    water: Hydration
    stock: tuple[StockItem, ...] = ()
    weight_change: Optional[float] = None
    exercise_today: Optional[ExerciseSummary] = None
    streak_days: int = 0
    last_active_at: Optional[datetime] = None
    generated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class WeeklyStats:
    avg_calories: int
    avg_protein: int
    meal_count: int
    days_over_calories: tuple[str, ...]
    days_under_protein: tuple[str, ...]


class ContextService:
    """Builds MemberContext snapshots from the tracking tables."""

    def __init__(self, db: Session):
        self.db = db
        self.eligibility = EligibilityService(db)

    def gather_context(
        self, member_id, now: Optional[datetime] = None
    ) -> Optional[MemberContext]:
        """
        Collect everything a coaching message may reference.

        Args:
            member_id: Member primary key
            now: Reference instant (defaults to the current time)

        Returns:
            MemberContext, or None if the member does not exist
        """
        now = now or utcnow()
        member = self.eligibility.get_member(member_id)
        if member is None:
            return None

        start_of_today, _ = local_day_bounds(now)
        start_of_yesterday, _ = local_day_bounds(now, days_ago=1)

        course_duration = member.member_type.course_duration if member.member_type else 0
        ai_coach = get_ai_coach_status(member.ai_coach_expire_date, course_duration, now)

        return MemberContext(
            member_id=member.id,
            name=member.display_name or member.name or settings.default_member_name,
            goal=GoalInfo(
                type=member.goal_type or "maintain",
                current_weight=member.weight,
                target_weight=member.goal_weight,
            ),
            ai_coach=ai_coach,
            today=self.nutrition_totals(member.id, start_of_today, now),
            yesterday=self.nutrition_totals(member.id, start_of_yesterday, start_of_today),
            targets=Targets(
                calories=_or_default(member.daily_calories, settings.default_daily_calories),
                protein=_or_default(member.daily_protein, settings.default_daily_protein),
                carbs=_or_default(member.daily_carbs, settings.default_daily_carbs),
                fat=_or_default(member.daily_fat, settings.default_daily_fat),
            ),
            water=Hydration(
                current=self.eligibility.water_today(member.id, now),
                target=_or_default(member.daily_water, settings.default_daily_water),
            ),
            stock=self.stock_items(member.id),
            weight_change=self.weight_change(member.id, now),
            exercise_today=self.exercise_today(member.id, now),
            streak_days=self.calculate_streak(member.id, now),
            last_active_at=member.updated_at,
            generated_at=now,
        )

    # =========================================================================
    # SUB-QUERIES
    # =========================================================================

    def nutrition_totals(self, member_id, start: datetime, end: datetime) -> NutritionTotals:
        """Sum meal macros in [start, end), rounded for display."""
        meals = (
            self.db.query(MealLog)
            .filter(
                MealLog.member_id == member_id,
                MealLog.date >= start,
                MealLog.date < end,
            )
            .order_by(MealLog.date)
            .all()
        )
        return NutritionTotals(
            calories=round(sum(m.calories or 0 for m in meals)),
            protein=round(sum(m.protein or 0 for m in meals)),
            carbs=round(sum(m.carbs or 0 for m in meals)),
            fat=round(sum(m.fat or 0 for m in meals)),
            meal_count=len(meals),
            meals=tuple(m.name for m in meals if m.name),
        )

    def stock_items(self, member_id) -> tuple[StockItem, ...]:
        """Items from the latest fulfilled or in-progress orders."""
        orders = (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.member_id == member_id, Order.status.in_(STOCK_ORDER_STATUSES))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(STOCK_ORDER_LIMIT)
            .all()
        )
        items = [
            StockItem(
                name=item.food_name,
                calories=item.calories or 0,
                protein=item.protein or 0,
            )
            for order in orders
            for item in order.items
        ]
        return tuple(items[:STOCK_ITEM_LIMIT])

    def weight_change(self, member_id, now: datetime) -> Optional[float]:
        """Latest minus previous weigh-in within the trend window."""
        logs = (
            self.db.query(WeightLog)
            .filter(
                WeightLog.member_id == member_id,
                WeightLog.date >= now - timedelta(days=WEIGHT_TREND_DAYS),
            )
            .order_by(WeightLog.date.desc())
            .limit(2)
            .all()
        )
        if len(logs) < 2:
            return None
        return logs[0].weight - logs[1].weight

    def exercise_today(self, member_id, now: datetime) -> Optional[ExerciseSummary]:
        start_of_today, _ = local_day_bounds(now)
        log = (
            self.db.query(ExerciseLog)
            .filter(ExerciseLog.member_id == member_id, ExerciseLog.date >= start_of_today)
            .order_by(ExerciseLog.date.desc())
            .first()
        )
        if log is None:
            return None
        return ExerciseSummary(
            name=log.name, calories=log.calories or 0, duration=log.duration or 0
        )

    def calculate_streak(self, member_id, now: Optional[datetime] = None) -> int:
        """Consecutive local days with a meal log, counting back from today."""
        now = now or utcnow()
        streak = 0
        for days_ago in range(STREAK_MAX_DAYS):
            start, end = local_day_bounds(now, days_ago=days_ago)
            count = (
                self.db.query(func.count(MealLog.id))
                .filter(
                    MealLog.member_id == member_id,
                    MealLog.date >= start,
                    MealLog.date < end,
                )
                .scalar()
            )
            if not count:
                break
            streak += 1
        return streak

    def gather_weekly_stats(
        self, member_id, targets: Targets, now: Optional[datetime] = None
    ) -> WeeklyStats:
        """
        Summarize the last seven local days of meal logs.

        Flags days above 110% of the calorie target and below 80% of the
        protein target.
        """
        now = now or utcnow()
        week_start, _ = local_day_bounds(now, days_ago=7)
        meals = (
            self.db.query(MealLog)
            .filter(MealLog.member_id == member_id, MealLog.date >= week_start)
            .all()
        )

        daily: dict = {}
        for meal in meals:
            day = to_local(meal.date).date()
            totals = daily.setdefault(day, {"calories": 0.0, "protein": 0.0})
            totals["calories"] += meal.calories or 0
            totals["protein"] += meal.protein or 0

        days_over = []
        days_under = []
        for day in sorted(daily):
            totals = daily[day]
            if totals["calories"] > targets.calories * 1.1:
                days_over.append(WEEKDAY_NAMES[day.weekday()])
            if totals["protein"] < targets.protein * 0.8:
                days_under.append(WEEKDAY_NAMES[day.weekday()])

        return WeeklyStats(
            avg_calories=round(sum(m.calories or 0 for m in meals) / 7),
            avg_protein=round(sum(m.protein or 0 for m in meals) / 7),
            meal_count=len(meals),
            days_over_calories=tuple(days_over),
            days_under_protein=tuple(days_under),
        )
