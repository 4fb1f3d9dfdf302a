"""
Batch drivers for scheduled coaching jobs.

A driver enumerates candidate members, runs one member at a time through a
handler, and folds the per-member results into a DriverSummary. A failure
for one member is logged, rolled back and counted; it never aborts the run.
Only candidate enumeration errors propagate to the caller.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy import exists
from sqlalchemy.orm import Query, Session, contains_eager

from app.config import settings
from app.models import ExerciseLog, Member
from app.services.coaching_service import (
    CoachingService,
    DriverSummary,
    MemberOutcome,
    MemberResult,
)
from app.services.eligibility_service import days_since
from app.services.flex_messages import (
    build_progress_photo_flex,
    build_weekly_insights_flex,
    build_weight_reminder_flex,
)
from app.services.notification_types import MEAL_COACHING_TYPES, NotificationType
from app.services.scheduling import is_within_send_window, local_day_bounds, utcnow

logger = logging.getLogger(__name__)

MemberHandler = Callable[[Member, datetime], Awaitable[MemberResult]]

# Member type column holding the local send time for each time-of-day job
SEND_TIME_COLUMNS = {
    NotificationType.MORNING: "morning_coach_time",
    NotificationType.LUNCH: "lunch_reminder_time",
    NotificationType.DINNER: "dinner_reminder_time",
    NotificationType.EVENING: "evening_summary_time",
    NotificationType.WATER: "water_reminder_times",
    NotificationType.WEEKLY: "weekly_insights_time",
}

WEIGHT_JOB = "weight"


class DriverService:
    """Scheduled entry points: one method per periodic job."""

    def __init__(self, db: Session, coaching_service: Optional[CoachingService] = None):
        self.db = db
        self.coaching = coaching_service or CoachingService(db)
        self.eligibility = self.coaching.eligibility

    # =========================================================================
    # CANDIDATES
    # =========================================================================

    def candidate_query(self, require_active_status: bool = True) -> Query:
        """Active members with an assigned subscription tier, oldest first."""
        query = (
            self.db.query(Member)
            .join(Member.member_type)
            .options(contains_eager(Member.member_type))
            .filter(Member.is_active.is_(True))
        )
        if require_active_status:
            query = query.filter(Member.activity_status == "active")
        return query.order_by(Member.created_at, Member.id)

    def post_exercise_candidates(self, now: datetime) -> list[Member]:
        start_of_today, _ = local_day_bounds(now)
        window_start = max(
            start_of_today, now - timedelta(minutes=settings.post_exercise_window_minutes)
        )
        recent_exercise = exists().where(
            ExerciseLog.member_id == Member.id,
            ExerciseLog.date >= window_start,
            ExerciseLog.date <= now,
        )
        return self.candidate_query().filter(recent_exercise).all()

    # =========================================================================
    # RUN LOOP
    # =========================================================================

    async def _run(
        self,
        job: str,
        candidates: list[Member],
        handler: MemberHandler,
        now: datetime,
    ) -> DriverSummary:
        logger.info("[%s] Processing %d members", job, len(candidates))

        results = []
        for member in candidates:
            member_id = member.id
            try:
                result = await self._guarded(member, job, handler, now)
            except Exception as e:
                logger.exception("[%s] Error processing member %s", job, member_id)
                self.db.rollback()
                result = MemberResult.failed(member_id, job, type(e).__name__)
            results.append(result)

            if result.outcome == MemberOutcome.SENT:
                await self._pause(settings.coaching_send_delay_ms)

        summary = DriverSummary.from_results(job, results)
        logger.info(
            "[%s] Sent %d, Skipped %d, Failed %d",
            job,
            summary.sent,
            summary.skipped,
            summary.failed,
        )
        return summary

    async def _guarded(
        self, member: Member, job: str, handler: MemberHandler, now: datetime
    ) -> MemberResult:
        if not member.member_type.is_active:
            return MemberResult.skipped(member.id, job, "member_type_inactive")
        return await handler(member, now)

    @staticmethod
    async def _pause(delay_ms: int) -> None:
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    def _in_send_window(
        self, member: Member, notification_type: NotificationType, now: datetime
    ) -> bool:
        if not settings.coaching_match_send_times:
            return True
        column = SEND_TIME_COLUMNS.get(notification_type)
        if column is None:
            return True
        return is_within_send_window(getattr(member.member_type, column), now)

    # =========================================================================
    # JOBS
    # =========================================================================

    async def run_coaching(
        self, notification_type: NotificationType, now: Optional[datetime] = None
    ) -> DriverSummary:
        """Time-of-day coaching (morning, lunch, dinner, evening)."""
        if notification_type not in MEAL_COACHING_TYPES:
            raise ValueError(
                f"run_coaching handles {', '.join(t.value for t in MEAL_COACHING_TYPES)}, "
                f"not '{notification_type.value}'"
            )
        now = now or utcnow()
        job = notification_type.value

        async def handle(member: Member, now: datetime) -> MemberResult:
            if not self._in_send_window(member, notification_type, now):
                return MemberResult.skipped(member.id, job, "outside_send_window")
            return await self.coaching.process_member(member.id, notification_type, now)

        return await self._run(job, self.candidate_query().all(), handle, now)

    async def run_water(self, now: Optional[datetime] = None) -> DriverSummary:
        now = now or utcnow()
        job = NotificationType.WATER.value

        async def handle(member: Member, now: datetime) -> MemberResult:
            if not self._in_send_window(member, NotificationType.WATER, now):
                return MemberResult.skipped(member.id, job, "outside_send_window")
            return await self.coaching.process_member(member.id, NotificationType.WATER, now)

        return await self._run(job, self.candidate_query().all(), handle, now)

    async def run_weekly(self, now: Optional[datetime] = None) -> DriverSummary:
        """
        Weekly milestone cards: insights, progress photo and weigh-in reminder.

        Each card is evaluated on its own; a member counts as sent when any
        card went out and as failed when a card was attempted but none
        succeeded.
        """
        now = now or utcnow()
        return await self._run(
            NotificationType.WEEKLY.value, self.candidate_query().all(), self._weekly_member, now
        )

    async def _weekly_member(self, member: Member, now: datetime) -> MemberResult:
        job = NotificationType.WEEKLY.value
        if not self._in_send_window(member, NotificationType.WEEKLY, now):
            return MemberResult.skipped(member.id, job, "outside_send_window")

        cards = []
        weekly = self.eligibility.evaluate_member(member, NotificationType.WEEKLY, now)
        photo = self.eligibility.evaluate_member(member, NotificationType.PHOTO, now)
        weight = self.eligibility.evaluate_weight_reminder(member, now)
        if weekly:
            cards.append(NotificationType.WEEKLY.value)
        if photo:
            cards.append(NotificationType.PHOTO.value)
        if weight:
            cards.append(WEIGHT_JOB)
        if not cards:
            return MemberResult.skipped(member.id, job, weekly.reason.value)

        context = self.coaching.context_service.gather_context(member.id, now)
        if context is None:
            return MemberResult.skipped(member.id, job, "member_not_found")

        week_number = days_since(member.created_at, now) // 7
        sent_types = []
        for index, card in enumerate(cards):
            if index:
                await self._pause(settings.coaching_card_delay_ms)

            if card == NotificationType.WEEKLY.value:
                stats = self.coaching.context_service.gather_weekly_stats(
                    member.id, context.targets, now
                )
                message = self.coaching.composer.compose_weekly_insights(
                    context, stats, week_number
                )
                envelope = build_weekly_insights_flex(message, context, week_number)
            elif card == NotificationType.PHOTO.value:
                message = await self.coaching.composer.compose(NotificationType.PHOTO, context)
                envelope = build_progress_photo_flex(message, week_number)
            else:
                envelope = build_weight_reminder_flex(context, week_number)

            if await self.coaching.push_to_member(member.id, [envelope]):
                sent_types.append(card)
            else:
                logger.warning("Failed to send %s card to member %s", card, member.id)

        if sent_types:
            return MemberResult.sent(member.id, job, tuple(sent_types))
        return MemberResult.failed(member.id, job, "push_failed")

    async def run_inactive_check(self, now: Optional[datetime] = None) -> DriverSummary:
        """Nudge members who stopped logging meals. Activity status is not filtered."""
        now = now or utcnow()
        job = NotificationType.INACTIVE.value

        async def handle(member: Member, now: datetime) -> MemberResult:
            if not self.eligibility.is_inactive(member, now):
                return MemberResult.skipped(member.id, job, "recently_active")
            return await self.coaching.process_member(member.id, NotificationType.INACTIVE, now)

        candidates = self.candidate_query(require_active_status=False).all()
        return await self._run(job, candidates, handle, now)

    async def run_milestones(self, now: Optional[datetime] = None) -> DriverSummary:
        """Celebrate course progress at 25, 50, 75 and 100 percent."""
        now = now or utcnow()
        job = NotificationType.MILESTONE.value

        async def handle(member: Member, now: datetime) -> MemberResult:
            percent = self.eligibility.course_milestone_percent(member, now)
            if percent is None:
                return MemberResult.skipped(member.id, job, "no_milestone_today")
            logger.info("Member %s reached %d%% of their course", member.id, percent)
            return await self.coaching.process_member(member.id, NotificationType.MILESTONE, now)

        return await self._run(job, self.candidate_query().all(), handle, now)

    async def run_post_exercise(self, now: Optional[datetime] = None) -> DriverSummary:
        now = now or utcnow()

        async def handle(member: Member, now: datetime) -> MemberResult:
            return await self.coaching.process_member(member.id, NotificationType.EXERCISE, now)

        return await self._run(
            NotificationType.EXERCISE.value, self.post_exercise_candidates(now), handle, now
        )

    async def run_job(
        self,
        job: str,
        notification_type: Optional[NotificationType] = None,
        now: Optional[datetime] = None,
    ) -> DriverSummary:
        """Dispatch by job name, used by the CLI."""
        if job == "coaching":
            if notification_type is None:
                raise ValueError("The coaching job needs a notification type")
            return await self.run_coaching(notification_type, now)
        runners = {
            "water": self.run_water,
            "weekly": self.run_weekly,
            "check-inactive": self.run_inactive_check,
            "check-milestones": self.run_milestones,
            "post-exercise": self.run_post_exercise,
        }
        if job not in runners:
            raise ValueError(f"Unknown job '{job}'")
        return await runners[job](now)


JOB_NAMES = (
    "coaching",
    "water",
    "weekly",
    "check-inactive",
    "check-milestones",
    "post-exercise",
)
