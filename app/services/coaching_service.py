"""
Per-member coaching pipeline: evaluate, aggregate, compose, dispatch.

Each member processed yields an immutable MemberResult. Driver runs fold
those results into a DriverSummary instead of mutating shared counters.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from app.models import Member
from app.services.context_service import ContextService, MemberContext
from app.services.eligibility_service import EligibilityService
from app.services.flex_messages import build_coaching_flex
from app.services.line_service import LineMessagingClient
from app.services.message_service import MessageComposer
from app.services.notification_types import NotificationType
from app.services.scheduling import utcnow

logger = logging.getLogger(__name__)


class MemberOutcome(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class MemberResult:
    member_id: object
    job: str
    outcome: MemberOutcome
    reason: Optional[str] = None
    sent_types: tuple[str, ...] = ()

    @classmethod
    def sent(cls, member_id, job: str, sent_types: tuple[str, ...]) -> "MemberResult":
        return cls(member_id, job, MemberOutcome.SENT, None, sent_types)

    @classmethod
    def skipped(cls, member_id, job: str, reason: str) -> "MemberResult":
        return cls(member_id, job, MemberOutcome.SKIPPED, reason)

    @classmethod
    def failed(cls, member_id, job: str, reason: str) -> "MemberResult":
        return cls(member_id, job, MemberOutcome.FAILED, reason)


@dataclass(frozen=True)
class DriverSummary:
    job: str
    sent: int
    skipped: int
    failed: int
    total: int
    sent_by_type: dict
    results: tuple[MemberResult, ...] = ()

    @classmethod
    def from_results(cls, job: str, results: list[MemberResult]) -> "DriverSummary":
        outcomes = Counter(r.outcome for r in results)
        sent_by_type = Counter(t for r in results for t in r.sent_types)
        return cls(
            job=job,
            sent=outcomes[MemberOutcome.SENT],
            skipped=outcomes[MemberOutcome.SKIPPED],
            failed=outcomes[MemberOutcome.FAILED],
            total=len(results),
            sent_by_type=dict(sent_by_type),
            results=tuple(results),
        )

    def to_dict(self) -> dict:
        return {
            "sent": self.sent,
            "skipped": self.skipped,
            "failed": self.failed,
            "total": self.total,
            "sent_by_type": self.sent_by_type,
        }


class CoachingService:
    """Runs the coaching pipeline for a single member."""

    def __init__(
        self,
        db: Session,
        composer: Optional[MessageComposer] = None,
        messenger: Optional[LineMessagingClient] = None,
    ):
        self.db = db
        self.eligibility = EligibilityService(db)
        self.context_service = ContextService(db)
        self.composer = composer or MessageComposer.from_settings()
        self.messenger = messenger or LineMessagingClient()

    async def push_to_member(self, member_id, messages: list[dict]) -> bool:
        """Push prepared envelopes to a member's LINE identity."""
        member = self.db.get(Member, member_id)
        if member is None or not member.line_user_id:
            logger.info("Member %s has no LINE user id, not sending", member_id)
            return False
        return await self.messenger.push_message(member.line_user_id, messages)

    async def dispatch(
        self,
        member_id,
        notification_type: NotificationType,
        message: str,
        context: MemberContext,
    ) -> bool:
        """Wrap a composed message in a coaching card and push it."""
        envelope = build_coaching_flex(notification_type, message, context)
        success = await self.push_to_member(member_id, [envelope])
        if success:
            logger.info("Sent %s coaching to member %s", notification_type.value, member_id)
        else:
            logger.warning(
                "Failed to send %s coaching to member %s", notification_type.value, member_id
            )
        return success

    async def process_member(
        self,
        member_id,
        notification_type: NotificationType,
        now: Optional[datetime] = None,
    ) -> MemberResult:
        """
        Evaluate, aggregate, compose and dispatch for one member.

        Exceptions are not caught here; the driver isolates them per member.
        """
        now = now or utcnow()
        job = notification_type.value

        decision = self.eligibility.evaluate(member_id, notification_type, now)
        if not decision:
            logger.debug("Skipping %s for member %s: %s", job, member_id, decision.reason.value)
            return MemberResult.skipped(member_id, job, decision.reason.value)

        context = self.context_service.gather_context(member_id, now)
        if context is None:
            return MemberResult.skipped(member_id, job, "member_not_found")

        message = await self.composer.compose(notification_type, context)
        if await self.dispatch(member_id, notification_type, message, context):
            return MemberResult.sent(member_id, job, (job,))
        return MemberResult.failed(member_id, job, "push_failed")

    async def preview(
        self,
        member_id,
        notification_type: NotificationType,
        now: Optional[datetime] = None,
    ) -> Optional[dict]:
        """Compose without sending, for dry runs. None if the member is missing."""
        now = now or utcnow()
        context = self.context_service.gather_context(member_id, now)
        if context is None:
            return None
        message = await self.composer.compose(notification_type, context)
        return {
            "message": message,
            "envelope": build_coaching_flex(notification_type, message, context),
        }

    async def send_coaching_message(
        self, member_id, notification_type: NotificationType
    ) -> bool:
        """Manual per-member trigger. Never raises; failures return False."""
        try:
            result = await self.process_member(member_id, notification_type)
        except Exception:
            logger.exception(
                "Error sending %s coaching to member %s", notification_type.value, member_id
            )
            self.db.rollback()
            return False
        return result.outcome == MemberOutcome.SENT
