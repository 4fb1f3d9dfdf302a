"""
Dramatiq worker for queued per-member coaching sends.

Used by the manual send endpoint in async mode so the HTTP request returns
before the completion and push calls finish.
"""
import asyncio
import logging
import uuid

import dramatiq

# Import broker setup (must be before actor definitions)
from app.workers import redis_broker  # noqa: F401
from app.database import SessionLocal
from app.services.coaching_service import CoachingService
from app.services.notification_types import NotificationType

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async code in sync context."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@dramatiq.actor(max_retries=0)
def send_coaching_notification(member_id: str, notification_type: str) -> bool:
    """
    Run the coaching pipeline for one member.

    Args:
        member_id: Member UUID as a string
        notification_type: Notification type tag, e.g. "lunch"

    Returns:
        True if the message was delivered
    """
    parsed_type = NotificationType.parse(notification_type)
    db = SessionLocal()
    coaching_service = CoachingService(db)

    async def send() -> bool:
        try:
            return await coaching_service.send_coaching_message(
                uuid.UUID(member_id), parsed_type
            )
        finally:
            await coaching_service.messenger.close()

    try:
        sent = run_async(send())
        logger.info(
            "Queued %s coaching for member %s finished: sent=%s",
            parsed_type.value,
            member_id,
            sent,
        )
        return sent
    finally:
        db.close()
