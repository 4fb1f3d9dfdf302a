"""Per-member coaching endpoints: eligibility diagnosis and manual sends."""
import logging
import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.coaching_service import CoachingService
from app.services.eligibility_service import get_ai_coach_status
from app.services.notification_types import NotificationType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/coaching", tags=["coaching"])


class SendCoachingRequest(BaseModel):
    """Request model for a manual coaching send."""

    type: str
    dry_run: bool = False
    async_mode: bool = False  # Queue on the Dramatiq worker instead of sending inline


async def get_coaching_service(db: Session = Depends(get_db)):
    coaching_service = CoachingService(db)
    try:
        yield coaching_service
    finally:
        await coaching_service.messenger.close()


def _parse_type(value: str) -> NotificationType:
    try:
        return NotificationType.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/members/{member_id}/eligibility")
async def get_eligibility(
    member_id: uuid.UUID,
    type: str | None = Query(default=None),
    coaching_service: CoachingService = Depends(get_coaching_service),
):
    """
    Explain which coaching notifications a member would receive right now.

    Query params:
        type: Limit the answer to one notification type (default: all types)

    Returns:
        JSON with the AI coach status and one decision per type
    """
    types = [_parse_type(type)] if type else list(NotificationType)

    member = coaching_service.eligibility.get_member(member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")

    decisions = {}
    for notification_type in types:
        decision = coaching_service.eligibility.evaluate_member(member, notification_type)
        decisions[notification_type.value] = {
            "eligible": decision.eligible,
            "reason": decision.reason.value if decision.reason else None,
        }

    course_duration = member.member_type.course_duration if member.member_type else 0
    status = get_ai_coach_status(member.ai_coach_expire_date, course_duration)
    return {
        "member_id": str(member.id),
        "ai_coach": {
            "is_active": status.is_active,
            "is_unlimited": status.is_unlimited,
            "days_remaining": status.days_remaining,
        },
        "decisions": decisions,
    }


@router.post("/members/{member_id}/send")
async def send_coaching(
    member_id: uuid.UUID,
    request: SendCoachingRequest = Body(...),
    coaching_service: CoachingService = Depends(get_coaching_service),
):
    """
    Manually trigger one coaching notification for a member.

    dry_run composes the message and card without pushing them.
    async_mode queues the send and returns immediately.
    """
    notification_type = _parse_type(request.type)

    if coaching_service.eligibility.get_member(member_id) is None:
        raise HTTPException(status_code=404, detail="Member not found")

    if request.dry_run:
        decision = coaching_service.eligibility.evaluate(member_id, notification_type)
        preview = await coaching_service.preview(member_id, notification_type)
        return {
            "success": True,
            "dry_run": True,
            "type": notification_type.value,
            "eligible": decision.eligible,
            "reason": decision.reason.value if decision.reason else None,
            "message": preview["message"],
            "envelope": preview["envelope"],
        }

    if request.async_mode:
        from app.workers.coaching_worker import send_coaching_notification

        msg = send_coaching_notification.send(str(member_id), notification_type.value)
        logger.info(
            "Queued %s coaching for member %s (message %s)",
            notification_type.value,
            member_id,
            msg.message_id,
        )
        return {
            "success": True,
            "queued": True,
            "type": notification_type.value,
            "message_id": msg.message_id,
        }

    sent = await coaching_service.send_coaching_message(member_id, notification_type)
    return {"success": sent, "type": notification_type.value}
