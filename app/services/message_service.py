"""
Coaching message composition.

Turns a notification type and a member context into the text of a coaching
message. Uses the completion capability when one is configured and falls
back to a templated message when it is not, or when generation fails, so
delivery always has content.
"""

import logging
from typing import Optional

from app.services.ai_service import ClaudeService, get_completion_provider
from app.services.context_service import MemberContext, WeeklyStats
from app.services.notification_types import NotificationType
from app.services.prompts import (
    COACH_SYSTEM_PROMPT,
    build_prompt,
    build_weekly_insights,
    fallback_message,
)

logger = logging.getLogger(__name__)


class MessageComposer:
    """Generates coaching text with a deterministic fallback."""

    def __init__(self, provider: Optional[ClaudeService] = None):
        # None means no AI provider is configured
        self.provider = provider

    @classmethod
    def from_settings(cls) -> "MessageComposer":
        return cls(get_completion_provider())

    async def compose(
        self, notification_type: NotificationType, context: MemberContext
    ) -> str:
        if self.provider is None:
            logger.debug("No completion provider configured, using fallback")
            return fallback_message(notification_type, context)

        try:
            prompt = build_prompt(notification_type, context)
            result = await self.provider.complete(system=COACH_SYSTEM_PROMPT, prompt=prompt)
        except Exception as e:
            logger.warning(
                "Completion provider raised for %s message to member %s: %s",
                notification_type.value,
                context.member_id,
                e,
            )
            return fallback_message(notification_type, context)

        if not result.ok:
            logger.warning(
                "Falling back for %s message to member %s: %s",
                notification_type.value,
                context.member_id,
                result.error or "blank response",
            )
            return fallback_message(notification_type, context)

        return result.text.strip()

    def compose_weekly_insights(
        self, context: MemberContext, stats: WeeklyStats, week_number: int
    ) -> str:
        return build_weekly_insights(context, stats, week_number)
