"""
LINE Messaging API client.

Pushes messages to a member's LINE user id. Delivery is reported as a plain
boolean; there are no internal retries.
"""

import logging
from typing import Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class LineMessagingClient:
    """Push-message capability for the LINE channel."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token or settings.line_channel_access_token
        self.api_base = settings.line_api_base.rstrip("/")
        self._http_client = http_client

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.line_timeout)
        return self._http_client

    async def push_message(self, to: str, messages: list[dict]) -> bool:
        """
        Push messages to one LINE user.

        Args:
            to: LINE user id
            messages: LINE message objects (up to 5 per request)

        Returns:
            True if LINE accepted the request, False otherwise
        """
        try:
            response = await self._client().post(
                f"{self.api_base}/bot/message/push",
                headers={"Authorization": f"Bearer {self.access_token}"},
                json={"to": to, "messages": messages},
            )
        except httpx.HTTPError as e:
            logger.error("Error pushing LINE message to %s: %s", to, e)
            return False

        if not response.is_success:
            logger.error(
                "Failed to push LINE message to %s: %s %s",
                to,
                response.status_code,
                response.text,
            )
            return False

        return True

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
