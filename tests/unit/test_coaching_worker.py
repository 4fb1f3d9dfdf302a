"""
Unit tests for coaching_worker - background Dramatiq worker for queued sends.

Tests the send_coaching_notification actor with the database session and
CoachingService mocked out.
"""

import uuid
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from app.services.notification_types import NotificationType


@pytest.fixture
def mock_db_session():
    """Create a mock database session."""
    return MagicMock()


@pytest.fixture
def mock_coaching_service():
    """Create a mock CoachingService."""
    service = MagicMock()
    service.send_coaching_message = AsyncMock(return_value=True)
    service.messenger.close = AsyncMock()
    return service


class TestSendCoachingNotification:
    def test_sends_and_closes_resources(self, mock_db_session, mock_coaching_service):
        from app.workers.coaching_worker import send_coaching_notification

        member_id = uuid.uuid4()
        with (
            patch("app.workers.coaching_worker.SessionLocal", return_value=mock_db_session),
            patch(
                "app.workers.coaching_worker.CoachingService",
                return_value=mock_coaching_service,
            ),
        ):
            result = send_coaching_notification(str(member_id), "lunch")

        assert result is True
        mock_coaching_service.send_coaching_message.assert_awaited_once_with(
            member_id, NotificationType.LUNCH
        )
        mock_coaching_service.messenger.close.assert_awaited_once()
        mock_db_session.close.assert_called_once()

    def test_returns_false_when_not_delivered(self, mock_db_session, mock_coaching_service):
        from app.workers.coaching_worker import send_coaching_notification

        mock_coaching_service.send_coaching_message.return_value = False
        with (
            patch("app.workers.coaching_worker.SessionLocal", return_value=mock_db_session),
            patch(
                "app.workers.coaching_worker.CoachingService",
                return_value=mock_coaching_service,
            ),
        ):
            result = send_coaching_notification(str(uuid.uuid4()), "water")

        assert result is False
        mock_db_session.close.assert_called_once()

    def test_closes_session_on_error(self, mock_db_session, mock_coaching_service):
        from app.workers.coaching_worker import send_coaching_notification

        mock_coaching_service.send_coaching_message.side_effect = RuntimeError("boom")
        with (
            patch("app.workers.coaching_worker.SessionLocal", return_value=mock_db_session),
            patch(
                "app.workers.coaching_worker.CoachingService",
                return_value=mock_coaching_service,
            ),
        ):
            with pytest.raises(RuntimeError):
                send_coaching_notification(str(uuid.uuid4()), "morning")

        mock_coaching_service.messenger.close.assert_awaited_once()
        mock_db_session.close.assert_called_once()

    def test_rejects_unknown_type(self):
        from app.workers.coaching_worker import send_coaching_notification

        with patch("app.workers.coaching_worker.SessionLocal") as mock_session_local:
            with pytest.raises(ValueError):
                send_coaching_notification(str(uuid.uuid4()), "brunch")

        mock_session_local.assert_not_called()
