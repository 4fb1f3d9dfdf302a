"""
Tests for the per-member coaching endpoints.

Tests:
- Eligibility diagnosis per type
- Manual sends: inline, dry run and queued
- Validation and 404 handling
"""
import uuid
import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from unittest.mock import MagicMock, patch

from app.services.notification_types import NotificationType
from tests.factories import create_member, create_member_type

pytestmark = pytest.mark.integration


class TestEligibilityEndpoint:
    """Tests for GET /api/coaching/members/{id}/eligibility."""

    def test_all_types(self, client: TestClient, db: Session):
        member = create_member(db, notify_water_reminder=False)

        response = client.get(f"/api/coaching/members/{member.id}/eligibility")

        assert response.status_code == 200
        data = response.json()
        assert data["member_id"] == str(member.id)
        assert data["ai_coach"] == {"is_active": True, "is_unlimited": True, "days_remaining": None}
        assert set(data["decisions"]) == {t.value for t in NotificationType}
        assert data["decisions"]["morning"] == {"eligible": True, "reason": None}
        assert data["decisions"]["water"] == {"eligible": False, "reason": "preference_disabled"}
        assert data["decisions"]["weekly"]["reason"] == "not_weekly_milestone"

    def test_single_type(self, client: TestClient, db: Session):
        member = create_member(db)

        response = client.get(f"/api/coaching/members/{member.id}/eligibility?type=morning")

        assert list(response.json()["decisions"]) == ["morning"]

    def test_expired_subscription(self, client: TestClient, db: Session):
        member_type = create_member_type(db, course_duration=30)
        member = create_member(
            db,
            member_type=member_type,
            ai_coach_expire_date=datetime.now(timezone.utc) - timedelta(days=1),
        )

        response = client.get(f"/api/coaching/members/{member.id}/eligibility?type=evening")

        data = response.json()
        assert data["ai_coach"]["is_active"] is False
        assert data["ai_coach"]["days_remaining"] == 0
        assert data["decisions"]["evening"]["reason"] == "ai_coach_inactive"

    def test_paused_member(self, client: TestClient, db: Session):
        member = create_member(
            db, notifications_paused_until=datetime.now(timezone.utc) + timedelta(days=2)
        )

        response = client.get(f"/api/coaching/members/{member.id}/eligibility")

        reasons = {d["reason"] for d in response.json()["decisions"].values()}
        assert reasons == {"notifications_paused"}

    def test_unknown_member(self, client: TestClient):
        response = client.get(f"/api/coaching/members/{uuid.uuid4()}/eligibility")
        assert response.status_code == 404

    def test_invalid_type(self, client: TestClient, db: Session):
        member = create_member(db)

        response = client.get(f"/api/coaching/members/{member.id}/eligibility?type=brunch")

        assert response.status_code == 400

    def test_invalid_member_id(self, client: TestClient):
        response = client.get("/api/coaching/members/not-a-uuid/eligibility")
        assert response.status_code == 422  # Validation error


class TestSendEndpoint:
    """Tests for POST /api/coaching/members/{id}/send."""

    def test_inline_send(self, client: TestClient, db: Session, mock_line_client):
        member = create_member(db)

        response = client.post(
            f"/api/coaching/members/{member.id}/send", json={"type": "morning"}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "type": "morning"}
        assert len(mock_line_client.pushes_to(member.line_user_id)) == 1

    def test_ineligible_send_reports_failure(self, client: TestClient, db: Session, mock_line_client):
        member = create_member(db, notify_morning_coach=False)

        response = client.post(
            f"/api/coaching/members/{member.id}/send", json={"type": "morning"}
        )

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert mock_line_client.pushes == []

    def test_dry_run(self, client: TestClient, db: Session, mock_line_client):
        member = create_member(db, name="Bea", notify_evening_summary=False)

        response = client.post(
            f"/api/coaching/members/{member.id}/send",
            json={"type": "evening", "dry_run": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert data["eligible"] is False
        assert data["reason"] == "preference_disabled"
        assert "Bea" in data["message"]
        assert data["envelope"]["type"] == "flex"
        assert mock_line_client.pushes == []

    def test_async_mode_queues_send(self, client: TestClient, db: Session, mock_line_client):
        member = create_member(db)
        queued = MagicMock(message_id="msg-123")

        with patch(
            "app.workers.coaching_worker.send_coaching_notification.send",
            return_value=queued,
        ) as mock_send:
            response = client.post(
                f"/api/coaching/members/{member.id}/send",
                json={"type": "water", "async_mode": True},
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "queued": True,
            "type": "water",
            "message_id": "msg-123",
        }
        mock_send.assert_called_once_with(str(member.id), "water")
        assert mock_line_client.pushes == []

    def test_unknown_member(self, client: TestClient):
        response = client.post(
            f"/api/coaching/members/{uuid.uuid4()}/send", json={"type": "morning"}
        )
        assert response.status_code == 404

    @pytest.mark.parametrize("body", [{"type": "brunch"}, {"type": ""}])
    def test_invalid_type(self, client: TestClient, db: Session, body):
        member = create_member(db)

        response = client.post(f"/api/coaching/members/{member.id}/send", json=body)

        assert response.status_code == 400

    def test_missing_type(self, client: TestClient, db: Session):
        member = create_member(db)

        response = client.post(f"/api/coaching/members/{member.id}/send", json={})

        assert response.status_code == 422
