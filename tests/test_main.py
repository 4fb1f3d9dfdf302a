from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_health_check():
    """Test that health check endpoint is accessible without auth."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_routers_are_mounted():
    paths = {route.path for route in app.routes}
    assert "/api/cron/coaching" in paths
    assert "/api/cron/post-exercise" in paths
    assert "/api/coaching/members/{member_id}/send" in paths


def test_unknown_route():
    response = client.get("/api/cron/nightly")
    assert response.status_code == 404
