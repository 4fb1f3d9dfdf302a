"""
Test configuration and fixtures for LINE Coach.

Implements the transaction rollback pattern:
- Session-scoped engine (SQLite in-memory unless TEST_DATABASE_URL is set)
- Function-scoped session joined to an outer transaction that is rolled back
- TestClient with database and service dependency overrides
- Mock completion and messaging services
"""

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.coaching import get_coaching_service
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.services.coaching_service import CoachingService
from app.services.message_service import MessageComposer
from tests.fixtures.mocks import MockClaudeService, MockLineMessagingClient


# =============================================================================
# Database Fixtures
# =============================================================================


def get_test_database_url() -> str:
    """
    Get the test database URL.

    Priority:
    1. TEST_DATABASE_URL environment variable (e.g. a PostgreSQL database)
    2. SQLite in-memory database
    """
    return os.environ.get("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="session")
def test_engine():
    """
    Create test database engine once per session.

    SQLite connections are shared across threads (TestClient runs the app in
    a worker thread) and take explicit BEGINs so savepoints work.
    """
    database_url = get_test_database_url()

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine, "connect")
        def do_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    else:
        engine = create_engine(database_url)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Generator[Session, None, None]:
    """
    Provide a transactional database session that rolls back after each test.

    The session works inside savepoints, so db.commit() and db.rollback()
    in code under test never leave the outer transaction. Commit test data
    when a test expects it to survive a rollback inside the code under test.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    TestingSessionLocal = sessionmaker(
        bind=connection, join_transaction_mode="create_savepoint"
    )
    session = TestingSessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def coaching_settings(monkeypatch):
    """Deterministic settings: no AI key, no scheduler secret, no send delays."""
    monkeypatch.setattr(settings, "anthropic_api_key", "")
    monkeypatch.setattr(settings, "cron_secret", "")
    monkeypatch.setattr(settings, "line_channel_access_token", "test-token")
    monkeypatch.setattr(settings, "coaching_timezone", "Asia/Bangkok")
    monkeypatch.setattr(settings, "coaching_send_delay_ms", 0)
    monkeypatch.setattr(settings, "coaching_card_delay_ms", 0)
    monkeypatch.setattr(settings, "coaching_match_send_times", True)
    monkeypatch.setattr(settings, "send_time_tolerance_minutes", 30)
    monkeypatch.setattr(settings, "post_exercise_window_minutes", 60)
    return settings


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_claude_service() -> MockClaudeService:
    """Mock completion capability, configurable per test."""
    return MockClaudeService()


@pytest.fixture
def mock_line_client() -> MockLineMessagingClient:
    """Mock LINE push client that records every push."""
    return MockLineMessagingClient()


@pytest.fixture
def coaching_service(db: Session, mock_line_client) -> CoachingService:
    """CoachingService with fallback-only composition and a mock LINE client."""
    return CoachingService(db, composer=MessageComposer(None), messenger=mock_line_client)


# =============================================================================
# TestClient Fixtures
# =============================================================================


@pytest.fixture
def client(db: Session, coaching_service: CoachingService) -> Generator[TestClient, None, None]:
    """
    TestClient with database and coaching service dependency overrides.

    The database session is injected into the app's get_db dependency and
    every request shares the mock LINE client of the coaching_service fixture.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close - managed by db fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_coaching_service] = lambda: coaching_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
