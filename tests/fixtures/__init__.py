"""Test fixtures for LINE Coach."""

from tests.fixtures.mocks import MockClaudeService, MockLineMessagingClient

__all__ = [
    "MockClaudeService",
    "MockLineMessagingClient",
]
