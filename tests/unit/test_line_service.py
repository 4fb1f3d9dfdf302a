"""
Unit tests for LineMessagingClient.

Uses httpx.MockTransport so no request leaves the process.
"""
import json
import pytest
import httpx

from app.services.line_service import LineMessagingClient


def make_client(handler) -> LineMessagingClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LineMessagingClient(access_token="channel-token", http_client=http_client)


class TestPushMessage:
    @pytest.mark.asyncio
    async def test_successful_push(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={})

        client = make_client(handler)
        messages = [{"type": "text", "text": "Hello"}]

        result = await client.push_message("U123", messages)
        await client.close()

        assert result is True
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.line.me/v2/bot/message/push"
        assert request.headers["Authorization"] == "Bearer channel-token"
        assert json.loads(request.content) == {"to": "U123", "messages": messages}

    @pytest.mark.asyncio
    async def test_rejected_push_returns_false(self):
        client = make_client(lambda request: httpx.Response(400, json={"message": "Invalid reply token"}))

        assert await client.push_message("U123", []) is False

    @pytest.mark.asyncio
    async def test_transport_error_returns_false(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        assert await client.push_message("U123", []) is False

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        client = make_client(handler)
        await client.push_message("U123", [])

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = make_client(lambda request: httpx.Response(200))

        await client.close()
        await client.close()
