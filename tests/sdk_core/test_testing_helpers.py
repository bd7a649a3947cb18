"""Tests for the mock transports used by client unit tests."""

import pytest

from sdk_core.http import Request
from sdk_core.testing import AsyncMockTransport, MockTransport, mock_response


class TestMockResponse:
    def test_json_body(self):
        response = mock_response(200, {"a": 1})
        assert response.json() == {"a": 1}
        assert response.headers["Content-Type"].startswith("application/json")

    def test_text_and_bytes(self):
        assert mock_response(200, "hi").text() == "hi"
        assert mock_response(200, b"raw").body == b"raw"
        assert mock_response(204).body == b""


class TestMockTransport:
    def test_queue_in_order(self):
        transport = MockTransport(mock_response(500), mock_response(200))
        request = Request("GET", "https://example.org")

        assert transport.send(request).status == 500
        assert transport.send(request).status == 200
        assert len(transport.requests) == 2

    def test_queued_exception_raised(self):
        transport = MockTransport(ConnectionResetError("reset"))
        with pytest.raises(ConnectionResetError):
            transport.send(Request("GET", "https://example.org"))

    def test_empty_queue_fails_loudly(self):
        with pytest.raises(AssertionError):
            MockTransport().send(Request("GET", "https://example.org"))

    def test_handler(self):
        transport = MockTransport(handler=lambda request: mock_response(200, request.method))
        response = transport.send(Request("PATCH", "https://example.org"))
        assert response.text() == "PATCH"
        assert response.request.method == "PATCH"

    def test_requests_are_snapshots(self):
        transport = MockTransport(mock_response(200))
        request = Request("GET", "https://example.org")
        transport.send(request)
        request.headers["x-later"] = "1"
        assert "x-later" not in transport.last_request.headers


class TestAsyncMockTransport:
    @pytest.mark.asyncio
    async def test_async_handler(self):
        async def handler(request):
            return mock_response(202)

        transport = AsyncMockTransport(handler=handler)
        await transport.open()
        response = await transport.send(Request("POST", "https://example.org"))
        await transport.close()

        assert response.status == 202
        assert transport.opened and transport.closed
