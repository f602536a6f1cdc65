"""Unit test fixtures (mocks and stubs).

Provides mock transports and canned responses for testing without a server.
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from calleen.transport.base import BaseTransport, TransportResponse


@pytest.fixture
def make_response():
    """Factory fixture to create TransportResponse objects.

    dict/list bodies are JSON encoded, str bodies UTF-8 encoded.

    Usage:
        def test_something(make_response):
            raw = make_response(429, "slow down", {"Retry-After": "1"})
    """
    def _create(status: int = 200, body=None, headers: dict | None = None) -> TransportResponse:
        if body is None:
            raw = b""
        elif isinstance(body, (dict, list)):
            raw = json.dumps(body).encode()
        elif isinstance(body, str):
            raw = body.encode()
        else:
            raw = body
        return TransportResponse(status=status, headers=httpx.Headers(headers or {}), body=raw)

    return _create


@pytest.fixture
def mock_transport(make_response):
    """Mock transport; set send.return_value or send.side_effect per test."""
    mock = AsyncMock(spec=BaseTransport)
    mock.send = AsyncMock(return_value=make_response(200, {"ok": True}))
    mock.close = AsyncMock(return_value=None)
    return mock
