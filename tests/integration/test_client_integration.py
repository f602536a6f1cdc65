"""
End-to-end tests for Client through the httpx transport.

These use real sleeps, so the rate limit cases take a few seconds.
"""

import time

import httpx
import pytest
from pydantic import BaseModel

from calleen.exceptions import (
    HttpError,
    MaxRetriesExceeded,
    NetworkError,
    RequestTimeoutError,
)
from calleen.rate_limit import RateLimitConfig
from calleen.retry.strategies import ExponentialBackoff, LinearBackoff, NoRetry

pytestmark = pytest.mark.integration


class User(BaseModel):
    id: int
    name: str


# ============================================================================
# Retry scenarios
# ============================================================================


@pytest.mark.asyncio
async def test_success_after_two_server_errors(make_server, scripted_client):
    """500, 500, 200 with Linear(10ms, 3) succeeds on the third attempt."""
    server = make_server(
        httpx.Response(500, text="boom"),
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"id": 1, "name": "Ada"}),
    )

    async with scripted_client(server, retry_strategy=LinearBackoff(delay=0.01, max_retries=3)) as client:
        response = await client.get("/users/1", response_type=User)

    assert response.attempts == 3
    assert response.was_retried
    assert response.data.name == "Ada"
    assert len(server.requests) == 3
    assert all(gap >= 0.005 for gap in server.gaps)


@pytest.mark.asyncio
async def test_always_failing_server_exhausts_retries(make_server, scripted_client):
    """Always 500 with Linear(10ms, 2): 1 initial + 2 retries."""
    server = make_server(httpx.Response(500, text="still broken"))

    async with scripted_client(server, retry_strategy=LinearBackoff(delay=0.01, max_retries=2)) as client:
        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await client.get("/flaky")

    assert exc_info.value.attempts == 3
    assert exc_info.value.last_error.status == 500
    assert exc_info.value.last_error.raw_response == "still broken"
    assert len(server.requests) == 3


@pytest.mark.asyncio
async def test_retry_after_header_drives_wait(make_server, scripted_client):
    """429 with Retry-After: 1 waits about a second, ignoring the 10ms backoff."""
    server = make_server(
        httpx.Response(429, text="slow down", headers={"Retry-After": "1"}),
        httpx.Response(200, json={"ok": True}),
    )

    async with scripted_client(server, retry_strategy=LinearBackoff(delay=0.01, max_retries=3)) as client:
        start = time.monotonic()
        response = await client.get("/limited")
        elapsed = time.monotonic() - start

    assert response.attempts == 2
    assert elapsed >= 0.95
    assert response.latency >= 0.95


@pytest.mark.asyncio
async def test_retry_after_capped_by_max_wait(make_server, scripted_client):
    """Retry-After: 600 with max_wait=2s waits about two seconds."""
    server = make_server(
        httpx.Response(429, text="slow down", headers={"Retry-After": "600"}),
        httpx.Response(200, json={"ok": True}),
    )

    async with scripted_client(
        server,
        retry_strategy=LinearBackoff(delay=0.01, max_retries=3),
        rate_limit=RateLimitConfig(max_wait=2.0),
    ) as client:
        start = time.monotonic()
        response = await client.get("/limited")
        elapsed = time.monotonic() - start

    assert response.attempts == 2
    assert 1.9 <= elapsed < 10


@pytest.mark.asyncio
async def test_rate_limit_disabled_uses_strategy_delay(make_server, scripted_client):
    """With rate limiting off, Retry-After is ignored in favour of the backoff."""
    server = make_server(
        httpx.Response(429, text="slow down", headers={"Retry-After": "600"}),
        httpx.Response(200, json={"ok": True}),
    )

    async with scripted_client(
        server,
        retry_strategy=LinearBackoff(delay=0.05, max_retries=3),
        rate_limit=RateLimitConfig.disabled(),
    ) as client:
        start = time.monotonic()
        response = await client.get("/limited")
        elapsed = time.monotonic() - start

    assert response.attempts == 2
    assert 0.04 <= elapsed < 1


@pytest.mark.asyncio
async def test_rate_limit_reset_header(make_server, scripted_client):
    """remaining=0 with a reset timestamp one to two seconds away."""
    reset = str(int(time.time()) + 2)
    server = make_server(
        httpx.Response(
            429,
            text="quota",
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": reset},
        ),
        httpx.Response(200, json={"ok": True}),
    )

    async with scripted_client(
        server,
        retry_strategy=LinearBackoff(delay=0.01, max_retries=1),
        rate_limit=RateLimitConfig(max_wait=3.0),
    ) as client:
        response = await client.get("/limited")

    assert response.attempts == 2
    assert 0.9 <= server.gaps[0] <= 3.1


# ============================================================================
# Transport failures
# ============================================================================


@pytest.mark.asyncio
async def test_connection_error_retried(make_server, scripted_client):
    server = make_server(
        httpx.ConnectError("connection refused"),
        httpx.Response(200, json={"ok": True}),
    )

    async with scripted_client(server, retry_strategy=LinearBackoff(delay=0.01, max_retries=2)) as client:
        response = await client.get("/health")

    assert response.attempts == 2
    assert response.data == {"ok": True}


@pytest.mark.asyncio
async def test_connection_error_without_retries(make_server, scripted_client):
    server = make_server(httpx.ConnectError("connection refused"))

    async with scripted_client(server, retry_strategy=NoRetry()) as client:
        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await client.get("/health")

    assert exc_info.value.attempts == 1
    assert isinstance(exc_info.value.last_error, NetworkError)


@pytest.mark.asyncio
async def test_timeout_mapped_and_retried(make_server, scripted_client):
    server = make_server(httpx.ReadTimeout("read timed out"))

    async with scripted_client(
        server,
        retry_strategy=ExponentialBackoff(initial_delay=0.01, max_delay=0.05, max_retries=2),
        timeout=1.0,
    ) as client:
        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await client.get("/slow")

    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_error, RequestTimeoutError)
    assert len(server.requests) == 3


# ============================================================================
# Request shape
# ============================================================================


@pytest.mark.asyncio
async def test_request_reaches_server_intact(make_server, scripted_client):
    server = make_server(httpx.Response(201, json={"id": 9, "name": "Grace"}))

    async with scripted_client(server, default_headers={"X-Api-Key": "secret"}) as client:
        response = await client.post(
            "/users",
            {"name": "Grace"},
            response_type=User,
            headers={"X-Trace": "abc"},
            params={"notify": "true"},
        )

    request = server.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/users"
    assert request.url.params["notify"] == "true"
    assert request.headers["x-api-key"] == "secret"
    assert request.headers["x-trace"] == "abc"
    assert request.headers["content-type"] == "application/json"
    assert request.content == b'{"name":"Grace"}'
    assert response.status == 201
    assert response.data == User(id=9, name="Grace")


@pytest.mark.asyncio
async def test_client_error_not_retried(make_server, scripted_client):
    server = make_server(httpx.Response(404, text="Not found", headers={"X-Request-Id": "r1"}))

    async with scripted_client(server, retry_strategy=LinearBackoff(delay=0.01, max_retries=3)) as client:
        with pytest.raises(HttpError) as exc_info:
            await client.get("/missing")

    assert exc_info.value.status == 404
    assert exc_info.value.headers["x-request-id"] == "r1"
    assert len(server.requests) == 1
