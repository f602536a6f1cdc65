"""Integration test fixtures (scripted HTTP server).

Requests go through the real HttpxTransport and httpx.AsyncClient; only
the socket layer is replaced by httpx.MockTransport, which replays a
scripted sequence of responses and records every request it receives.
"""

import time

import httpx
import pytest

from calleen.client import Client
from calleen.transport.httpx_transport import HttpxTransport


class ScriptedServer:
    """Replays scripted outcomes in order; the last one repeats forever.

    Outcomes are httpx.Response objects or exceptions to raise (e.g.
    httpx.ConnectError to simulate a refused connection).
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []
        self.request_times: list[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.request_times.append(time.monotonic())
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        # fresh response per request; httpx binds each one to its request
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)

    @property
    def gaps(self) -> list[float]:
        """Seconds elapsed between consecutive requests."""
        return [b - a for a, b in zip(self.request_times, self.request_times[1:])]


@pytest.fixture
def scripted_client():
    """Factory fixture building a Client wired to a ScriptedServer.

    Usage:
        async def test_something(make_server, scripted_client):
            server = make_server(httpx.Response(200, json={"ok": True}))
            async with scripted_client(server, retry_strategy=...) as client:
                ...
    """
    def _create(server: ScriptedServer, **kwargs) -> Client:
        transport = HttpxTransport(transport=httpx.MockTransport(server))
        return Client("https://api.example.com", transport=transport, **kwargs)

    return _create


@pytest.fixture
def make_server():
    """Factory fixture for ScriptedServer instances."""
    return ScriptedServer
