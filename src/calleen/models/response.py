"""
Response wrapper preserving parsed data and raw response details.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import httpx

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Response(Generic[T]):
    """
    Successful response of a call.

    Created once, on the successful terminal attempt, and immutable
    afterwards.

    Attributes:
        data: Decoded response body
        raw_body: Raw response body text
        status: HTTP status code
        headers: Response headers (case-insensitive)
        latency: Total call latency in seconds, retries and waits included
        attempts: Number of attempts made (1 = no retries)
    """

    data: T
    raw_body: str
    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    latency: float = 0.0
    attempts: int = 1

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")
        if self.latency < 0:
            raise ValueError("latency must be >= 0")
        if not isinstance(self.headers, httpx.Headers):
            object.__setattr__(self, "headers", httpx.Headers(self.headers))

    @property
    def was_retried(self) -> bool:
        """True if the call needed more than one attempt."""
        return self.attempts > 1

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name)

    def map(self, fn: Callable[[T], U]) -> "Response[U]":
        """Return a copy with fn applied to data, keeping the metadata."""
        return Response(
            data=fn(self.data),
            raw_body=self.raw_body,
            status=self.status,
            headers=self.headers,
            latency=self.latency,
            attempts=self.attempts,
        )
