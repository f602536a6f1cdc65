"""
Abstract transport for sending a single HTTP request.

Defines the contract the retry engine relies on. A transport performs
exactly one round trip: no retries, no status interpretation, no body
decoding. That keeps all retry decisions in one place.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping

import httpx
import structlog


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """
    Raw outcome of one round trip.

    Attributes:
        status: HTTP status code
        headers: Response headers (case-insensitive)
        body: Raw response body
    """

    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (invalid bytes replaced)."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300


class BaseTransport(ABC):
    """
    Abstract base class for HTTP transports.

    Responsibilities:
    - Send one request and return status, headers and raw body
    - Classify transport failures as RequestTimeoutError or NetworkError

    Does NOT handle:
    - Retries (that's RetryEngine's job)
    - Status handling or decoding (that's Client's job)
    """

    @abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """
        Perform one HTTP round trip.

        Args:
            method: HTTP method
            url: Absolute URL, query string included
            headers: Request headers
            content: Encoded request body, if any
            timeout: Per-attempt timeout in seconds (None = no timeout)

        Returns:
            TransportResponse for any status code

        Raises:
            RequestTimeoutError: The round trip exceeded `timeout`
            NetworkError: Any other failure to obtain a response
        """
        pass

    async def close(self) -> None:
        """
        Release connections.

        Default implementation does nothing. Subclasses holding persistent
        connections should override.
        """
        logger.debug("Closing transport", transport_class=self.__class__.__name__)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
