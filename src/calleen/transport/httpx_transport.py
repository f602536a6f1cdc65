"""
httpx-backed transport.

Uses a persistent httpx.AsyncClient (created lazily) so connections are
pooled across attempts and across concurrent calls.
"""

from typing import Mapping, Optional

import httpx
import structlog

from calleen.exceptions import NetworkError, RequestTimeoutError
from calleen.transport.base import BaseTransport, TransportResponse


logger = structlog.get_logger(__name__)


class HttpxTransport(BaseTransport):
    """
    Transport implementation on httpx.AsyncClient.

    Error mapping:
    - httpx.TimeoutException -> RequestTimeoutError
    - any other httpx.TransportError -> NetworkError
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        follow_redirects: bool = True,
    ):
        """
        Initialize httpx transport.

        Args:
            client: Pre-configured AsyncClient to use (not closed by us)
            transport: Low-level httpx transport for a lazily created client
                (e.g. httpx.MockTransport in tests)
            follow_redirects: Follow redirects on the lazily created client
        """
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self._follow_redirects = follow_redirects

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=self._follow_redirects,
                timeout=None,
            )
            self._owns_client = True
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        client = self._get_client()
        try:
            response = await client.request(
                method,
                url,
                headers=dict(headers),
                content=content,
                timeout=httpx.Timeout(timeout),
            )
        except httpx.TimeoutException as e:
            logger.warning("HTTP request timeout", method=method, url=url, timeout=timeout, error=str(e))
            raise RequestTimeoutError(
                f"Request timed out after {timeout}s" if timeout is not None else "Request timed out",
                details={"url": url, "timeout": timeout, "error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            logger.warning("HTTP network error", method=method, url=url, error=str(e))
            raise NetworkError(
                f"Network error: {e}",
                details={"url": url, "error_type": type(e).__name__},
            ) from e

        return TransportResponse(
            status=response.status_code,
            headers=response.headers,
            body=response.content,
        )

    async def close(self) -> None:
        """Close the HTTP client connection if we created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed httpx AsyncClient")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(follow_redirects={self._follow_redirects})"
