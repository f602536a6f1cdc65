"""
Transport abstraction and implementations.

Components:
- BaseTransport: Abstract single round-trip transport
- TransportResponse: Raw status, headers and body
- HttpxTransport: Implementation on httpx.AsyncClient
"""

from calleen.transport.base import BaseTransport, TransportResponse
from calleen.transport.httpx_transport import HttpxTransport

__all__ = [
    "BaseTransport",
    "TransportResponse",
    "HttpxTransport",
]
