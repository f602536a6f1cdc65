"""
Data models for calleen.

Includes:
- RequestMetadata (method, path, headers, query parameters)
- Response (decoded data plus raw body, status, headers, latency, attempts)
"""

from calleen.models.request import RequestMetadata, validate_header
from calleen.models.response import Response

__all__ = [
    "RequestMetadata",
    "Response",
    "validate_header",
]
