"""
calleen: a retry-aware HTTP API client.

Wraps an HTTP transport with a retry/rate-limit engine that decides, after
each failed attempt, whether to try again, how long to wait, and how to
report terminal failure:

- Retry strategies (none, linear, exponential backoff with jitter, custom)
- Composable retry predicates (AND/OR)
- Rate limit header handling (Retry-After, X-RateLimit-*, RateLimit-Reset)
- Typed errors that keep the raw response for debugging

Architecture: Client -> RetryEngine -> Transport (httpx) + JsonSerializer (pydantic)
"""

from calleen.client import Client, ClientConfig
from calleen.config import Settings
from calleen.exceptions import (
    CalleenError,
    ConfigurationError,
    DeserializationFailed,
    HttpError,
    InvalidUrl,
    MaxRetriesExceeded,
    NetworkError,
    RequestTimeoutError,
    SerializationFailed,
)
from calleen.logging_config import configure_logging, configure_logging_from_settings
from calleen.models import RequestMetadata, Response
from calleen.rate_limit import RateLimitConfig, RateLimitInfo
from calleen.retry import (
    AndPredicate,
    CustomRetry,
    ExponentialBackoff,
    LinearBackoff,
    NoRetry,
    OrPredicate,
    RetryEngine,
    RetryOn5xx,
    RetryOnConnectionError,
    RetryOnRetryable,
    RetryOnStatus,
    RetryOnTimeout,
    RetryPredicate,
    RetryStrategy,
)

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ClientConfig",
    "Settings",
    "configure_logging",
    "configure_logging_from_settings",
    "RequestMetadata",
    "Response",
    "RateLimitConfig",
    "RateLimitInfo",
    "RetryEngine",
    "RetryStrategy",
    "NoRetry",
    "ExponentialBackoff",
    "LinearBackoff",
    "CustomRetry",
    "RetryPredicate",
    "RetryOnRetryable",
    "RetryOn5xx",
    "RetryOnTimeout",
    "RetryOnConnectionError",
    "RetryOnStatus",
    "AndPredicate",
    "OrPredicate",
    "CalleenError",
    "NetworkError",
    "RequestTimeoutError",
    "HttpError",
    "DeserializationFailed",
    "ConfigurationError",
    "SerializationFailed",
    "InvalidUrl",
    "MaxRetriesExceeded",
]
