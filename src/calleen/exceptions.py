"""
Error taxonomy for HTTP API calls.

Every failure surfaced by the client is a subclass of CalleenError. The set
of kinds is closed: callers can rely on these classes (and the shared
accessors on the base class) to decide how to react to a failure.

Shared accessors:
    - is_retryable(): default retryability classification
    - status: HTTP status code (HttpError, DeserializationFailed)
    - raw_response: raw response body (HttpError, DeserializationFailed)
    - rate_limit_info: parsed rate limit headers (HttpError only)
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from calleen.rate_limit import RateLimitInfo


class CalleenError(Exception):
    """
    Base exception for all client errors.

    All error kinds inherit from this to allow catching any failure
    with a single except clause.
    """

    status: int | None = None
    raw_response: str | None = None
    rate_limit_info: "RateLimitInfo | None" = None

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def is_retryable(self) -> bool:
        """Whether this error is transient and worth another attempt."""
        return False

    def rate_limit_delay(
        self, max_wait: float, respect_retry_after: bool = True
    ) -> float | None:
        """Delay recommended by the server's rate limit headers, if any."""
        if self.rate_limit_info is None:
            return None
        return self.rate_limit_info.delay(
            max_wait, respect_retry_after=respect_retry_after
        )


class NetworkError(CalleenError):
    """
    Raised when the request could not reach the server.

    Includes DNS failures, refused connections, resets, protocol errors.
    """

    def is_retryable(self) -> bool:
        return True


class RequestTimeoutError(CalleenError):
    """Raised when a single attempt exceeds the configured timeout."""

    def __init__(self, message: str = "Request timed out", details: dict | None = None):
        super().__init__(message, details)

    def is_retryable(self) -> bool:
        return True


class HttpError(CalleenError):
    """
    Raised when the server answers with a non-2xx status.

    Keeps the raw body and headers for debugging. Carries RateLimitInfo
    when rate limit handling is enabled and the response signals an
    active rate limit.
    """

    def __init__(
        self,
        status: int,
        raw_response: str,
        headers: Mapping[str, str] | None = None,
        rate_limit_info: "RateLimitInfo | None" = None,
    ):
        super().__init__(
            f"HTTP error {status}: {raw_response}",
            details={"status": status},
        )
        self.status = status
        self.raw_response = raw_response
        self.headers = httpx.Headers(headers or {})
        self.rate_limit_info = rate_limit_info

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    def is_retryable(self) -> bool:
        # 429 is the only client error worth retrying
        return self.is_server_error or self.status == 429


class DeserializationFailed(CalleenError):
    """
    Raised when a 2xx response body cannot be decoded into the target type.

    The raw body is preserved so callers can inspect what the server sent.
    """

    def __init__(self, raw_response: str, message: str, status: int):
        super().__init__(
            f"Failed to deserialize response (status {status}): {message}",
            details={"status": status, "error": message},
        )
        self.raw_response = raw_response
        self.status = status
        self.error = message


class ConfigurationError(CalleenError):
    """Raised when the client or a request is configured incorrectly."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(f"Configuration error: {message}", details)


class SerializationFailed(CalleenError):
    """Raised when the request body cannot be encoded."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(f"Failed to serialize request: {message}", details)


class InvalidUrl(CalleenError):
    """Raised when the base URL or a request path yields an invalid URL."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(f"Invalid URL: {message}", details)


class MaxRetriesExceeded(CalleenError):
    """
    Raised when the retry budget is spent without a successful attempt.

    This is the only wrapping error kind. It carries the total number of
    attempts and the error of the final attempt; earlier errors are only
    visible in the logs.

    Attributes:
        attempts: Total attempts made (initial try included)
        last_error: Error raised by the final attempt (never itself a
            MaxRetriesExceeded)
    """

    def __init__(self, attempts: int, last_error: CalleenError):
        # Keep the wrapping a single level deep
        if isinstance(last_error, MaxRetriesExceeded):
            last_error = last_error.last_error

        self.attempts = attempts
        self.last_error = last_error

        super().__init__(
            f"Max retries exceeded after {attempts} attempts: {last_error}",
            details={
                "attempts": attempts,
                "last_error_type": type(last_error).__name__,
            },
        )


def describe_error(error: BaseException) -> dict[str, Any]:
    """Flatten an error into log-friendly key/value pairs."""
    info: dict[str, Any] = {"error_type": type(error).__name__, "error": str(error)}
    if isinstance(error, CalleenError):
        if error.status is not None:
            info["status"] = error.status
        info["retryable"] = error.is_retryable()
    return info
