"""
Rate limit handling with automatic header parsing.

Parses the common rate limit response headers into a RateLimitInfo and
turns them into a recommended wait before the next attempt:

- Retry-After (RFC 9110, delay-seconds or HTTP-date)
- X-RateLimit-Reset (Unix timestamp, checked first)
- RateLimit-Reset (IETF draft, Unix timestamp, fallback)
- X-RateLimit-Remaining (requests left in the current window)
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx
from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup for any mapping."""
    if isinstance(headers, httpx.Headers):
        return headers.get(name)
    return httpx.Headers(dict(headers)).get(name)


def _parse_unsigned(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def parse_retry_after(
    headers: Mapping[str, str], now: datetime | None = None
) -> float | None:
    """
    Parse the Retry-After header into seconds to wait.

    Accepts delay-seconds or an HTTP-date. Dates in the past yield None.
    """
    raw = _get_header(headers, "retry-after")
    if raw is None:
        return None

    seconds = _parse_unsigned(raw)
    if seconds is not None:
        return float(seconds)

    try:
        retry_at = parsedate_to_datetime(raw.strip())
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    remaining = (retry_at - (now or _utcnow())).total_seconds()
    if remaining < 0:
        return None
    return remaining


def parse_rate_limit_reset(headers: Mapping[str, str]) -> datetime | None:
    """Parse X-RateLimit-Reset, falling back to RateLimit-Reset."""
    for name in ("x-ratelimit-reset", "ratelimit-reset"):
        timestamp = _parse_unsigned(_get_header(headers, name))
        if timestamp is None:
            continue
        try:
            return datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            continue
    return None


def parse_rate_limit_remaining(headers: Mapping[str, str]) -> int | None:
    """Parse X-RateLimit-Remaining."""
    return _parse_unsigned(_get_header(headers, "x-ratelimit-remaining"))


@dataclass(frozen=True)
class RateLimitInfo:
    """
    Rate limit state extracted from a single response.

    Derived strictly from response headers and never carried over to
    another request.

    Attributes:
        reset_at: When the rate limit window resets (UTC)
        retry_after: Seconds to wait before retrying (Retry-After)
        remaining: Requests remaining in the current window
    """

    reset_at: datetime | None = None
    retry_after: float | None = None
    remaining: int | None = None

    @classmethod
    def from_headers(
        cls, headers: Mapping[str, str], now: datetime | None = None
    ) -> "RateLimitInfo":
        """
        Extract rate limit information from response headers.

        Header names are matched case-insensitively. Values that cannot be
        parsed are treated as absent.
        """
        return cls(
            reset_at=parse_rate_limit_reset(headers),
            retry_after=parse_retry_after(headers, now=now),
            remaining=parse_rate_limit_remaining(headers),
        )

    def is_rate_limited(self) -> bool:
        """True if Retry-After was sent or no requests remain in the window."""
        return self.retry_after is not None or self.remaining == 0

    def delay(
        self,
        max_wait: float,
        now: datetime | None = None,
        respect_retry_after: bool = True,
    ) -> float | None:
        """
        Recommended delay before retrying, capped at max_wait.

        Prefers Retry-After; otherwise uses the time left until reset_at
        when that is still in the future. Returns None when neither
        yields a delay.
        """
        if respect_retry_after and self.retry_after is not None:
            return min(self.retry_after, max_wait)

        if self.reset_at is not None:
            until_reset = (self.reset_at - (now or _utcnow())).total_seconds()
            if until_reset > 0:
                return min(until_reset, max_wait)

        return None


class RateLimitConfig(BaseModel):
    """
    Toggles and bounds for rate limit handling.

    When enabled, non-2xx responses that signal an active rate limit carry
    a RateLimitInfo, and the retry engine waits for the header-derived delay
    instead of the strategy's backoff.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Parse and honour rate limit headers")
    max_wait: float = Field(
        default=300.0, ge=0.0, description="Upper bound in seconds for a single rate limit wait"
    )
    respect_retry_after: bool = Field(
        default=True, description="Use the Retry-After header when present"
    )

    @classmethod
    def disabled(cls) -> "RateLimitConfig":
        """Configuration with rate limit handling switched off."""
        return cls(enabled=False)
