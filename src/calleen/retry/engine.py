"""
Retry engine: the call loop behind every client request.

The engine runs one logical call as a sequence of attempts numbered from 1.
After each failed attempt it consults, in order:

    1. RetryPredicate: should this error be retried at all?
    2. RetryStrategy: is there retry budget left for this attempt?
    3. RateLimitInfo: did the server say how long to wait? (if enabled)
    4. RetryStrategy: otherwise, the backoff delay

and then sleeps and tries again, or gives up with MaxRetriesExceeded.

Rate limit policy: a header-derived delay replaces the strategy's delay for
a retry the strategy allows, but never grants a retry the strategy would
refuse. The strategy's max_retries is therefore a hard ceiling on attempts.

Usage:
    engine = RetryEngine(LinearBackoff(delay=0.5, max_retries=3))
    result = await engine.execute(send_once, method="GET", target="/users/1")
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from calleen.exceptions import CalleenError, MaxRetriesExceeded, describe_error
from calleen.monitoring.metrics import http_retries_exhausted_total, http_retries_total
from calleen.rate_limit import RateLimitConfig
from calleen.retry.predicates import RetryOnRetryable, RetryPredicate
from calleen.retry.strategies import NoRetry, RetryStrategy

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class RetryEngine:
    """
    Drives repeated attempts of a single logical call.

    The engine holds only read-only configuration; the attempt counter and
    last error live in the execute() frame, so one engine can serve any
    number of concurrent calls.

    Attributes:
        strategy: Backoff shape and retry budget
        predicate: Retry/no-retry policy per error
        rate_limit: Rate limit handling toggles and bounds
    """

    def __init__(
        self,
        strategy: RetryStrategy | None = None,
        predicate: RetryPredicate | None = None,
        rate_limit: RateLimitConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize retry engine.

        Args:
            strategy: Retry strategy (default: NoRetry)
            predicate: Retry predicate (default: RetryOnRetryable)
            rate_limit: Rate limit config (default: enabled, 300s max wait)
            sleep: Coroutine used to wait between attempts
        """
        self.strategy = strategy if strategy is not None else NoRetry()
        self.predicate = predicate if predicate is not None else RetryOnRetryable()
        self.rate_limit = rate_limit if rate_limit is not None else RateLimitConfig()
        self._sleep = sleep

    def next_delay(self, error: CalleenError, attempt: int) -> tuple[float | None, str]:
        """
        Compute the wait before the attempt after `attempt`.

        Returns:
            Tuple of (delay in seconds or None when exhausted, delay source)
        """
        strategy_delay = self.strategy.delay_for_attempt(attempt)
        if strategy_delay is None:
            return None, "exhausted"

        if self.rate_limit.enabled:
            rate_limit_delay = error.rate_limit_delay(
                self.rate_limit.max_wait,
                respect_retry_after=self.rate_limit.respect_retry_after,
            )
            if rate_limit_delay is not None:
                return rate_limit_delay, "rate_limit"

        return strategy_delay, "backoff"

    async def execute(
        self,
        operation: Callable[[int], Awaitable[T]],
        *,
        method: str = "",
        target: str = "",
    ) -> T:
        """
        Run `operation` until it succeeds or the retry policy gives up.

        Args:
            operation: Coroutine function performing one attempt; receives
                the attempt number and raises CalleenError on failure
            method: HTTP method (logging/metrics only)
            target: Request path or URL (logging only)

        Returns:
            Whatever the successful attempt returned

        Raises:
            CalleenError: The first non-retryable error, unwrapped
            MaxRetriesExceeded: Retryable errors persisted past the budget
        """
        start = time.monotonic()
        attempt = 0
        last_error: CalleenError | None = None

        while True:
            attempt += 1
            logger.debug("Executing attempt", method=method, target=target, attempt=attempt)

            try:
                return await operation(attempt)
            except CalleenError as e:
                error = e

            logger.warning(
                "Request failed",
                method=method,
                target=target,
                attempt=attempt,
                **describe_error(error),
            )

            if not self.predicate.should_retry(error, attempt):
                raise error

            last_error = error
            delay, source = self.next_delay(error, attempt)

            if delay is None:
                http_retries_exhausted_total.labels(method=method or "UNKNOWN").inc()
                logger.error(
                    "Retries exhausted",
                    method=method,
                    target=target,
                    attempts=attempt,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                    final_error_type=type(last_error).__name__,
                )
                raise MaxRetriesExceeded(attempts=attempt, last_error=last_error) from last_error

            http_retries_total.labels(reason=source).inc()
            logger.info(
                "Retrying request after delay",
                method=method,
                target=target,
                attempt=attempt,
                delay_ms=int(delay * 1000),
                rate_limited=source == "rate_limit",
            )

            await self._sleep(delay)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"strategy={self.strategy!r}, "
            f"predicate={self.predicate!r}, "
            f"rate_limit={self.rate_limit!r})"
        )
