"""
Retry strategies: how long to wait before each retry.

A strategy is a pure function from the attempt number to an optional
delay. Returning None is the stop signal: the retry budget is spent.

Available strategies:
    1. NoRetry: Never retry
    2. ExponentialBackoff: initial_delay * 2^(attempt-1), capped, optional jitter
    3. LinearBackoff: Fixed delay between attempts
    4. CustomRetry: Delegate to a user supplied function

Attempt numbers are 1-indexed: delay_for_attempt(1) is the wait after the
first (failed) try, before the first retry.
"""

import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from calleen.exceptions import ConfigurationError

# 2**1023 is the largest power of two representable as a float
_MAX_EXPONENT = 1023


@runtime_checkable
class RetryStrategy(Protocol):
    """
    Protocol for retry strategies.

    Implementations decide the wait before the next attempt and when to
    stop retrying altogether.
    """

    @property
    def max_retries(self) -> int | None:
        """Retry ceiling, or None when the strategy does not know one."""
        ...

    def delay_for_attempt(self, attempt: int) -> float | None:
        """
        Delay in seconds before retrying after the given attempt.

        Args:
            attempt: Attempt number that just failed (1-indexed)

        Returns:
            Seconds to wait, or None if retries are exhausted
        """
        ...


def _require_non_negative(**values: float) -> None:
    for name, value in values.items():
        if value < 0:
            raise ConfigurationError(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class NoRetry:
    """Do not retry failed requests."""

    @property
    def max_retries(self) -> int:
        return 0

    def delay_for_attempt(self, attempt: int) -> float | None:
        return None


@dataclass(frozen=True)
class ExponentialBackoff:
    """
    Retry with exponentially increasing delays.

    Each retry waits initial_delay * 2^(attempt-1), capped at max_delay.
    With jitter the delay is scaled by a random factor in [0.5, 1.0] so
    that many clients failing together do not retry in lockstep.

    Example (initial_delay=0.1, max_delay=10, no jitter):
        0.1s, 0.2s, 0.4s, 0.8s, 1.6s, ...
    """

    initial_delay: float
    max_delay: float
    max_retries: int
    jitter: bool = True

    def __post_init__(self) -> None:
        _require_non_negative(
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            max_retries=self.max_retries,
        )

    def base_delay(self, attempt: int) -> float:
        """Unjittered delay for the given attempt."""
        exponent = min(max(attempt - 1, 0), _MAX_EXPONENT)
        return min(self.initial_delay * 2.0**exponent, self.max_delay)

    def delay_for_attempt(self, attempt: int) -> float | None:
        if attempt > self.max_retries:
            return None

        delay = self.base_delay(attempt)
        if self.jitter:
            delay *= random.uniform(0.5, 1.0)
        return delay


@dataclass(frozen=True)
class LinearBackoff:
    """Retry with a fixed delay between attempts."""

    delay: float
    max_retries: int

    def __post_init__(self) -> None:
        _require_non_negative(delay=self.delay, max_retries=self.max_retries)

    def delay_for_attempt(self, attempt: int) -> float | None:
        if attempt > self.max_retries:
            return None
        return self.delay


@dataclass(frozen=True)
class CustomRetry:
    """
    Custom retry logic.

    delay_fn receives the attempt number (1-indexed) and returns the delay
    in seconds, or None to stop retrying.
    """

    delay_fn: Callable[[int], float | None]

    @property
    def max_retries(self) -> None:
        return None

    def delay_for_attempt(self, attempt: int) -> float | None:
        return self.delay_fn(attempt)
