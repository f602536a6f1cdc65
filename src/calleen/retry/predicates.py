"""
Retry predicates: whether a failed attempt deserves another try.

Predicates are pure functions of (error, attempt). Any object with a
matching should_retry method qualifies, so custom policies need no base
class. AndPredicate and OrPredicate are predicates themselves and can be
nested freely.

Usage:
    >>> predicate = OrPredicate([RetryOn5xx(), RetryOnTimeout()])
    >>> predicate.should_retry(error, attempt=1)
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from calleen.exceptions import CalleenError, HttpError, NetworkError, RequestTimeoutError


@runtime_checkable
class RetryPredicate(Protocol):
    """Protocol for retry predicates."""

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        """
        Decide whether the failed attempt should be retried.

        Args:
            error: Error raised by the attempt
            attempt: Attempt number that failed (1-indexed)
        """
        ...


class RetryOnRetryable:
    """Retry every error its own classification marks as retryable (default)."""

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return error.is_retryable()

    def __repr__(self) -> str:
        return "RetryOnRetryable()"


class RetryOn5xx:
    """Retry only on 5xx server errors."""

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return isinstance(error, HttpError) and error.is_server_error

    def __repr__(self) -> str:
        return "RetryOn5xx()"


class RetryOnTimeout:
    """Retry only on timeouts."""

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return isinstance(error, RequestTimeoutError)

    def __repr__(self) -> str:
        return "RetryOnTimeout()"


class RetryOnConnectionError:
    """Retry only on network/connection errors."""

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return isinstance(error, NetworkError)

    def __repr__(self) -> str:
        return "RetryOnConnectionError()"


class RetryOnStatus:
    """Retry on HTTP errors with one of the given status codes (e.g. 429)."""

    def __init__(self, *statuses: int):
        self.statuses = frozenset(statuses)

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return isinstance(error, HttpError) and error.status in self.statuses

    def __repr__(self) -> str:
        return f"RetryOnStatus({', '.join(str(s) for s in sorted(self.statuses))})"


class AndPredicate:
    """
    Retry only if ALL predicates agree.

    An empty AndPredicate is vacuously true.
    """

    def __init__(self, predicates: Iterable[RetryPredicate]):
        self.predicates: tuple[RetryPredicate, ...] = tuple(predicates)

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return all(p.should_retry(error, attempt) for p in self.predicates)

    def __repr__(self) -> str:
        return f"AndPredicate({list(self.predicates)!r})"


class OrPredicate:
    """
    Retry if ANY predicate agrees.

    An empty OrPredicate is vacuously false.
    """

    def __init__(self, predicates: Iterable[RetryPredicate]):
        self.predicates: tuple[RetryPredicate, ...] = tuple(predicates)

    def should_retry(self, error: CalleenError, attempt: int) -> bool:
        return any(p.should_retry(error, attempt) for p in self.predicates)

    def __repr__(self) -> str:
        return f"OrPredicate({list(self.predicates)!r})"
