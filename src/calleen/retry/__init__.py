"""
Retry orchestration for HTTP calls.

This package decides what happens after a failed attempt: whether to try
again (RetryPredicate), how long to wait (RetryStrategy, or the server's
rate limit headers), and when to give up (MaxRetriesExceeded).

Main Components:
    - RetryEngine: Call loop driving attempts 1..N
    - RetryStrategy: Protocol for backoff shapes (NoRetry, ExponentialBackoff,
      LinearBackoff, CustomRetry)
    - RetryPredicate: Protocol for retry policies, with AndPredicate and
      OrPredicate combinators

Usage:
    >>> from calleen.retry import RetryEngine, ExponentialBackoff
    >>> engine = RetryEngine(ExponentialBackoff(0.1, 10.0, max_retries=3))
    >>> result = await engine.execute(send_once)
"""

from calleen.retry.engine import RetryEngine
from calleen.retry.predicates import (
    AndPredicate,
    OrPredicate,
    RetryOn5xx,
    RetryOnConnectionError,
    RetryOnRetryable,
    RetryOnStatus,
    RetryOnTimeout,
    RetryPredicate,
)
from calleen.retry.strategies import (
    CustomRetry,
    ExponentialBackoff,
    LinearBackoff,
    NoRetry,
    RetryStrategy,
)

__all__ = [
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
]
