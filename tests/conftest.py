"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from datetime import datetime, timezone

import pytest

from calleen.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            settings = test_settings.model_copy(update={"MAX_RETRIES": 5})
    """
    return Settings(
        # === Logging ===
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Target API ===
        BASE_URL="https://api.example.com",
        TIMEOUT=5.0,
        DEFAULT_HEADERS={"X-Api-Key": "test-key"},

        # === Retry ===
        RETRY_STRATEGY="linear",
        MAX_RETRIES=3,
        RETRY_DELAY=0.01,

        # === Rate Limiting ===
        RATE_LIMIT_ENABLED=True,
        RATE_LIMIT_MAX_WAIT=300.0,
    )


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' for deterministic rate limit arithmetic."""
    return datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def recorded_sleep():
    """Fake sleep that records requested delays instead of waiting.

    Usage:
        engine = RetryEngine(strategy, sleep=recorded_sleep)
        ...
        assert recorded_sleep.delays == [0.1, 0.2]
    """

    class _RecordedSleep:
        def __init__(self):
            self.delays: list[float] = []

        async def __call__(self, delay: float) -> None:
            self.delays.append(delay)

    return _RecordedSleep()
