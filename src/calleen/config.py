"""
Configuration settings for calleen clients.

All settings are loaded from environment variables (prefix CALLEEN_) with
sensible defaults. Use a .env file for local development.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from calleen.rate_limit import RateLimitConfig
from calleen.retry.strategies import ExponentialBackoff, LinearBackoff, NoRetry, RetryStrategy


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CALLEEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # "production" switches to JSON logs

    # === Target API ===
    BASE_URL: Optional[str] = None
    TIMEOUT: Optional[float] = None  # seconds, per attempt
    DEFAULT_HEADERS: dict[str, str] = {}  # JSON object in the environment

    # === Retry ===
    RETRY_STRATEGY: Literal["none", "linear", "exponential"] = "none"
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 1.0  # linear
    RETRY_INITIAL_DELAY: float = 0.1  # exponential
    RETRY_MAX_DELAY: float = 30.0  # exponential
    RETRY_JITTER: bool = True  # exponential

    # === Rate Limiting ===
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_WAIT: float = 300.0  # seconds
    RATE_LIMIT_RESPECT_RETRY_AFTER: bool = True

    def build_retry_strategy(self) -> RetryStrategy:
        """Instantiate the configured retry strategy."""
        if self.RETRY_STRATEGY == "linear":
            return LinearBackoff(delay=self.RETRY_DELAY, max_retries=self.MAX_RETRIES)
        if self.RETRY_STRATEGY == "exponential":
            return ExponentialBackoff(
                initial_delay=self.RETRY_INITIAL_DELAY,
                max_delay=self.RETRY_MAX_DELAY,
                max_retries=self.MAX_RETRIES,
                jitter=self.RETRY_JITTER,
            )
        return NoRetry()

    def build_rate_limit_config(self) -> RateLimitConfig:
        """Instantiate the configured rate limit handling."""
        return RateLimitConfig(
            enabled=self.RATE_LIMIT_ENABLED,
            max_wait=self.RATE_LIMIT_MAX_WAIT,
            respect_retry_after=self.RATE_LIMIT_RESPECT_RETRY_AFTER,
        )
