"""
HTTP API client with retry logic and rich error handling.

The Client is the main entry point. Its configuration is validated once at
construction and is immutable afterwards, so a single client can be shared
by any number of concurrent calls without locking.

Usage:
    async with Client(
        "https://api.example.com",
        retry_strategy=ExponentialBackoff(0.1, 10.0, max_retries=3),
        timeout=30,
    ) as client:
        user = await client.get("/users/123", response_type=User)
        print(user.data.name, user.latency, user.attempts)
"""

import time
from types import MappingProxyType
from typing import Any, Mapping, Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from calleen.config import Settings
from calleen.exceptions import (
    CalleenError,
    ConfigurationError,
    DeserializationFailed,
    HttpError,
    InvalidUrl,
    RequestTimeoutError,
)
from calleen.models.request import RequestMetadata, validate_header
from calleen.models.response import Response
from calleen.monitoring.metrics import http_attempts_total, http_call_latency_seconds
from calleen.rate_limit import RateLimitConfig, RateLimitInfo
from calleen.retry.engine import RetryEngine
from calleen.retry.predicates import RetryOnRetryable, RetryPredicate
from calleen.retry.strategies import NoRetry, RetryStrategy
from calleen.serialization import JsonSerializer, describe_decode_error
from calleen.transport.base import BaseTransport, TransportResponse
from calleen.transport.httpx_transport import HttpxTransport


logger = structlog.get_logger(__name__)


class ClientConfig(BaseModel):
    """
    Immutable client configuration.

    Validated at construction: a missing or malformed base URL, a bad
    header, a negative timeout or an object that does not implement the
    strategy/predicate protocols all fail here rather than at call time.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str = Field(..., description="Absolute http(s) base URL")
    default_headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    retry_strategy: Any = Field(default_factory=NoRetry)
    retry_predicate: Any = Field(default_factory=RetryOnRetryable)
    timeout: Optional[float] = Field(default=None, gt=0, description="Per-attempt timeout (s)")
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except (httpx.InvalidURL, TypeError) as e:
            raise ValueError(str(e)) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"expected an absolute http(s) URL, got {value!r}")
        return value

    @field_validator("default_headers")
    @classmethod
    def _check_headers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        for name, header_value in value.items():
            try:
                validate_header(name, header_value)
            except ConfigurationError as e:
                raise ValueError(e.message) from e
        # Read-only copy: frozen=True only guards attribute assignment
        return MappingProxyType(dict(value))

    @field_validator("retry_strategy")
    @classmethod
    def _check_strategy(cls, value: Any) -> Any:
        if not isinstance(value, RetryStrategy):
            raise ValueError(f"{value!r} does not implement RetryStrategy")
        return value

    @field_validator("retry_predicate")
    @classmethod
    def _check_predicate(cls, value: Any) -> Any:
        if not isinstance(value, RetryPredicate):
            raise ValueError(f"{value!r} does not implement RetryPredicate")
        return value


def build_config(**kwargs: Any) -> ClientConfig:
    """
    Build a ClientConfig, mapping validation failures to client errors.

    Raises:
        ConfigurationError: Missing base URL or any invalid option
        InvalidUrl: Malformed base URL
    """
    if kwargs.get("base_url") is None:
        raise ConfigurationError("Base URL is required")
    try:
        return ClientConfig(**kwargs)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        if any(err["loc"] and err["loc"][0] == "base_url" for err in errors):
            raise InvalidUrl(str(kwargs["base_url"]), details={"errors": errors}) from e
        raise ConfigurationError(
            "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in errors),
            details={"errors": errors},
        ) from e


class Client:
    """
    Type-aware, retry-aware HTTP API client.

    Each call runs through a RetryEngine built from the client's retry
    strategy, retry predicate and rate limit config. Successful calls
    return a Response with the decoded data plus raw body, status,
    headers, latency and attempt count. Failures raise CalleenError
    subclasses.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        default_headers: Optional[Mapping[str, str]] = None,
        retry_strategy: Optional[RetryStrategy] = None,
        retry_predicate: Optional[RetryPredicate] = None,
        timeout: Optional[float] = None,
        rate_limit: Optional[RateLimitConfig] = None,
        transport: Optional[BaseTransport] = None,
        serializer: Optional[JsonSerializer] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Base URL all request paths are resolved against
            default_headers: Headers sent with every request
            retry_strategy: Backoff shape and retry budget (default: NoRetry)
            retry_predicate: Retry policy (default: RetryOnRetryable)
            timeout: Per-attempt timeout in seconds (default: none)
            rate_limit: Rate limit handling (default: enabled, 300s max wait)
            transport: Transport for round trips (default: HttpxTransport)
            serializer: Body serializer (default: JsonSerializer)

        Raises:
            ConfigurationError: Invalid configuration
            InvalidUrl: Malformed base URL
        """
        options: dict[str, Any] = {"base_url": base_url, "timeout": timeout}
        if default_headers is not None:
            options["default_headers"] = dict(default_headers)
        if retry_strategy is not None:
            options["retry_strategy"] = retry_strategy
        if retry_predicate is not None:
            options["retry_predicate"] = retry_predicate
        if rate_limit is not None:
            options["rate_limit"] = rate_limit

        self.config = build_config(**options)
        self.transport = transport if transport is not None else HttpxTransport()
        self.serializer = serializer if serializer is not None else JsonSerializer()
        self.engine = RetryEngine(
            strategy=self.config.retry_strategy,
            predicate=self.config.retry_predicate,
            rate_limit=self.config.rate_limit,
        )
        self._base_url = httpx.URL(self.config.base_url)

        logger.info(
            "Initialized HTTP client",
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            retry_strategy=repr(self.config.retry_strategy),
            rate_limit_enabled=self.config.rate_limit.enabled,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "Client":
        """Create a client from environment-driven Settings."""
        options: dict[str, Any] = {
            "default_headers": settings.DEFAULT_HEADERS,
            "retry_strategy": settings.build_retry_strategy(),
            "timeout": settings.TIMEOUT,
            "rate_limit": settings.build_rate_limit_config(),
        }
        options.update(overrides)
        base_url = options.pop("base_url", settings.BASE_URL)
        return cls(base_url, **options)

    def build_url(self, metadata: RequestMetadata) -> str:
        """Resolve the request path against the base URL and add the query."""
        path = metadata.path
        try:
            if httpx.URL(path).is_absolute_url:
                raise InvalidUrl(
                    f"expected a path relative to the base URL, got {path!r}",
                    details={"path": path},
                )
            base_path = self._base_url.path.rstrip("/")
            url = self._base_url.copy_with(path=f"{base_path}/{path.lstrip('/')}")
            if metadata.query_params:
                url = url.copy_merge_params(dict(metadata.query_params))
        except httpx.InvalidURL as e:
            raise InvalidUrl(str(e), details={"path": path}) from e
        return str(url)

    def build_headers(self, metadata: RequestMetadata, has_body: bool) -> httpx.Headers:
        """Default headers, overridden by request headers."""
        headers = httpx.Headers(self.config.default_headers)
        if has_body:
            headers["Content-Type"] = self.serializer.content_type
        for name, value in metadata.headers.items():
            headers[name] = value
        return headers

    async def call(
        self,
        metadata: RequestMetadata,
        body: Any = None,
        response_type: Any = Any,
    ) -> Response:
        """
        Execute a request with the client's retry policy.

        Args:
            metadata: Method, path, headers and query parameters
            body: Request body, encoded with the serializer (None = no body)
            response_type: Type to decode the response body into
                (None discards the body)

        Returns:
            Response with decoded data, attempts and total latency

        Raises:
            HttpError: Non-2xx response that was not retried
            DeserializationFailed: 2xx response body not decodable
            SerializationFailed: Request body not encodable
            RequestTimeoutError / NetworkError: Transport failure that was not retried
            MaxRetriesExceeded: Retryable failures outlasted the retry budget
            InvalidUrl: Path yields an invalid URL
        """
        start = time.monotonic()
        url = self.build_url(metadata)
        content = self.serializer.encode(body) if body is not None else None
        headers = self.build_headers(metadata, has_body=content is not None)

        async def attempt_once(attempt: int) -> Response:
            raw = await self._send(metadata.method, url, headers, content)
            return self._parse_response(metadata.method, raw, response_type, start, attempt)

        try:
            response = await self.engine.execute(
                attempt_once, method=metadata.method, target=metadata.path
            )
        except CalleenError:
            http_call_latency_seconds.labels(method=metadata.method, success="false").observe(
                time.monotonic() - start
            )
            raise

        http_call_latency_seconds.labels(method=metadata.method, success="true").observe(
            response.latency
        )
        return response

    async def get(self, path: str, response_type: Any = Any, **kwargs: Any) -> Response:
        """GET `path`. Extra keyword arguments: headers, params."""
        return await self.call(self._metadata("GET", path, **kwargs), None, response_type)

    async def post(self, path: str, body: Any = None, response_type: Any = Any, **kwargs: Any) -> Response:
        """POST `body` to `path`."""
        return await self.call(self._metadata("POST", path, **kwargs), body, response_type)

    async def put(self, path: str, body: Any = None, response_type: Any = Any, **kwargs: Any) -> Response:
        """PUT `body` to `path`."""
        return await self.call(self._metadata("PUT", path, **kwargs), body, response_type)

    async def patch(self, path: str, body: Any = None, response_type: Any = Any, **kwargs: Any) -> Response:
        """PATCH `path` with `body`."""
        return await self.call(self._metadata("PATCH", path, **kwargs), body, response_type)

    async def delete(self, path: str, response_type: Any = Any, **kwargs: Any) -> Response:
        """DELETE `path`."""
        return await self.call(self._metadata("DELETE", path, **kwargs), None, response_type)

    @staticmethod
    def _metadata(
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> RequestMetadata:
        return RequestMetadata(
            method=method,
            path=path,
            headers=dict(headers or {}),
            query_params={k: str(v) for k, v in (params or {}).items()},
        )

    async def _send(
        self, method: str, url: str, headers: httpx.Headers, content: bytes | None
    ) -> TransportResponse:
        logger.debug("Executing HTTP request", method=method, url=url, headers=dict(headers))
        try:
            return await self.transport.send(
                method, url, headers, content=content, timeout=self.config.timeout
            )
        except CalleenError as e:
            outcome = "timeout" if isinstance(e, RequestTimeoutError) else "network_error"
            http_attempts_total.labels(method=method, outcome=outcome).inc()
            raise

    def _parse_response(
        self,
        method: str,
        raw: TransportResponse,
        response_type: Any,
        start: float,
        attempt: int,
    ) -> Response:
        """Classify one round trip as a Response or an error."""
        latency = time.monotonic() - start
        raw_body = raw.text

        logger.info(
            "Received HTTP response",
            status=raw.status,
            latency_ms=int(latency * 1000),
            attempts=attempt,
        )

        if not raw.is_success:
            http_attempts_total.labels(method=method, outcome="http_error").inc()
            rate_limit_info = None
            if self.config.rate_limit.enabled:
                info = RateLimitInfo.from_headers(raw.headers)
                if info.is_rate_limited():
                    rate_limit_info = info

            if 400 <= raw.status < 500:
                logger.error("Client error (4xx)", status=raw.status, response=raw_body)
            elif raw.status >= 500:
                logger.warning("Server error (5xx)", status=raw.status, response=raw_body)

            raise HttpError(
                status=raw.status,
                raw_response=raw_body,
                headers=raw.headers,
                rate_limit_info=rate_limit_info,
            )

        try:
            data = self.serializer.decode(raw.body, response_type)
        except ValueError as e:
            http_attempts_total.labels(method=method, outcome="deserialization_error").inc()
            logger.error("Failed to deserialize response", error=str(e), raw_response=raw_body)
            raise DeserializationFailed(
                raw_response=raw_body,
                message=describe_decode_error(e),
                status=raw.status,
            ) from e

        http_attempts_total.labels(method=method, outcome="success").inc()
        return Response(
            data=data,
            raw_body=raw_body,
            status=raw.status,
            headers=raw.headers,
            latency=latency,
            attempts=attempt,
        )

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.config.base_url}, "
            f"timeout={self.config.timeout}s)"
        )
