"""
Request metadata: everything that identifies one logical call.

RequestMetadata is immutable; the with_* helpers return updated copies so
a base request can be shared and specialised safely.
"""

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping

from calleen.exceptions import ConfigurationError

# RFC 9110 token characters
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_METHOD_RE = _HEADER_NAME_RE


def validate_header(name: str, value: str) -> tuple[str, str]:
    """
    Check a header name/value pair.

    Raises:
        ConfigurationError: Invalid header name or value
    """
    if not isinstance(name, str) or not _HEADER_NAME_RE.fullmatch(name):
        raise ConfigurationError(f"Invalid header name: {name!r}", details={"header": name})
    if not isinstance(value, str) or any(c in value for c in "\r\n\0"):
        raise ConfigurationError(
            f"Invalid header value for {name}: {value!r}", details={"header": name}
        )
    return name, value


@dataclass(frozen=True)
class RequestMetadata:
    """
    Method, path, headers and query parameters of a request.

    Attributes:
        method: HTTP method, normalised to upper case
        path: Path relative to the client's base URL
        headers: Request-specific headers (override client defaults), read-only
        query_params: Query string parameters, read-only
    """

    method: str = "GET"
    path: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    query_params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalise."""
        if not _METHOD_RE.fullmatch(self.method or ""):
            raise ConfigurationError(f"Invalid HTTP method: {self.method!r}")
        object.__setattr__(self, "method", self.method.upper())

        for name, value in self.headers.items():
            validate_header(name, value)

        # Copies, so neither the caller's dicts nor ours can change after validation
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(
            self,
            "query_params",
            MappingProxyType({k: str(v) for k, v in self.query_params.items()}),
        )

    def with_header(self, name: str, value: str) -> "RequestMetadata":
        """Return a copy with the header set (replacing any previous value)."""
        validate_header(name, value)
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return replace(self, headers=headers)

    def with_query_param(self, key: str, value: str) -> "RequestMetadata":
        """Return a copy with the query parameter set."""
        return replace(self, query_params={**self.query_params, key: str(value)})

    def with_query_params(
        self, params: Iterable[tuple[str, str]] | Mapping[str, str]
    ) -> "RequestMetadata":
        """Return a copy with all given query parameters set."""
        items = params.items() if isinstance(params, Mapping) else params
        return replace(
            self,
            query_params={**self.query_params, **{k: str(v) for k, v in items}},
        )
