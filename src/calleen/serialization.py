"""
JSON serializer for request and response bodies.

Backed by pydantic TypeAdapter, so bodies can be pydantic models,
dataclasses, TypedDicts or plain JSON types, and responses are validated
against the requested target type.
"""

from functools import lru_cache
from typing import Any

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from calleen.exceptions import ConfigurationError, SerializationFailed


def _build_adapter(target_type: Any) -> TypeAdapter:
    try:
        return TypeAdapter(target_type)
    except PydanticSchemaGenerationError as e:
        raise ConfigurationError(
            f"Unsupported response type: {target_type!r}",
            details={"error": str(e)},
        ) from e


_adapter = lru_cache(maxsize=256)(_build_adapter)


class JsonSerializer:
    """Encodes request bodies to JSON bytes and decodes response bodies."""

    content_type = "application/json"

    def encode(self, value: Any) -> bytes:
        """
        Encode a value as JSON.

        Raises:
            SerializationFailed: The value cannot be represented as JSON
        """
        try:
            if isinstance(value, BaseModel):
                return value.model_dump_json().encode("utf-8")
            return _adapter(Any).dump_json(value)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationFailed(str(e), details={"value_type": type(value).__name__}) from e

    def decode(self, raw: str | bytes, target_type: Any = Any) -> Any:
        """
        Decode JSON into `target_type`.

        A target_type of None discards the body (e.g. 204 No Content).

        Raises:
            ValueError: Invalid JSON, or JSON not matching target_type
                (pydantic.ValidationError is a ValueError)
        """
        if target_type is None:
            return None
        try:
            adapter = _adapter(target_type)
        except TypeError:
            # unhashable type expressions skip the cache
            adapter = _build_adapter(target_type)
        return adapter.validate_json(raw)


def describe_decode_error(error: ValueError) -> str:
    """Compact, single-line description of a decode failure."""
    if isinstance(error, ValidationError):
        first = error.errors()[0] if error.error_count() else {}
        location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
        return f"{first.get('msg', str(error))} at {location} ({error.error_count()} error(s))"
    return str(error)
