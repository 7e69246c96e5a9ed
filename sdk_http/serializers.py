"""Serializer and deserializer strategies.

A client is handed one serializer (request body -> text) and one
deserializer (response text -> value) at construction. ``JsonSerializer``
implements both for JSON APIs, using pydantic so generated SDK models
round-trip without extra glue.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter
from pydantic_core import PydanticSerializationError, to_json

from sdk_http.errors import SerializationError
from sdk_http.headers import CONTENT_TYPE, Headers
from sdk_http.models import HttpRequest


@runtime_checkable
class Serializer(Protocol):
    def serialize(self, request: HttpRequest) -> str | bytes: ...


@runtime_checkable
class Deserializer(Protocol):
    def deserialize(self, body: str, response_type: Any, headers: Headers) -> Any: ...


class JsonSerializer:
    """JSON request/response bodies.

    Request bodies may be pydantic models, or dicts, lists and scalars that
    pydantic can dump (nested models and datetimes included). Response bodies
    are validated into ``response_type`` with a pydantic TypeAdapter;
    ``dict``/``list``/``Any`` targets simply parse.
    """

    content_type = "application/json"

    def serialize(self, request: HttpRequest) -> str:
        """Dump the request body as compact JSON.

        Raises:
            SerializationError: If the body holds a value pydantic cannot dump.
        """
        body = request.body
        if isinstance(body, BaseModel):
            return body.model_dump_json(by_alias=True, exclude_none=True)
        try:
            return to_json(body, by_alias=True).decode("utf-8")
        except PydanticSerializationError as e:
            raise SerializationError(f"Unable to serialize request body: {e}") from e

    def deserialize(self, body: str, response_type: Any, headers: Headers) -> Any:
        """Parse ``body`` into ``response_type``.

        Raises:
            pydantic.ValidationError: If the body is not valid JSON for the type.
        """
        content_type = headers.get(CONTENT_TYPE)
        if content_type and "json" not in content_type.lower():
            raise ValueError(f"Unable to deserialize Content-Type: {content_type}")
        return TypeAdapter(response_type).validate_json(body)
