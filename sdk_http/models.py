"""Request, response and configuration models for sdk-http.

All models use Pydantic v2. Headers are carried as a ``Headers`` instance so
injectors can mutate them in place on the outgoing request.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sdk_http.headers import Headers

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_USER_AGENT = "Python HTTP/1.1"


def _coerce_headers(value: Any) -> Any:
    if value is None:
        return Headers()
    if isinstance(value, dict):
        return Headers(value)
    return value


# =============================================================================
# Core HTTP Models
# =============================================================================


class HttpRequest(BaseModel):
    """One outgoing HTTP request.

    Owned by the caller. The client only reads it, except for injectors,
    which mutate ``headers`` in place before the request is sent.

    ``response_type`` describes what a successful body is deserialized into.
    ``str`` (or None) means the body text is returned as-is.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    verb: str = Field(description="HTTP method; any token, upper-cased before use")
    path: str = Field(description="Path appended verbatim to the environment base URL")
    headers: Headers = Field(default_factory=Headers, description="Request headers")
    body: Any = Field(default=None, description="str sent as-is; anything else is serialized")
    response_type: Any = Field(default=None, description="Deserialization target for 2xx bodies")

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_headers(cls, value: Any) -> Any:
        return _coerce_headers(value)

    def header(self, name: str, value: str) -> HttpRequest:
        """Set a header and return self, for fluent construction.

        Raises:
            ValueError: If ``value`` is None.
        """
        self.headers.header(name, value)
        return self

    @property
    def passthrough(self) -> bool:
        """True when a successful body is returned as raw text."""
        return self.response_type is None or self.response_type is str


class HttpResponse(BaseModel, Generic[T]):
    """Result of a successful execution (status in the 200-206 band).

    Immutable once built. ``result`` is None when the body was empty.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status_code: int = Field(description="HTTP status code")
    headers: Headers = Field(default_factory=Headers, description="Response headers")
    result: T | None = Field(default=None, description="Deserialized body")

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_headers(cls, value: Any) -> Any:
        return _coerce_headers(value)


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class ClientConfig(BaseModel):
    """Configuration for one client instance (typically loaded from YAML)."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(description="Base URL every request path is appended to")
    connect_timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=0, description="Connect timeout")
    read_timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=0, description="Read timeout")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="Default User-Agent header")
    follow_redirects: bool = Field(default=True, description="Follow 3xx responses")
    verify_tls: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle (PEM)")
    default_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers set on every request unless already present",
    )
