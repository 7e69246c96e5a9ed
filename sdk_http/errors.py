"""Exception hierarchy for sdk-http.

Transport failures (``httpx.TransportError``, ``httpx.InvalidURL``,
``OSError``) and deserialization failures are not wrapped; they reach the
caller of ``HttpClient.execute`` unmodified.
"""

from __future__ import annotations

from sdk_http.headers import Headers


class HttpClientError(Exception):
    """Base class for errors raised by the client itself."""


class SecurityConfigurationError(HttpClientError):
    """Raised when a request needs TLS but no SSL context is available."""


class UnsupportedVerbError(HttpClientError):
    """Raised by a connection that refuses to set a non-standard HTTP method."""

    def __init__(self, verb: str) -> None:
        super().__init__(f"Invalid HTTP method: {verb}")
        self.verb = verb


class SerializationError(HttpClientError):
    """Raised when a request body cannot be turned into text."""


class HttpError(HttpClientError):
    """Raised for every response whose status falls outside 200-206.

    Carries the raw error body exactly as the server sent it.
    """

    def __init__(self, body: str | None, status_code: int, headers: Headers) -> None:
        super().__init__(body)
        self.body = body
        self.status_code = status_code
        self.headers = headers

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.body or ''}"

    def __reduce__(self):
        return (type(self), (self.body, self.status_code, self.headers))
