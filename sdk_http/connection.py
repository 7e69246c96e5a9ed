"""Connection - one configured HTTP exchange over httpx.

A Connection is configured first (headers, TLS, timeouts, method, body) and
sent lazily: the first call that needs the response (``get_response_code``)
performs the round trip. The response body is exposed as a raw byte stream;
content decoding (gzip) is left to the reader.

The transport is pluggable so tests can run against ``httpx.MockTransport``.
"""

from __future__ import annotations

import io
import logging
import ssl
from typing import Callable, Iterator

import httpx

logger = logging.getLogger(__name__)


def _to_seconds(millis: int) -> float | None:
    # Zero means no timeout.
    return millis / 1000 if millis > 0 else None


class RequestBodyStream(io.BytesIO):
    """Write-side stream for the request body.

    The buffered bytes are handed to the connection when the stream is
    closed; nothing is sent before that.
    """

    def __init__(self, on_close: Callable[[bytes], None]) -> None:
        super().__init__()
        self._on_close = on_close

    def close(self) -> None:
        if not self.closed:
            self._on_close(self.getvalue())
        super().close()


class ResponseStream(io.RawIOBase):
    """Read-side stream over an httpx response's raw (undecoded) bytes.

    A response whose body was already read (one built with ``content=`` or
    ``json=``, as MockTransport handlers usually do) is served from its
    decoded ``content`` instead. Closing the stream closes the response.
    """

    def __init__(self, response: httpx.Response) -> None:
        super().__init__()
        self._response = response
        self._chunks: Iterator[bytes]
        if response.is_stream_consumed:
            self._chunks = iter([response.content])
        else:
            self._chunks = response.iter_raw()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            try:
                self._response.close()
            finally:
                super().close()


class Connection:
    """Client-side view of a single request/response exchange.

    Usage:
        connection = Connection("https://api.example.com/v1/items/42")
        connection.set_request_method("GET")
        try:
            status = connection.get_response_code()
            stream = connection.get_input_stream()
        finally:
            connection.disconnect()
    """

    def __init__(
        self,
        url: str,
        transport: httpx.BaseTransport | None = None,
        follow_redirects: bool = True,
    ) -> None:
        """Parse ``url`` and prepare an unsent connection.

        Raises:
            httpx.InvalidURL: If the URL cannot be parsed.
            httpx.UnsupportedProtocol: If the scheme is not http or https.
        """
        self.url = httpx.URL(url)
        if self.url.scheme not in ("http", "https"):
            raise httpx.UnsupportedProtocol(
                f"Request URL has an unsupported protocol: {url!r}"
            )
        self.method = "GET"
        self.ssl_context: ssl.SSLContext | None = None
        self.connect_timeout = 0
        self.read_timeout = 0
        self.do_output = False
        self._transport = transport
        self._follow_redirects = follow_redirects
        self._headers = httpx.Headers()
        self._body: bytes | None = None
        self._client: httpx.Client | None = None
        self._response: httpx.Response | None = None

    @property
    def is_secure(self) -> bool:
        return self.url.scheme == "https"

    @property
    def request_headers(self) -> httpx.Headers:
        return self._headers

    @property
    def body(self) -> bytes | None:
        return self._body

    def set_request_property(self, name: str, value: str) -> None:
        """Set an outgoing header, replacing any value under the same name."""
        self._headers[name] = value

    def set_ssl_context(self, context: ssl.SSLContext) -> None:
        self.ssl_context = context

    def set_connect_timeout(self, millis: int) -> None:
        self.connect_timeout = millis

    def set_read_timeout(self, millis: int) -> None:
        self.read_timeout = millis

    def set_request_method(self, verb: str) -> None:
        # httpx sends any method token as given.
        self._check_unsent()
        self.method = verb

    def set_do_output(self, enabled: bool) -> None:
        self._check_unsent()
        self.do_output = enabled

    def get_output_stream(self) -> RequestBodyStream:
        self._check_unsent()
        if not self.do_output:
            raise httpx.RequestError("Connection is not marked for output")
        return RequestBodyStream(self._set_body)

    def connect(self) -> None:
        """Send the request if it has not been sent yet."""
        if self._response is not None:
            return

        timeout = httpx.Timeout(
            connect=_to_seconds(self.connect_timeout),
            read=_to_seconds(self.read_timeout),
            write=_to_seconds(self.read_timeout),
            pool=_to_seconds(self.connect_timeout),
        )
        # Default client headers (Accept, Accept-Encoding, User-Agent) are
        # not applied: the request is built directly, not via build_request.
        request = httpx.Request(
            self.method,
            self.url,
            headers=self._headers,
            content=self._body,
            extensions={"timeout": timeout.as_dict()},
        )

        client_kwargs = {"follow_redirects": self._follow_redirects}
        if self._transport is not None:
            # A custom transport owns its TLS configuration.
            if self.ssl_context is not None:
                logger.debug("Custom transport in use; SSL context not applied")
            client_kwargs["transport"] = self._transport
        elif self.ssl_context is not None:
            client_kwargs["verify"] = self.ssl_context
        self._client = httpx.Client(**client_kwargs)

        logger.debug("%s %s", self.method, self.url)
        self._response = self._client.send(request, stream=True)
        logger.debug("%s %s -> %d", self.method, self.url, self._response.status_code)

    def get_response_code(self) -> int:
        self.connect()
        return self._response.status_code

    def get_header_fields(self) -> list[tuple[str, str]]:
        """Response headers as sent by the server, original case, in order."""
        self.connect()
        encoding = self._response.headers.encoding
        return [
            (name.decode(encoding), value.decode(encoding))
            for name, value in self._response.headers.raw
        ]

    def get_content_encoding(self) -> str | None:
        self.connect()
        if self._response.is_stream_consumed:
            # Body already read and decoded by httpx.
            return None
        return self._response.headers.get("content-encoding")

    def get_input_stream(self) -> ResponseStream:
        self.connect()
        return ResponseStream(self._response)

    def get_error_stream(self) -> ResponseStream:
        return self.get_input_stream()

    def disconnect(self) -> None:
        """Release the response and the underlying client. Safe to call twice."""
        response, client = self._response, self._client
        try:
            if response is not None:
                response.close()
        finally:
            if client is not None:
                client.close()

    def _set_body(self, data: bytes) -> None:
        self._body = data

    def _check_unsent(self) -> None:
        if self._response is not None:
            raise httpx.RequestError("Connection has already been sent")
