"""HttpClient - executes one HttpRequest and maps the outcome.

The pipeline for ``execute``:

    injectors -> build connection -> write body -> read status
        200-206: read body, deserialize, return HttpResponse
        other:   read error body, raise HttpError

The connection is always disconnected, whichever way ``execute`` exits.
"""

from __future__ import annotations

import logging
import ssl
from threading import Lock
from typing import Any, Callable

import httpx

from sdk_http.connection import Connection
from sdk_http.environment import Environment, StaticEnvironment
from sdk_http.errors import HttpError, SecurityConfigurationError, SerializationError
from sdk_http.headers import USER_AGENT, Headers
from sdk_http.models import (
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    ClientConfig,
    HttpRequest,
    HttpResponse,
)
from sdk_http.serializers import Deserializer, JsonSerializer, Serializer
from sdk_http.streams import is_gzip, read_stream, write_body
from sdk_http.tls import try_create_tls_context
from sdk_http.verbs import set_request_verb

logger = logging.getLogger(__name__)

Injector = Callable[[HttpRequest], None]
ConnectionFactory = Callable[[str], Any]

HTTP_OK = 200
HTTP_PARTIAL = 206


def is_success(status_code: int) -> bool:
    """True for the 200-206 success band (OK through Partial Content)."""
    return HTTP_OK <= status_code <= HTTP_PARTIAL


class HttpClient:
    """Base client for generated API SDKs.

    Usage:
        client = HttpClient(StaticEnvironment("https://api.example.com"),
                            serializer=JsonSerializer(),
                            deserializer=JsonSerializer())
        client.add_injector(lambda request: request.header("Authorization", token))
        response = client.execute(HttpRequest(verb="GET", path="/v1/items/42",
                                              response_type=Item))

    Configuration properties may be changed at any time, but not while
    another thread is executing requests. ``add_injector`` is safe to call
    concurrently.
    """

    def __init__(
        self,
        environment: Environment,
        serializer: Serializer | None = None,
        deserializer: Deserializer | None = None,
        transport: httpx.BaseTransport | None = None,
        connection_factory: ConnectionFactory | None = None,
        follow_redirects: bool = True,
    ) -> None:
        """Create a client.

        Args:
            environment: Supplies the base URL for every request path.
            serializer: Turns non-string request bodies into text.
            deserializer: Turns successful response text into typed values.
            transport: httpx transport for the default connection factory
                (e.g. httpx.MockTransport in tests). A custom transport
                owns its TLS configuration; ``ssl_context`` is not applied.
            connection_factory: Builds a connection from an absolute URL.
                Defaults to an httpx-backed Connection.
            follow_redirects: Let the default connection follow 3xx responses.
        """
        self._environment = environment
        self._serializer = serializer
        self._deserializer = deserializer
        self._transport = transport
        self._follow_redirects = follow_redirects
        self._connection_factory = connection_factory or self._default_connection

        self._connect_timeout = DEFAULT_TIMEOUT_MS
        self._read_timeout = DEFAULT_TIMEOUT_MS
        self._user_agent = DEFAULT_USER_AGENT
        self._ssl_context: ssl.SSLContext | None = try_create_tls_context()

        self._injectors: list[Injector] = []
        self._injectors_lock = Lock()
        self.add_injector(self._inject_standard_headers)

        logger.debug("initialized HTTP client for %r", environment)

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> HttpClient:
        """Build a client from a ClientConfig.

        Extra keyword arguments are passed to the constructor.
        """
        client = cls(
            StaticEnvironment(config.base_url),
            follow_redirects=config.follow_redirects,
            **kwargs,
        )
        client.connect_timeout = config.connect_timeout_ms
        client.read_timeout = config.read_timeout_ms
        client.user_agent = config.user_agent
        if not config.verify_tls or config.ca_bundle:
            client.ssl_context = try_create_tls_context(
                verify=config.verify_tls, ca_bundle=config.ca_bundle
            )
        if config.default_headers:
            defaults = dict(config.default_headers)

            def inject_default_headers(request: HttpRequest) -> None:
                for name, value in defaults.items():
                    request.headers.header_if_not_present(name, value)

            client.add_injector(inject_default_headers)
        return client

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def connect_timeout(self) -> int:
        """Connect timeout in milliseconds (0 disables it)."""
        return self._connect_timeout

    @connect_timeout.setter
    def connect_timeout(self, millis: int) -> None:
        self._connect_timeout = millis

    @property
    def read_timeout(self) -> int:
        """Read timeout in milliseconds (0 disables it)."""
        return self._read_timeout

    @read_timeout.setter
    def read_timeout(self, millis: int) -> None:
        self._read_timeout = millis

    @property
    def ssl_context(self) -> ssl.SSLContext | None:
        return self._ssl_context

    @ssl_context.setter
    def ssl_context(self, context: ssl.SSLContext | None) -> None:
        self._ssl_context = context

    @property
    def user_agent(self) -> str:
        return self._user_agent

    @user_agent.setter
    def user_agent(self, user_agent: str) -> None:
        self._user_agent = user_agent

    @property
    def injectors(self) -> list[Injector]:
        """Snapshot of the registered injectors, in execution order."""
        with self._injectors_lock:
            return list(self._injectors)

    def add_injector(self, injector: Injector | None) -> None:
        """Append an injector. None is ignored."""
        if injector is None:
            return
        with self._injectors_lock:
            self._injectors.append(injector)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(self, request: HttpRequest) -> HttpResponse[Any]:
        """Execute ``request`` and return its response.

        Raises:
            HttpError: If the status code is outside 200-206.
            SecurityConfigurationError: If the URL needs TLS and no SSL
                context is configured.
            httpx.HTTPError / OSError: On connection or stream failures.
            Exception: Whatever an injector, serializer or deserializer raises.
        """
        for injector in self.injectors:
            injector(request)

        connection = None
        try:
            connection = self._get_connection(request)
            if request.body is not None:
                write_body(connection, self._serialize_body(request))
            return self._parse_response(connection, request)
        finally:
            if connection is not None:
                connection.disconnect()

    def _default_connection(self, url: str) -> Connection:
        return Connection(
            url,
            transport=self._transport,
            follow_redirects=self._follow_redirects,
        )

    def _get_connection(self, request: HttpRequest) -> Any:
        connection = self._connection_factory(self._environment.base_url() + request.path)
        try:
            self._apply_headers(request, connection)

            if connection.is_secure:
                if self._ssl_context is None:
                    raise SecurityConfigurationError(
                        "SSL context was not set or failed to initialize"
                    )
                connection.set_ssl_context(self._ssl_context)

            connection.set_read_timeout(self._read_timeout)
            connection.set_connect_timeout(self._connect_timeout)

            set_request_verb(connection, request.verb)
        except Exception:
            connection.disconnect()
            raise
        return connection

    @staticmethod
    def _apply_headers(request: HttpRequest, connection: Any) -> None:
        for name, value in request.headers.items():
            connection.set_request_property(name, value)

    def _serialize_body(self, request: HttpRequest) -> str:
        if isinstance(request.body, str):
            return request.body
        if self._serializer is None:
            raise SerializationError(
                f"No serializer configured for body of type {type(request.body).__name__}"
            )
        data = self._serializer.serialize(request)
        if isinstance(data, bytes):
            return data.decode("utf-8")
        if not isinstance(data, str):
            raise SerializationError(
                f"Serializer returned {type(data).__name__}, expected str or bytes"
            )
        return data

    def _parse_response(self, connection: Any, request: HttpRequest) -> HttpResponse[Any]:
        status_code = connection.get_response_code()
        headers = self._parse_response_headers(connection)
        gzip_encoded = is_gzip(connection.get_content_encoding())

        if not is_success(status_code):
            body = read_stream(connection.get_error_stream(), gzip_encoded)
            raise HttpError(body, status_code, headers)

        body = read_stream(connection.get_input_stream(), gzip_encoded)

        result = None
        if body:
            if request.passthrough:
                result = body
            else:
                result = self._deserialize_body(body, request.response_type, headers)

        return HttpResponse(status_code=status_code, headers=headers, result=result)

    def _deserialize_body(self, body: str, response_type: Any, headers: Headers) -> Any:
        if self._deserializer is None:
            raise SerializationError(
                f"No deserializer configured for response type {response_type!r}"
            )
        return self._deserializer.deserialize(body, response_type, headers)

    @staticmethod
    def _parse_response_headers(connection: Any) -> Headers:
        headers = Headers()
        for name, value in connection.get_header_fields():
            headers.header(name, value)
        return headers

    def _inject_standard_headers(self, request: HttpRequest) -> None:
        request.headers.header_if_not_present(USER_AGENT, self.user_agent)


class JsonHttpClient(HttpClient):
    """HttpClient wired with JsonSerializer for both directions."""

    def __init__(self, environment: Environment, **kwargs: Any) -> None:
        json_serializer = JsonSerializer()
        kwargs.setdefault("serializer", json_serializer)
        kwargs.setdefault("deserializer", json_serializer)
        super().__init__(environment, **kwargs)
