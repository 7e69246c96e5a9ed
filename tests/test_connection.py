"""Tests for sdk_http.connection.Connection over httpx.MockTransport.

Tests cover:
- URL validation
- Headers sent exactly as set, without httpx default headers
- Timeouts converted from milliseconds
- Body handed over on stream close
- Raw (undecoded) response stream and disconnect
- Pre-read (content=) responses served already decoded
"""

import gzip
import logging
import ssl

import httpx
import pytest

from sdk_http.connection import Connection
from tests.connection_fixtures import make_response


def _capture(response: httpx.Response | None = None):
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return response if response is not None else make_response(200, b"ok")

    return captured, httpx.MockTransport(handler)


class TestConnectionUrl:
    def test_invalid_url_fails_fast(self) -> None:
        with pytest.raises(httpx.InvalidURL):
            Connection("http://api.example.com:notaport/path")

    def test_missing_scheme_is_rejected(self) -> None:
        with pytest.raises(httpx.UnsupportedProtocol):
            Connection("/v1/items")

    def test_is_secure(self) -> None:
        assert Connection("https://api.example.com/").is_secure
        assert not Connection("http://api.example.com/").is_secure


class TestConnectionRequest:
    """What goes on the wire."""

    def test_headers_sent_as_given(self) -> None:
        captured, transport = _capture()
        connection = Connection("http://api.example.com/items", transport=transport)
        connection.set_request_property("X-Custom-Header", "value")
        connection.set_request_property("User-Agent", "sdk/1.0")
        try:
            assert connection.get_response_code() == 200
        finally:
            connection.disconnect()

        request = captured[0]
        raw_names = [name for name, _ in request.headers.raw]
        assert b"X-Custom-Header" in raw_names
        assert request.headers["user-agent"] == "sdk/1.0"
        assert "accept-encoding" not in request.headers
        assert "accept" not in request.headers

    def test_later_property_overwrites_earlier(self) -> None:
        captured, transport = _capture()
        connection = Connection("http://api.example.com/", transport=transport)
        connection.set_request_property("x-token", "old")
        connection.set_request_property("X-Token", "new")
        try:
            connection.get_response_code()
        finally:
            connection.disconnect()

        assert captured[0].headers.get_list("x-token") == ["new"]

    def test_timeouts_in_seconds(self) -> None:
        captured, transport = _capture()
        connection = Connection("http://api.example.com/", transport=transport)
        connection.set_connect_timeout(1500)
        connection.set_read_timeout(30000)
        try:
            connection.get_response_code()
        finally:
            connection.disconnect()

        timeout = captured[0].extensions["timeout"]
        assert timeout["connect"] == 1.5
        assert timeout["read"] == 30.0

    def test_zero_timeout_means_none(self) -> None:
        captured, transport = _capture()
        connection = Connection("http://api.example.com/", transport=transport)
        try:
            connection.get_response_code()
        finally:
            connection.disconnect()

        assert captured[0].extensions["timeout"]["read"] is None

    def test_body_and_custom_method(self) -> None:
        captured, transport = _capture()
        connection = Connection("http://api.example.com/", transport=transport)
        connection.set_request_method("PATCH")
        connection.set_do_output(True)
        stream = connection.get_output_stream()
        stream.write(b'{"a":1}')
        stream.close()
        try:
            connection.get_response_code()
        finally:
            connection.disconnect()

        assert captured[0].method == "PATCH"
        assert captured[0].content == b'{"a":1}'

    def test_output_requires_do_output(self) -> None:
        connection = Connection("http://api.example.com/")
        with pytest.raises(httpx.RequestError):
            connection.get_output_stream()


class TestConnectionResponse:
    def test_raw_stream_is_not_decoded(self) -> None:
        compressed = gzip.compress(b"payload")
        _, transport = _capture(
            make_response(200, compressed, {"Content-Encoding": "gzip"})
        )
        connection = Connection("http://api.example.com/", transport=transport)
        try:
            assert connection.get_content_encoding() == "gzip"
            stream = connection.get_input_stream()
            assert stream.read() == compressed
            stream.close()
        finally:
            connection.disconnect()

    def test_header_fields_keep_server_case(self) -> None:
        _, transport = _capture(make_response(200, b"", {"X-Request-Id": "abc"}))
        connection = Connection("http://api.example.com/", transport=transport)
        try:
            fields = connection.get_header_fields()
        finally:
            connection.disconnect()

        assert ("X-Request-Id", "abc") in fields

    def test_request_is_sent_once(self) -> None:
        captured, transport = _capture()
        connection = Connection("http://api.example.com/", transport=transport)
        try:
            connection.get_response_code()
            connection.get_header_fields()
            connection.get_input_stream().close()
        finally:
            connection.disconnect()

        assert len(captured) == 1

    def test_disconnect_closes_response(self) -> None:
        _, transport = _capture()
        connection = Connection("http://api.example.com/", transport=transport)
        connection.get_response_code()
        connection.disconnect()
        connection.disconnect()

        assert connection._response.is_closed

    def test_pre_read_response_served_from_content(self) -> None:
        _, transport = _capture(
            httpx.Response(
                200,
                content=gzip.compress(b"payload"),
                headers={"Content-Encoding": "gzip"},
            )
        )
        connection = Connection("http://api.example.com/", transport=transport)
        try:
            assert connection.get_content_encoding() is None
            stream = connection.get_input_stream()
            assert stream.read() == b"payload"
            stream.close()
            assert ("Content-Encoding", "gzip") in connection.get_header_fields()
        finally:
            connection.disconnect()

    def test_custom_transport_ignores_ssl_context(self, caplog: pytest.LogCaptureFixture) -> None:
        _, transport = _capture()
        connection = Connection("https://api.example.com/", transport=transport)
        connection.set_ssl_context(ssl.create_default_context())
        try:
            with caplog.at_level(logging.DEBUG, logger="sdk_http.connection"):
                assert connection.get_response_code() == 200
        finally:
            connection.disconnect()

        assert "SSL context not applied" in caplog.text
