"""Request body writing and response body reading.

Both directions always close the streams they touch. Close failures are
logged and discarded so they never mask the error (or result) of the
read/write itself.
"""

from __future__ import annotations

import gzip
import logging
from typing import IO, Any

logger = logging.getLogger(__name__)

GZIP_ENCODING = "gzip"
CHUNK_SIZE = 8192


def is_gzip(content_encoding: str | None) -> bool:
    return content_encoding is not None and content_encoding.strip().lower() == GZIP_ENCODING


def write_body(connection: Any, data: str) -> None:
    """Write ``data`` as UTF-8 to the connection's output stream."""
    connection.set_do_output(True)
    stream = connection.get_output_stream()
    try:
        stream.write(data.encode("utf-8"))
        stream.flush()
    finally:
        _close_quietly(stream)


def read_stream(stream: IO[bytes] | None, gzip_encoded: bool) -> str | None:
    """Read ``stream`` to completion and decode it as UTF-8.

    Args:
        stream: Raw response byte stream, or None when there is no body.
        gzip_encoded: Wrap the stream in a gzip decompressor first.

    Returns:
        The decoded text, or None if ``stream`` is None.
    """
    if stream is None:
        return None

    source: IO[bytes] = stream
    try:
        if gzip_encoded:
            source = gzip.GzipFile(fileobj=stream, mode="rb")
        chunks = []
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks).decode("utf-8", errors="replace")
    finally:
        # GzipFile does not close a fileobj it was handed.
        if source is not stream:
            _close_quietly(source)
        _close_quietly(stream)


def _close_quietly(stream: Any) -> None:
    try:
        stream.close()
    except Exception as e:
        logger.debug("ignoring error while closing stream: %s", e)
