"""
HTTP request reader and parser built on httptools.

This module provides:
- An immutable Request model with case-insensitive header lookup
- An httptools callback parser that collects one request per connection
- An async reader that keeps pulling bytes until the declared body is complete
- Size and timeout limits that surface as typed errors
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlsplit

import httptools

BUFFER_SIZE = 1024  # bytes requested per read call
MAX_HEADER_SIZE = 8192  # bytes allowed before the header block must end
MAX_BODY_SIZE = 10485760  # 10MB limit
READ_TIMEOUT = 10.0  # seconds per read call


class HTTPParserError(Exception):
    """Base class for request-level errors. Maps to 400 unless overridden."""

    status_code = 400


class MalformedRequestError(HTTPParserError):
    """Request line or headers could not be parsed, or a required header is missing."""


class IncompleteBodyError(HTTPParserError):
    """The connection ended before Content-Length bytes of body arrived."""


class HeadersTooLargeError(HTTPParserError):
    status_code = 431


class BodyTooLargeError(HTTPParserError):
    status_code = 413


class RequestTimeoutError(HTTPParserError):
    status_code = 408


@dataclass(frozen=True)
class Request:
    """A parsed HTTP request.

    Attributes:
        method: Request method token, e.g. ``GET``
        path: Request target without its query string
        version: HTTP version string, e.g. ``1.1``
        headers: Header values keyed by lower-cased name
        body: Raw body bytes, exactly Content-Length long
    """

    method: str
    path: str
    version: str = "1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a header value by name, ignoring case."""
        return self.headers.get(name.lower(), default)

    @property
    def content_length(self) -> Optional[int]:
        """Declared body size, None if absent. Raises ValueError if not an integer."""
        value = self.header("Content-Length")
        if value is None:
            return None
        return int(value)


class HTTPParser:
    """Collects a single request from httptools.HttpRequestParser callbacks.

    Callbacks never raise; limits are checked by the caller between
    ``feed_data`` calls so that httptools does not wrap our exceptions.
    Anything after the first complete message is ignored since each
    connection carries exactly one request.
    """

    def __init__(self):
        self.parser = httptools.HttpRequestParser(self)
        self.headers: Dict[str, str] = {}
        self.body = bytearray()
        self.method: Optional[str] = None
        self.version = "1.1"
        self._url = b""
        self.headers_complete = False
        self.complete = False

    def on_url(self, url: bytes) -> None:
        # the target may arrive in several fragments
        if not self.headers_complete:
            self._url += url

    def on_header(self, name: bytes, value: bytes) -> None:
        if self.headers_complete:
            return
        # last write wins on duplicate names
        self.headers[name.decode("utf-8", errors="replace").lower()] = value.decode(
            "utf-8", errors="replace"
        )

    def on_headers_complete(self) -> None:
        if self.headers_complete:
            return
        self.method = self.parser.get_method().decode("ascii", errors="replace")
        self.version = self.parser.get_http_version()
        self.headers_complete = True

    def on_body(self, body: bytes) -> None:
        if not self.complete:
            self.body += body

    def on_message_complete(self) -> None:
        self.complete = True

    @property
    def declared_length(self) -> Optional[int]:
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            raise MalformedRequestError(f"Invalid Content-Length: {value!r}")

    def feed_data(self, data: bytes) -> None:
        """Feed raw request bytes to the parser.

        Raises:
            MalformedRequestError: If httptools rejects the data
        """
        if self.complete:
            return
        try:
            self.parser.feed_data(data)
        except httptools.HttpParserUpgrade:
            # upgrades are never honoured; the request itself is still served
            if not self.complete:
                raise MalformedRequestError("Upgrade requested before the request completed")
        except httptools.HttpParserError as e:
            raise MalformedRequestError(f"Parser error: {e}") from e

    def check_limits(self, received: int, header_limit: int, body_limit: int) -> None:
        """Raise if the request grew past the configured limits.

        Args:
            received: Total bytes fed so far
            header_limit: Maximum size of the header block
            body_limit: Maximum body size

        Raises:
            HeadersTooLargeError: Header block larger than ``header_limit``
            BodyTooLargeError: Declared or received body larger than ``body_limit``
        """
        if not self.headers_complete:
            # httptools only reports a header once its value is complete
            if received > header_limit:
                raise HeadersTooLargeError("Request headers too large")
            return
        declared = self.declared_length
        if declared is not None and declared > body_limit:
            raise BodyTooLargeError(f"Declared body of {declared} bytes exceeds limit")
        if len(self.body) > body_limit:
            raise BodyTooLargeError("Request body too large")

    def finish(self) -> Request:
        """Build the Request once parsing is complete.

        Raises:
            IncompleteBodyError: Headers were read but the body fell short
            MalformedRequestError: The header block never finished
        """
        if not self.complete:
            if self.headers_complete:
                raise IncompleteBodyError(
                    f"Expected {self.declared_length} body bytes, got {len(self.body)}"
                )
            raise MalformedRequestError("Incomplete request headers")

        target = self._url.decode("utf-8", errors="replace")
        return Request(
            method=self.method or "",
            path=urlsplit(target).path or target,
            version=self.version,
            headers=dict(self.headers),
            body=bytes(self.body),
        )


def parse_request(data: bytes) -> Request:
    """Parse a complete request held in memory."""
    parser = HTTPParser()
    parser.feed_data(data)
    return parser.finish()


async def read_request(
    reader: asyncio.StreamReader,
    *,
    read_timeout: float = READ_TIMEOUT,
    chunk_size: int = BUFFER_SIZE,
    header_limit: int = MAX_HEADER_SIZE,
    body_limit: int = MAX_BODY_SIZE,
) -> Optional[Request]:
    """Read one request off a connection.

    Reads ``chunk_size`` bytes at a time until the parser has seen the whole
    message, so bodies are collected byte-exactly regardless of how the
    client segments them.

    Args:
        reader: StreamReader for the accepted connection
        read_timeout: Seconds to wait for each read
        chunk_size: Bytes requested per read call
        header_limit: Maximum size of the header block
        body_limit: Maximum body size

    Returns:
        The parsed Request, or None if the client closed without sending anything

    Raises:
        HTTPParserError: Any of its subclasses for malformed, truncated,
            oversized or timed-out requests
    """
    parser = HTTPParser()
    received = 0

    while not parser.complete:
        try:
            chunk = await asyncio.wait_for(reader.read(chunk_size), timeout=read_timeout)
        except asyncio.TimeoutError:
            raise RequestTimeoutError(f"No data for {read_timeout}s")

        if not chunk:
            if received == 0:
                return None
            break

        received += len(chunk)
        parser.feed_data(chunk)
        parser.check_limits(received, header_limit, body_limit)

    return parser.finish()
