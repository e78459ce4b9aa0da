"""
Response model, content negotiation and wire encoding.

Bodiless responses are written as a bare status line. Text responses carry
``Content-Type: text/plain`` and are gzip-compressed when the client lists
the ``gzip`` token in Accept-Encoding; file responses are always sent as-is.
"""

import gzip
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

REASON_PHRASES: Dict[int, str] = {
    200: "OK",
    201: "Created",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    408: "Request Timeout",
    413: "Payload Too Large",
    431: "Request Header Fields Too Large",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"
GZIP = "gzip"


@dataclass
class Response:
    """An HTTP/1.1 response, built once and written once."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def reason_phrase(self) -> str:
        return REASON_PHRASES.get(self.status_code, "Unknown")

    def to_bytes(self) -> bytes:
        """Serialize the response into HTTP/1.1 wire format bytes."""
        lines = [f"HTTP/1.1 {self.status_code} {self.reason_phrase}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        head = "\r\n".join(lines).encode("latin-1") + b"\r\n\r\n"
        return head + self.body


def accepts_gzip(accept_encoding: Optional[str]) -> bool:
    """Return True if the Accept-Encoding value lists the gzip token.

    The value is a comma-separated list. A ``q`` weight of zero, or one
    that is not a number, refuses the coding. No encoding other than gzip
    is ever recognised.
    """
    if not accept_encoding:
        return False
    for entry in accept_encoding.split(","):
        coding, *params = entry.split(";")
        if coding.strip().lower() != GZIP:
            continue
        if all(_weight(param) for param in params):
            return True
    return False


def _weight(param: str) -> bool:
    """False if ``param`` is a ``q`` weight that refuses the coding."""
    name, _, value = param.partition("=")
    if name.strip().lower() != "q":
        return True
    try:
        return float(value.strip()) > 0
    except ValueError:
        return False


def empty_response(status_code: int) -> Response:
    return Response(status_code)


def text_response(body: Union[str, bytes], gzip_accepted: bool = False) -> Response:
    """Build a 200 text/plain response, compressing the body if negotiated.

    Content-Length is always the length of the bytes put on the wire.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = {"Content-Type": TEXT_PLAIN}
    if gzip_accepted:
        body = gzip.compress(body)
        headers["Content-Encoding"] = GZIP
    headers["Content-Length"] = str(len(body))
    return Response(200, headers, body)


def file_response(data: bytes) -> Response:
    # file bodies are never content-encoded
    return Response(
        200,
        {"Content-Type": OCTET_STREAM, "Content-Length": str(len(data))},
        data,
    )
