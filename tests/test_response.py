"""Tests for response encoding and content negotiation."""

import gzip

import pytest

from minihttpd.core.response import (
    REASON_PHRASES,
    Response,
    accepts_gzip,
    empty_response,
    file_response,
    text_response,
)


def split(raw: bytes):
    head, body = raw.split(b"\r\n\r\n", 1)
    lines = head.decode("latin-1").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


@pytest.mark.parametrize(
    "value, expected",
    [
        ("gzip", True),
        ("invalid-encoding-1, gzip, invalid-encoding-2", True),
        ("deflate,gzip", True),
        ("GZIP", True),
        ("gzip;q=1.0, identity", True),
        ("invalid-encoding", False),
        ("x-gzip", False),
        ("gzipped", False),
        ("deflate, br", False),
        ("gzip;q=0", False),
        ("deflate, gzip;q=0", False),
        ("gzip; q=0.000", False),
        ("gzip;q=abc", False),
        ("gzip;q=0.5", True),
        ("gzip;q=0, deflate", False),
        ("", False),
        (None, False),
    ],
)
def test_accepts_gzip(value, expected):
    assert accepts_gzip(value) is expected


def test_empty_response_is_bare_status_line():
    assert empty_response(200).to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"
    assert empty_response(201).to_bytes() == b"HTTP/1.1 201 Created\r\n\r\n"
    assert empty_response(404).to_bytes() == b"HTTP/1.1 404 Not Found\r\n\r\n"
    assert empty_response(503).to_bytes() == b"HTTP/1.1 503 Service Unavailable\r\n\r\n"


def test_text_response_plain():
    status, headers, body = split(text_response("abc").to_bytes())
    assert status == "HTTP/1.1 200 OK"
    assert headers == {"Content-Type": "text/plain", "Content-Length": "3"}
    assert body == b"abc"


def test_text_response_length_is_in_bytes():
    response = text_response("ü✓")
    assert response.headers["Content-Length"] == str(len("ü✓".encode("utf-8")))
    assert response.body == "ü✓".encode("utf-8")


def test_text_response_gzip():
    status, headers, body = split(text_response("abc", gzip_accepted=True).to_bytes())
    assert status == "HTTP/1.1 200 OK"
    assert headers["Content-Type"] == "text/plain"
    assert headers["Content-Encoding"] == "gzip"
    assert headers["Content-Length"] == str(len(body))
    assert body[:2] == b"\x1f\x8b"
    assert gzip.decompress(body) == b"abc"


def test_text_response_header_order():
    response = text_response("abc", gzip_accepted=True)
    assert list(response.headers) == ["Content-Type", "Content-Encoding", "Content-Length"]


def test_file_response_is_never_encoded():
    data = b"\x00\x01binary\xff"
    status, headers, body = split(file_response(data).to_bytes())
    assert status == "HTTP/1.1 200 OK"
    assert headers == {"Content-Type": "application/octet-stream", "Content-Length": str(len(data))}
    assert body == data


def test_unknown_status_reason():
    assert Response(299).reason_phrase == "Unknown"
    assert REASON_PHRASES[400] == "Bad Request"
