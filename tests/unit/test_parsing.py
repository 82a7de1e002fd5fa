"""Unit tests covering HTTP request parsing behavior."""

import pytest

from emitter.domain.http_types import HttpRequest
from emitter.pipeline.io import (
    RequestHeaderTooLarge,
    parse_headers,
    parse_request_line,
    receive_request,
)


class FakeSocket:
    """Minimal socket stub that returns predefined chunks sequentially."""

    def __init__(self, chunks):
        self._chunks = [
            chunk if isinstance(chunk, bytes) else chunk.encode() for chunk in chunks
        ]

    def recv(self, _):
        if self._chunks:
            return self._chunks.pop(0)
        return b""


def test_parse_headers_normalizes_keys_and_skips_invalid_lines():
    """Header parsing should lowercase keys and ignore malformed lines."""
    headers = parse_headers(
        [
            "Content-Length: 10",
            "User-Agent: ExampleClient",
            "x-custom:value",
            "invalid-line",
            ": no-name",
        ]
    )
    assert headers == {
        "content-length": "10",
        "user-agent": "ExampleClient",
        "x-custom": "value",
    }


def test_parse_request_line_splits_path_and_query():
    method, path, query, version = parse_request_line(
        "GET /redirect?to=%2Fhome&x=1 HTTP/1.1"
    )
    assert method == "GET"
    assert path == "/redirect"
    assert query == {"to": "/home", "x": "1"}
    assert version == "HTTP/1.1"


def test_parse_request_line_decodes_percent_escapes():
    _, path, _, _ = parse_request_line("HEAD /echo/a%20b HTTP/1.0")
    assert path == "/echo/a b"


@pytest.mark.parametrize(
    "line",
    [
        "GET /",
        "get / HTTP/1.1",
        "GET / FTP/1.0",
        "GET relative HTTP/1.1",
    ],
)
def test_parse_request_line_rejects_malformed_lines(line):
    with pytest.raises(ValueError):
        parse_request_line(line)


def test_receive_request_handles_partial_reads():
    """Receiving a request must tolerate partial socket reads."""
    request_bytes = (
        b"GET /echo/hello HTTP/1.1\r\n" b"Host: localhost\r\n" b"Accept: */*\r\n\r\n"
    )
    client = FakeSocket(
        [request_bytes[:10], request_bytes[10:30], request_bytes[30:]]
    )
    request = receive_request(client)
    assert isinstance(request, HttpRequest)
    assert request.method == "GET"
    assert request.path == "/echo/hello"
    assert request.headers == {"host": "localhost", "accept": "*/*"}


def test_receive_request_returns_none_on_early_disconnect():
    assert receive_request(FakeSocket([b"GET / HTTP/1.1\r\n"])) is None


def test_receive_request_enforces_header_limit():
    oversized = b"GET / HTTP/1.1\r\nX-Big: " + b"a" * 200
    with pytest.raises(RequestHeaderTooLarge):
        receive_request(FakeSocket([oversized, b"\r\n\r\n"]), max_header_bytes=64)
