"""Reading requests off a client socket."""

import logging
import socket
import urllib.parse
from typing import Optional, Tuple

from emitter.bootstrap.config import DEFAULT_MAX_HEADER_BYTES, HEADER_DELIMITER
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.domain.http_types import HttpRequest

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("emitter.pipeline.io"), {})


class RequestHeaderTooLarge(ValueError):
    """Raised when the request header block exceeds the configured limit."""


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        name, separator, value = line.partition(":")
        if not separator or not name.strip():
            continue
        parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(
    request_line: str,
) -> Tuple[str, str, dict[str, str], str]:
    """Split the request line into method, decoded path, query and version."""
    try:
        method, target, version = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if not method.isalpha() or not method.isupper():
        raise ValueError("Invalid request method")
    if not version.startswith("HTTP/"):
        raise ValueError("Invalid HTTP version")

    parsed_target = urllib.parse.urlsplit(target)
    path = urllib.parse.unquote(parsed_target.path)
    if not path.startswith("/"):
        raise ValueError("Invalid request target")
    query = dict(urllib.parse.parse_qsl(parsed_target.query))
    return method, path, query, version


def receive_request(
    client_socket: socket.socket, max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES
) -> Optional[HttpRequest]:
    """Read until the end of the header block and parse it.

    Returns None when the peer closes before a full header block arrives.
    """
    buffer = b""
    while HEADER_DELIMITER not in buffer:
        if len(buffer) > max_header_bytes:
            raise RequestHeaderTooLarge("Request header block too large")
        chunk = client_socket.recv(4096)
        if not chunk:
            return None
        buffer += chunk

    header_block, _ = buffer.split(HEADER_DELIMITER, 1)
    if len(header_block) > max_header_bytes:
        raise RequestHeaderTooLarge("Request header block too large")
    header_lines = header_block.decode("latin-1").split("\r\n")
    method, path, query, version = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])
    IO_LOGGER.debug(
        "Parsed request",
        extra={"event": "request_parsed", "method": method, "path": path},
    )
    return HttpRequest(method, path, headers, query, version)
