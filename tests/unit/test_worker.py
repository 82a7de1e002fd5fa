"""Unit tests for per-connection handling over a socket pair."""

import logging
import socket
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from emitter.bootstrap.config import ServerConfig
from emitter.domain.errors import SinkUnavailable
from emitter.pipeline.router import route_request
from emitter.transport.accept_loop import serve_forever
from emitter.transport.worker import handle_client
from tests.utils.http import parse_raw_response, read_until_closed

CLIENT_ADDRESS = ("127.0.0.1", 50000)


def exchange(request: bytes, config: ServerConfig) -> bytes:
    """Send ``request`` through handle_client and return everything written back."""
    client, server = socket.socketpair()
    try:
        client.sendall(request)
        handle_client(server, CLIENT_ADDRESS, config)
        return read_until_closed(client)
    finally:
        client.close()
        server.close()


@pytest.fixture(name="config")
def config_fixture(tmp_path: Path) -> ServerConfig:
    return ServerConfig(directory=str(tmp_path), socket_timeout=2, chunk_size=4)


def test_get_echo_sends_headers_and_body(config):
    raw = exchange(b"GET /echo/hello HTTP/1.1\r\nHost: x\r\n\r\n", config)
    response = parse_raw_response(raw)
    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.headers["content-length"] == "5"
    assert response.headers["connection"] == "close"
    assert response.headers["x-request-id"]
    assert response.body == b"hello"


def test_head_sends_headers_only(config):
    raw = exchange(b"HEAD /echo/hello HTTP/1.1\r\n\r\n", config)
    header_block, _, body = raw.partition(b"\r\n\r\n")
    assert header_block.startswith(b"HTTP/1.1 200 OK")
    assert b"Content-Length: 5" in header_block
    assert body == b""


def test_file_is_sent_with_chunked_framing(config, tmp_path: Path):
    (tmp_path / "data.txt").write_bytes(b"0123456789")
    response = parse_raw_response(
        exchange(b"GET /files/data.txt HTTP/1.1\r\n\r\n", config)
    )
    assert response.headers["transfer-encoding"] == "chunked"
    assert response.chunk_sizes == [4, 4, 2, 0]
    assert response.body == b"0123456789"


def test_redirect_sends_no_body(config):
    raw = exchange(b"GET /redirect/echo/x HTTP/1.1\r\n\r\n", config)
    header_block, _, body = raw.partition(b"\r\n\r\n")
    assert header_block.startswith(b"HTTP/1.1 302 Found")
    assert b"Location: /echo/x" in header_block
    assert body == b""


def test_malformed_request_gets_400(config):
    response = parse_raw_response(exchange(b"NONSENSE\r\n\r\n", config))
    assert response.status_line == "HTTP/1.1 400 Bad Request"


def test_disconnect_before_request_sends_nothing(config):
    client, server = socket.socketpair()
    try:
        client.shutdown(socket.SHUT_WR)
        handle_client(server, CLIENT_ADDRESS, config)
        assert client.recv(1024) == b""
    finally:
        client.close()
        server.close()


def test_emission_errors_are_logged_and_socket_closed(config, caplog):
    caplog.set_level(logging.ERROR, logger="emitter")
    with patch(
        "emitter.pipeline.writer.ResponseWriter.write_body",
        side_effect=SinkUnavailable("no sink"),
    ):
        raw = exchange(b"GET /echo/x HTTP/1.1\r\n\r\n", config)
    assert raw.startswith(b"HTTP/1.1 200 OK")
    errors = [
        record
        for record in caplog.records
        if getattr(record, "event", None) == "emission_error"
    ]
    assert errors
    assert errors[0].error_type == "SinkUnavailable"


def test_non_ascii_redirect_target_is_percent_encoded(config):
    raw = exchange(b"GET /redirect?to=/%E2%98%83 HTTP/1.1\r\n\r\n", config)
    header_block, _, body = raw.partition(b"\r\n\r\n")
    assert header_block.startswith(b"HTTP/1.1 302 Found")
    assert b"Location: /%E2%98%83" in header_block
    assert body == b""


def test_unexpected_errors_are_logged_and_socket_closed(config, caplog):
    caplog.set_level(logging.ERROR, logger="emitter")
    with patch(
        "emitter.transport.worker.route_request",
        side_effect=RuntimeError("handler bug"),
    ):
        raw = exchange(b"GET /echo/x HTTP/1.1\r\n\r\n", config)
    assert raw == b""
    errors = [
        record
        for record in caplog.records
        if getattr(record, "event", None) == "worker_error"
    ]
    assert errors
    assert errors[0].error_type == "RuntimeError"


def test_accept_loop_keeps_serving_after_handler_error(config):
    """A failing connection must not end the single-threaded accept loop."""

    def route(request, directory, chunk_size):
        if request.path == "/echo/boom":
            raise RuntimeError("handler bug")
        return route_request(request, directory, chunk_size)

    server_socket = socket.create_server(("127.0.0.1", 0))
    server_socket.settimeout(0.1)
    address = server_socket.getsockname()[:2]
    stop_event = threading.Event()

    with patch("emitter.transport.worker.route_request", side_effect=route):
        loop = threading.Thread(
            target=serve_forever, args=(server_socket, config, stop_event)
        )
        loop.start()
        try:
            with socket.create_connection(address, timeout=2) as client:
                client.sendall(b"GET /echo/boom HTTP/1.1\r\n\r\n")
                assert read_until_closed(client) == b""
            with socket.create_connection(address, timeout=2) as client:
                client.sendall(b"GET /echo/ok HTTP/1.1\r\n\r\n")
                response = parse_raw_response(read_until_closed(client))
        finally:
            stop_event.set()
            loop.join(timeout=5)

    assert response.body == b"ok"
    assert not loop.is_alive()
