"""Serving a single client connection."""

import logging
import socket
import time
from typing import Optional

from emitter.bootstrap.config import ServerConfig
from emitter.domain.correlation_id import CorrelationLoggerAdapter, correlation_scope
from emitter.domain.errors import EmitterError
from emitter.domain.http_types import HttpRequest
from emitter.handlers.system_handlers import bad_request
from emitter.pipeline.io import receive_request
from emitter.pipeline.router import route_request
from emitter.pipeline.writer import ResponseWriter
from emitter.transport.sinks import ChunkedSink, Sink, SocketSink

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("emitter.transport.worker"), {}
)


def _body_sink_opener(client_socket: socket.socket, writer: ResponseWriter):
    """Return the opener for the body channel matching the writer's framing."""
    chunked = writer.headers.get("Transfer-Encoding", "").lower() == "chunked"

    def open_body_sink() -> Sink:
        sink: Sink = SocketSink(client_socket, half_close=True)
        if chunked:
            sink = ChunkedSink(sink, writer.max_stalled_writes)
        return sink

    return open_body_sink


def send_response(
    client_socket: socket.socket,
    writer: ResponseWriter,
    method: Optional[str],
    correlation_id: str,
) -> int:
    """Add connection headers and send ``writer`` over the socket."""
    writer.headers["X-Request-ID"] = correlation_id
    writer.headers["Connection"] = "close"
    return writer.send(
        SocketSink(client_socket),
        _body_sink_opener(client_socket, writer),
        method=method,
    )


def _read_request(
    client_socket: socket.socket, config: ServerConfig, client_addr_str: str
) -> tuple[Optional[HttpRequest], Optional[ResponseWriter]]:
    """Return the parsed request, or an error writer when parsing failed."""
    try:
        request = receive_request(client_socket, config.max_header_bytes)
    except ValueError as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
        return None, bad_request()
    if request is None and WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Client disconnected before sending a request",
            extra={"event": "client_disconnected", "client": client_addr_str},
        )
    return request, None


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    config: ServerConfig,
) -> None:
    """Read one request, send its response, and close the connection."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    started_ns = time.monotonic_ns()
    client_socket.settimeout(config.socket_timeout)

    with correlation_scope() as correlation_id:
        try:
            request, writer = _read_request(client_socket, config, client_addr_str)
            if writer is None:
                if request is None:
                    return
                writer = route_request(request, config.directory, config.chunk_size)
            method = request.method if request is not None else None
            bytes_out = send_response(client_socket, writer, method, correlation_id)
            WORKER_LOGGER.info(
                "Request complete",
                extra={
                    "event": "request_complete",
                    "client": client_addr_str,
                    "method": method,
                    "route": request.path if request is not None else None,
                    "status_code": writer.status.code,
                    "bytes_out": bytes_out,
                    "duration_ms": (time.monotonic_ns() - started_ns) // 1_000_000,
                },
            )
        except EmitterError as error:
            WORKER_LOGGER.error(
                "Response emission failed",
                extra={
                    "event": "emission_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                },
            )
        except (ConnectionError, TimeoutError, OSError) as error:
            WORKER_LOGGER.error(
                "Error handling client connection",
                extra={
                    "event": "connection_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                },
            )
        except Exception as error:  # pylint: disable=broad-except
            WORKER_LOGGER.exception(
                "Unexpected error in worker",
                extra={
                    "event": "worker_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                },
            )
        finally:
            client_socket.close()
            WORKER_LOGGER.debug(
                "Socket closed",
                extra={"event": "socket_closed", "client": client_addr_str},
            )
