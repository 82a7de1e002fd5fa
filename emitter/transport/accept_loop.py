"""Main connection acceptance loop."""

import logging
import socket
import threading

from emitter.bootstrap.config import ServerConfig
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("emitter.transport.accept"), {}
)


def serve_forever(
    server_socket: socket.socket, config: ServerConfig, stop_event: threading.Event
) -> None:
    """Accept connections one at a time until ``stop_event`` is set."""
    try:
        while not stop_event.is_set():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if stop_event.is_set():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
                ACCEPT_LOGGER.debug(
                    "Client connection accepted",
                    extra={
                        "event": "client_accepted",
                        "client": f"{client_address[0]}:{client_address[1]}",
                    },
                )
            handle_client(client_socket, client_address, config)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info("Server stopped", extra={"event": "server_stopped"})
