"""Demo HTTP server sending every response through the response writer."""

import logging
import signal
import sys
import threading

from emitter.bootstrap.config import build_server_config, parse_cli_args
from emitter.bootstrap.logging_setup import configure_logging
from emitter.bootstrap.socket_factory import create_server_socket
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.transport.accept_loop import serve_forever

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("emitter.server"), {})


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, configure logging and serve until interrupted."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")
    config = build_server_config(args)
    stop_event = threading.Event()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal", extra={"event": "shutdown", "signal": signum}
        )
        stop_event.set()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    server_socket = create_server_socket(args.host, args.port)
    SERVER_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "directory": config.directory,
        },
    )
    serve_forever(server_socket, config, stop_event)


if __name__ == "__main__":
    main()
