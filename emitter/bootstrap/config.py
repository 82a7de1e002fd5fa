"""Emitter configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


DEFAULT_CHUNK_SIZE = _env_int("EMITTER_CHUNK_SIZE", 65536)
DEFAULT_MAX_STALLED_WRITES = _env_int("EMITTER_MAX_STALLED_WRITES", 1000)
DEFAULT_HTTP_VERSION = _env_str("EMITTER_HTTP_VERSION", "1.1")
DEFAULT_MAX_HEADER_BYTES = _env_int("EMITTER_MAX_HEADER_BYTES", 16 * 1024)
DEFAULT_SOCKET_TIMEOUT = _env_int("EMITTER_SOCKET_TIMEOUT", 30)

DEFAULT_NEWLINE = "\n"
WIRE_NEWLINE = "\r\n"
HEADER_DELIMITER = b"\r\n\r\n"
FILES_ENDPOINT_PREFIX = "/files/"
ALLOWED_METHODS = {"GET", "HEAD"}

SERVER_HEADERS = {
    "Server": "emitter",
    "X-Content-Type-Options": "nosniff",
}


@dataclass
class ServerConfig:
    """Settings shared by the accept loop and connection handling."""

    directory: str
    socket_timeout: int = DEFAULT_SOCKET_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for the demo server."""
    parser = argparse.ArgumentParser(description="HTTP response emitter demo server")
    parser.add_argument("--directory", default=".")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=4221)
    default_log_level = os.getenv("EMITTER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("EMITTER_LOG_DESTINATION", "stdout")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=os.getenv("EMITTER_LOG_FORMAT", "json"),
        choices=["json", "text"],
        type=str.lower,
    )
    parser.add_argument(
        "--socket-timeout",
        type=_positive_int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds for reading a request",
    )
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help="Size in bytes of body buffers read from files",
    )
    return parser.parse_args(argv)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Create the runtime configuration from parsed CLI arguments."""
    return ServerConfig(
        directory=args.directory,
        socket_timeout=args.socket_timeout,
        chunk_size=args.chunk_size,
    )
