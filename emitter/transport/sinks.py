"""Writable byte sinks and the short-write loop shared by header and body output."""

import logging
import socket
from contextlib import contextmanager
from typing import BinaryIO, Callable, Iterator, Optional, Protocol

from emitter.bootstrap.config import DEFAULT_MAX_STALLED_WRITES
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.domain.errors import SinkUnavailable, WriteFailure

SINK_LOGGER = CorrelationLoggerAdapter(logging.getLogger("emitter.transport.sink"), {})


class Sink(Protocol):
    """Destination for bytes that may accept fewer bytes than offered."""

    def write(self, data: bytes) -> Optional[int]:
        """Write some prefix of ``data`` and return how many bytes were taken."""

    def close(self) -> None:
        """Release the sink."""


def write_fully(
    sink: Sink, data: bytes, max_stalled_writes: int = DEFAULT_MAX_STALLED_WRITES
) -> int:
    """Write all of ``data`` to ``sink``, retrying the unwritten tail."""
    view = memoryview(data)
    length = len(view)
    written = 0
    stalled = 0
    while written < length:
        try:
            result = sink.write(view[written:])
        except OSError as error:
            raise WriteFailure(
                "Unable to write output", written, getattr(error, "errno", None)
            ) from error
        if result is None or result < 0:
            raise WriteFailure("Unable to write output", written)
        if result == 0:
            stalled += 1
            if stalled > max_stalled_writes:
                raise WriteFailure("Output stalled", written)
            continue
        stalled = 0
        written += result
        if written < length and SINK_LOGGER.logger.isEnabledFor(logging.DEBUG):
            SINK_LOGGER.debug(
                "Short write",
                extra={
                    "event": "short_write",
                    "bytes_out": result,
                    "remaining": length - written,
                },
            )
    return written


@contextmanager
def acquire_sink(opener: Callable[[], Optional[Sink]]) -> Iterator[Sink]:
    """Open a sink with ``opener`` and close it exactly once on exit."""
    try:
        sink = opener()
    except Exception as error:  # pylint: disable=broad-except
        SINK_LOGGER.warning(
            "Unable to open output",
            extra={"event": "sink_unavailable", "error_type": type(error).__name__},
        )
        raise SinkUnavailable("Unable to open output") from error
    if sink is None:
        SINK_LOGGER.warning(
            "Unable to open output", extra={"event": "sink_unavailable"}
        )
        raise SinkUnavailable("Unable to open output")
    try:
        yield sink
    finally:
        sink.close()


class SocketSink:
    """Sink over a connected socket; ``send`` may accept a partial buffer."""

    def __init__(self, client_socket: socket.socket, *, half_close: bool = False):
        self._socket = client_socket
        self._half_close = half_close

    def write(self, data: bytes) -> Optional[int]:
        return self._socket.send(data)

    def close(self) -> None:
        """Shut down the write side when configured; the socket stays open."""
        if not self._half_close:
            return
        try:
            self._socket.shutdown(socket.SHUT_WR)
        except OSError:
            # Peer already gone; nothing left to signal.
            pass


class StreamSink:
    """Sink over a binary file object."""

    def __init__(self, stream: BinaryIO, *, close_stream: bool = True):
        self._stream = stream
        self._close_stream = close_stream

    def write(self, data: bytes) -> Optional[int]:
        return self._stream.write(data)

    def close(self) -> None:
        try:
            self._stream.flush()
        finally:
            if self._close_stream:
                self._stream.close()


class ChunkedSink:
    """Frames every write as an HTTP/1.1 chunk on an inner sink.

    Each frame is flushed completely before ``write`` returns, so callers
    always see the whole buffer accepted. Closing writes the last-chunk
    marker and then closes the inner sink.
    """

    def __init__(
        self,
        inner: Sink,
        max_stalled_writes: int = DEFAULT_MAX_STALLED_WRITES,
    ) -> None:
        self._inner = inner
        self._max_stalled_writes = max_stalled_writes
        self._closed = False

    def write(self, data: bytes) -> Optional[int]:
        if not data:
            return 0
        frame = f"{len(data):X}\r\n".encode() + bytes(data) + b"\r\n"
        write_fully(self._inner, frame, self._max_stalled_writes)
        return len(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            write_fully(self._inner, b"0\r\n\r\n", self._max_stalled_writes)
        finally:
            self._inner.close()
