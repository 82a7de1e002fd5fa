"""Response emission: status line and headers, then the provider's body."""

import logging
from typing import Callable, Optional

from emitter.bootstrap.config import (
    DEFAULT_HTTP_VERSION,
    DEFAULT_MAX_STALLED_WRITES,
    DEFAULT_NEWLINE,
)
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.domain.errors import WriteFailure
from emitter.domain.headers import HeaderSet, HeaderSource
from emitter.domain.providers import OutputProvider
from emitter.domain.status import OK, Status
from emitter.transport.sinks import Sink, acquire_sink, write_fully

WRITER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("emitter.writer"), {})


class ResponseWriter:
    """Writes one response: status, headers, and a body pulled from a provider.

    A writer is consumed by a single call to ``send``; it owns its provider
    and never restarts it.
    """

    def __init__(
        self,
        provider: OutputProvider,
        status: int = OK,
        headers: Optional[HeaderSource] = None,
        *,
        http_version: str = DEFAULT_HTTP_VERSION,
        newline: str = DEFAULT_NEWLINE,
        max_stalled_writes: int = DEFAULT_MAX_STALLED_WRITES,
    ) -> None:
        # pylint: disable=too-many-arguments
        self.provider = provider
        self.status = Status(status)
        self.headers = HeaderSet(headers)
        self.http_version = http_version
        self.newline = newline
        self.max_stalled_writes = max_stalled_writes
        self._sent = False

    def header_block(self) -> bytes:
        """Render the status line, header lines and the terminating blank line."""
        lines = [self.status.status_line(self.http_version), *self.headers.lines()]
        text = "".join(line + self.newline for line in lines) + self.newline
        return text.encode("latin-1")

    def write_headers(self, sink: Sink) -> None:
        """Write the header block to ``sink``."""
        block = self.header_block()
        try:
            write_fully(sink, block, self.max_stalled_writes)
        except WriteFailure as failure:
            WRITER_LOGGER.warning(
                "Header write failed",
                extra={
                    "event": "write_failed",
                    "status_code": self.status.code,
                    "bytes_out": failure.written,
                    "errno": failure.errno,
                },
            )
            raise
        if WRITER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WRITER_LOGGER.debug(
                "Headers written",
                extra={
                    "event": "headers_written",
                    "status_code": self.status.code,
                    "bytes_out": len(block),
                },
            )

    def write_body(self, sink: Sink) -> int:
        """Pull buffers from the provider until end-of-stream and write each fully."""
        total = 0
        chunks = 0
        while True:
            buffer = self.provider.next_chunk()
            if not buffer:
                break
            try:
                total += write_fully(sink, buffer, self.max_stalled_writes)
            except WriteFailure as failure:
                WRITER_LOGGER.warning(
                    "Body write failed",
                    extra={
                        "event": "write_failed",
                        "status_code": self.status.code,
                        "bytes_out": total + failure.written,
                        "errno": failure.errno,
                    },
                )
                raise
            chunks += 1
        WRITER_LOGGER.debug(
            "Body written",
            extra={"event": "body_written", "bytes_out": total, "chunks": chunks},
        )
        return total

    def body_allowed(self, method: Optional[str]) -> bool:
        """Return False for HEAD requests and redirects, which carry no body."""
        return self._skip_reason(method) is None

    def _skip_reason(self, method: Optional[str]) -> Optional[str]:
        if method is not None and method.upper() == "HEAD":
            return "head"
        if self.headers.is_redirect():
            return "redirect"
        return None

    def send(
        self,
        header_sink: Sink,
        open_body_sink: Callable[[], Optional[Sink]],
        method: Optional[str] = None,
    ) -> int:
        """Emit headers, then the body unless the request or headers forbid one.

        ``header_sink`` receives the header block and is not closed here.
        ``open_body_sink`` is only called when a body will be written; the sink
        it returns is closed before ``send`` returns or raises.
        The provider is closed as well when it has a ``close`` method.
        """
        if self._sent:
            raise RuntimeError("ResponseWriter has already been sent")
        self._sent = True

        try:
            self.write_headers(header_sink)

            skip_reason = self._skip_reason(method)
            if skip_reason is not None:
                WRITER_LOGGER.debug(
                    "Body skipped",
                    extra={
                        "event": "body_skipped",
                        "reason": skip_reason,
                        "status_code": self.status.code,
                    },
                )
                return 0

            with acquire_sink(open_body_sink) as body_sink:
                return self.write_body(body_sink)
        finally:
            self._close_provider()

    def _close_provider(self) -> None:
        close = getattr(self.provider, "close", None)
        if close is not None:
            close()
