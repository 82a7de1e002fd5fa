"""Pull-based body sources consumed by the response writer."""

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional, Protocol, Union

from emitter.bootstrap.config import DEFAULT_CHUNK_SIZE
from emitter.domain.correlation_id import CorrelationLoggerAdapter

PROVIDER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("emitter.providers"), {})


class OutputProvider(Protocol):
    """Produces body buffers until it signals end-of-stream."""

    def next_chunk(self) -> Optional[bytes]:
        """Return the next non-empty buffer, or None/b"" at end-of-stream."""


def stream_file(
    filepath: Path, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[bytes]:
    """Yield file contents in fixed-size chunks for streaming responses."""
    if PROVIDER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        PROVIDER_LOGGER.debug(
            "File streaming started",
            extra={"event": "file_streaming_started", "path": filepath.as_posix()},
        )
    with open(filepath, "rb") as file_handle:
        while True:
            chunk = file_handle.read(chunk_size)
            if not chunk:
                break
            yield chunk


class BytesProvider:
    """Serves a fixed payload in slices of at most ``chunk_size`` bytes."""

    def __init__(
        self, payload: Union[bytes, str], chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._payload = payload.encode() if isinstance(payload, str) else payload
        self._chunk_size = chunk_size
        self._offset = 0

    @property
    def content_length(self) -> Optional[int]:
        return len(self._payload)

    def next_chunk(self) -> Optional[bytes]:
        if self._offset >= len(self._payload):
            return None
        chunk = self._payload[self._offset : self._offset + self._chunk_size]
        self._offset += len(chunk)
        return chunk


class IterableProvider:
    """Adapts an iterable of byte strings, skipping empty items."""

    def __init__(self, chunks: Iterable[bytes], content_length: Optional[int] = None):
        self._iterator = iter(chunks)
        self.content_length = content_length

    def next_chunk(self) -> Optional[bytes]:
        for chunk in self._iterator:
            if chunk:
                return chunk
        return None

    def close(self) -> None:
        """Close the underlying generator, if it is one."""
        close = getattr(self._iterator, "close", None)
        if close is not None:
            close()


class FileProvider(IterableProvider):
    """Streams a file lazily; it is opened on the first pull."""

    def __init__(self, filepath: Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.filepath = Path(filepath)
        super().__init__(
            stream_file(self.filepath, chunk_size),
            content_length=self.filepath.stat().st_size,
        )

    def next_chunk(self) -> Optional[bytes]:
        chunk = super().next_chunk()
        if chunk is None:
            self.close()
        return chunk


class CallbackProvider:
    """Invokes a callback once and serves its result as the whole body."""

    content_length: Optional[int] = None

    def __init__(
        self,
        callback: Callable[..., Union[bytes, str, None]],
        *args: Any,
        **kwargs: Any,
    ) -> None:
        self._callback = callback
        self._args = args
        self._kwargs = kwargs
        self._done = False

    def next_chunk(self) -> Optional[bytes]:
        if self._done:
            return None
        self._done = True
        result = self._callback(*self._args, **self._kwargs)
        if isinstance(result, str):
            return result.encode()
        return result
