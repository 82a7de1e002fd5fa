"""File serving handlers."""

import logging
import mimetypes
from pathlib import Path

from emitter.bootstrap.config import DEFAULT_CHUNK_SIZE, FILES_ENDPOINT_PREFIX
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.domain.http_types import HttpRequest
from emitter.domain.providers import FileProvider
from emitter.domain.sandbox import ForbiddenPath, resolve_sandbox_path
from emitter.handlers.system_handlers import (
    forbidden,
    handle_root,
    not_found,
    wire_writer,
)
from emitter.pipeline.writer import ResponseWriter

FILE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("emitter.handlers.file"), {})

INDEX_DOCUMENT = "index.html"


def _content_type_for_path(filepath: Path) -> str:
    mime_type, _ = mimetypes.guess_type(filepath.as_posix())
    return mime_type or "application/octet-stream"


def _streaming_file_writer(
    resolved_path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> ResponseWriter:
    """Stream the file with chunked transfer coding."""
    provider = FileProvider(resolved_path, chunk_size)
    headers = {
        "Content-Type": _content_type_for_path(resolved_path),
        "Transfer-Encoding": "chunked",
    }
    return wire_writer(provider, headers=headers)


def file_writer(
    request: HttpRequest, directory: str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> ResponseWriter:
    """Serve a file from ``directory`` named by the path after ``/files/``."""
    filename = request.path[len(FILES_ENDPOINT_PREFIX) :]
    try:
        resolved_path = resolve_sandbox_path(directory, filename)
    except ForbiddenPath:
        FILE_LOGGER.warning(
            "Forbidden path access blocked",
            extra={
                "event": "forbidden_path",
                "path": filename,
                "method": request.method,
            },
        )
        return forbidden()

    if not resolved_path.is_file():
        FILE_LOGGER.info(
            "File not found",
            extra={"event": "file_not_found", "path": resolved_path.as_posix()},
        )
        return not_found()

    FILE_LOGGER.info(
        "Serving file",
        extra={
            "event": "file_served",
            "path": resolved_path.as_posix(),
            "method": request.method,
        },
    )
    return _streaming_file_writer(resolved_path, chunk_size)


def index_writer(
    directory: str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> ResponseWriter:
    """Stream index.html when present, otherwise answer with an empty 200."""
    index_path = Path(directory) / INDEX_DOCUMENT
    if index_path.is_file():
        return _streaming_file_writer(index_path, chunk_size)
    return handle_root()
