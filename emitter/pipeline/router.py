"""Request routing logic."""

import logging

from emitter.bootstrap.config import (
    ALLOWED_METHODS,
    DEFAULT_CHUNK_SIZE,
    FILES_ENDPOINT_PREFIX,
)
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.domain.http_types import HttpRequest
from emitter.handlers.file_handler import file_writer, index_writer
from emitter.handlers.system_handlers import (
    REDIRECT_PREFIX,
    handle_echo,
    handle_healthz,
    handle_redirect,
    method_not_allowed,
    not_found,
)
from emitter.pipeline.writer import ResponseWriter

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("emitter.pipeline.router"), {}
)


def _matched(route: str) -> None:
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched", extra={"event": "route_matched", "route": route}
        )


def route_request(
    request: HttpRequest, directory: str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> ResponseWriter:
    """Pick the handler for ``request`` and return its response writer."""
    if request.method not in ALLOWED_METHODS:
        ROUTER_LOGGER.warning(
            "Method not allowed",
            extra={
                "event": "method_not_allowed",
                "method": request.method,
                "route": request.path,
            },
        )
        return method_not_allowed(ALLOWED_METHODS)

    if request.path == "/":
        _matched("/")
        return index_writer(directory, chunk_size)

    if request.path == "/healthz":
        _matched("/healthz")
        return handle_healthz()

    if request.path.startswith("/echo/"):
        _matched("/echo/*")
        return handle_echo(request)

    if request.path == REDIRECT_PREFIX or request.path.startswith(
        f"{REDIRECT_PREFIX}/"
    ):
        _matched("/redirect")
        return handle_redirect(request)

    if request.path.startswith(FILES_ENDPOINT_PREFIX):
        _matched("/files/*")
        return file_writer(request, directory, chunk_size)

    ROUTER_LOGGER.info(
        "No route matched", extra={"event": "route_not_found", "route": request.path}
    )
    return not_found()
