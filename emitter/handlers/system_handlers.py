"""Built-in endpoints and error responses of the demo server."""

import json
import logging
import urllib.parse
from typing import Iterable, Optional, Union

from emitter.bootstrap.config import SERVER_HEADERS, WIRE_NEWLINE
from emitter.domain.correlation_id import CorrelationLoggerAdapter
from emitter.domain.headers import LOCATION
from emitter.domain.http_types import HttpRequest
from emitter.domain.providers import BytesProvider, CallbackProvider
from emitter.domain.status import (
    BAD_REQUEST,
    FORBIDDEN,
    FOUND,
    METHOD_NOT_ALLOWED,
    NOT_FOUND,
    OK,
    reason_phrase,
)
from emitter.pipeline.writer import ResponseWriter

HANDLER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("emitter.handlers.system"), {}
)

REDIRECT_PREFIX = "/redirect"
REDIRECT_SAFE_CHARS = "/?&=%#:;@!$'()*+,~-._"


def wire_writer(
    provider,
    status: int = OK,
    headers: Optional[dict[str, str]] = None,
) -> ResponseWriter:
    """Create a writer with the server headers and CRLF line endings."""
    return ResponseWriter(
        provider,
        status,
        {**SERVER_HEADERS, **(headers or {})},
        newline=WIRE_NEWLINE,
    )


def text_writer(
    message: Union[str, bytes],
    status: int = OK,
    content_type: str = "text/plain; charset=utf-8",
    headers: Optional[dict[str, str]] = None,
) -> ResponseWriter:
    """Return a writer for a fixed payload with Content-Length set."""
    provider = BytesProvider(message)
    base_headers = {
        "Content-Type": content_type,
        "Content-Length": str(provider.content_length),
        **(headers or {}),
    }
    return wire_writer(provider, status, base_headers)


def _status_message(status: int) -> str:
    return f"{status} {reason_phrase(status)}\n"


def handle_root() -> ResponseWriter:
    return text_writer("")


def handle_echo(request: HttpRequest) -> ResponseWriter:
    """Echo the path remainder back as the body."""
    message = request.path[len("/echo/") :]
    return text_writer(message)


def _health_payload() -> str:
    return json.dumps({"status": "ok"})


def handle_healthz() -> ResponseWriter:
    """Report liveness; the payload is rendered when the body is written."""
    headers = {"Content-Type": "application/json", "Transfer-Encoding": "chunked"}
    return wire_writer(CallbackProvider(_health_payload), headers=headers)


def handle_redirect(request: HttpRequest) -> ResponseWriter:
    """Answer 302 pointing at ``?to=`` or the path after ``/redirect``.

    Only same-origin absolute paths are accepted as targets.
    """
    target = request.query.get("to") or request.path[len(REDIRECT_PREFIX) :]
    if not target.startswith("/") or target.startswith("//"):
        HANDLER_LOGGER.warning(
            "Rejected redirect target",
            extra={"event": "redirect_rejected", "route": request.path},
        )
        return bad_request()
    # Location must stay ASCII; non-ASCII and control characters are escaped.
    location = urllib.parse.quote(target, safe=REDIRECT_SAFE_CHARS)
    headers = {
        LOCATION: location,
        "Content-Type": "text/html; charset=utf-8",
        "Content-Length": "0",
    }
    return wire_writer(BytesProvider(b""), FOUND, headers)


def not_found() -> ResponseWriter:
    return text_writer(_status_message(NOT_FOUND), NOT_FOUND)


def forbidden() -> ResponseWriter:
    return text_writer(_status_message(FORBIDDEN), FORBIDDEN)


def bad_request() -> ResponseWriter:
    return text_writer(_status_message(BAD_REQUEST), BAD_REQUEST)


def method_not_allowed(allowed_methods: Iterable[str]) -> ResponseWriter:
    """Return 405 enumerating the supported methods in ``Allow``."""
    allow_header = ", ".join(sorted(allowed_methods))
    return text_writer(
        _status_message(METHOD_NOT_ALLOWED),
        METHOD_NOT_ALLOWED,
        headers={"Allow": allow_header},
    )
