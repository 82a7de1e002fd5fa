"""HTTP status codes and their canonical reason phrases."""

from dataclasses import dataclass

from emitter.domain.errors import UnknownStatus

STATUS_PHRASES: dict[int, str] = {
    100: "Continue",
    101: "Switching Protocols",
    200: "OK",
    201: "Created",
    202: "Accepted",
    204: "No Content",
    206: "Partial Content",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    429: "Too Many Requests",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
}

OK = 200
CREATED = 201
FOUND = 302
BAD_REQUEST = 400
FORBIDDEN = 403
NOT_FOUND = 404
METHOD_NOT_ALLOWED = 405
INTERNAL_SERVER_ERROR = 500
SERVICE_UNAVAILABLE = 503


def reason_phrase(code: int) -> str:
    """Return the reason phrase for ``code`` or raise UnknownStatus."""
    try:
        return STATUS_PHRASES[code]
    except KeyError:
        raise UnknownStatus(code) from None


def format_status_line(code: int, version: str = "1.1") -> str:
    """Render ``HTTP/<version> <code> <phrase>`` for the given status code."""
    return f"HTTP/{version} {code} {reason_phrase(code)}"


@dataclass(frozen=True)
class Status:
    """An HTTP status code whose phrase is looked up when it is rendered."""

    code: int

    @property
    def phrase(self) -> str:
        """Canonical reason phrase, raising UnknownStatus when unmapped."""
        return reason_phrase(self.code)

    @property
    def is_known(self) -> bool:
        return self.code in STATUS_PHRASES

    def status_line(self, version: str = "1.1") -> str:
        """Return the full status line for this status."""
        return format_status_line(self.code, version)
