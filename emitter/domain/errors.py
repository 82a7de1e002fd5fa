"""Exceptions raised while emitting an HTTP response."""

from typing import Optional


class EmitterError(Exception):
    """Base class for response emission failures."""


class UnknownStatus(EmitterError, LookupError):
    """Raised when a status code has no reason phrase mapping."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Unknown HTTP status code: {code}")
        self.code = code


class SinkUnavailable(EmitterError):
    """Raised when the body sink cannot be acquired."""


class WriteFailure(EmitterError):
    """Raised when an underlying write reports failure or stalls."""

    def __init__(self, message: str, written: int = 0, errno: Optional[int] = None):
        super().__init__(message)
        self.written = written
        self.errno = errno
