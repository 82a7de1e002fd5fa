"""Per-response correlation IDs carried through log records."""

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "emitter."

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "emitter_correlation_id", default=None
)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID bound to the current context, if any."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block, then restore the old one."""
    bound = correlation_id or generate_correlation_id()
    token = _correlation_id_var.set(bound)
    try:
        yield bound
    finally:
        _correlation_id_var.reset(token)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Adds ``correlation_id`` and ``component`` to every record it emits."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        correlation_id = get_correlation_id()
        extra["correlation_id"] = correlation_id if correlation_id is not None else "-"

        logger_name = self.logger.name
        if logger_name.startswith(LOGGER_PREFIX):
            extra["component"] = logger_name[len(LOGGER_PREFIX) :]
        else:
            extra["component"] = logger_name
        kwargs["extra"] = extra
        return msg, kwargs
