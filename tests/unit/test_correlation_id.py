"""Unit tests for correlation ID management and the logger adapter."""

import logging
import threading
from unittest.mock import MagicMock

from emitter.domain.correlation_id import (
    CorrelationLoggerAdapter,
    clear_correlation_id,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


def test_generate_correlation_id_returns_unique_hex_values():
    first = generate_correlation_id()
    second = generate_correlation_id()
    assert first != second
    assert len(first) == 32
    int(first, 16)


def test_set_get_and_clear():
    set_correlation_id("abc")
    assert get_correlation_id() == "abc"
    clear_correlation_id()
    assert get_correlation_id() is None


def test_correlation_scope_restores_previous_value():
    set_correlation_id("outer")
    with correlation_scope("inner") as bound:
        assert bound == "inner"
        assert get_correlation_id() == "inner"
    assert get_correlation_id() == "outer"


def test_correlation_scope_generates_when_missing():
    clear_correlation_id()
    with correlation_scope() as bound:
        assert bound
        assert get_correlation_id() == bound
    assert get_correlation_id() is None


def test_correlation_id_isolated_between_threads():
    """Separate threads keep independent IDs."""
    results = {}

    def worker(worker_id: str):
        with correlation_scope(f"worker-{worker_id}"):
            results[worker_id] = get_correlation_id()

    threads = [threading.Thread(target=worker, args=(str(i),)) for i in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for worker_id, correlation_id in results.items():
        assert correlation_id == f"worker-{worker_id}"


def test_adapter_injects_correlation_id_and_component():
    mock_logger = MagicMock(spec=logging.Logger)
    mock_logger.name = "emitter.writer"
    adapter = CorrelationLoggerAdapter(mock_logger, {})

    with correlation_scope("req-1"):
        adapter.info("Test message")

    extra = mock_logger.log.call_args.kwargs["extra"]
    assert extra["correlation_id"] == "req-1"
    assert extra["component"] == "writer"


def test_adapter_defaults_correlation_id_and_keeps_foreign_names():
    mock_logger = MagicMock(spec=logging.Logger)
    mock_logger.name = "other"
    adapter = CorrelationLoggerAdapter(mock_logger, {})

    clear_correlation_id()
    adapter.info("Test message")

    extra = mock_logger.log.call_args.kwargs["extra"]
    assert extra["correlation_id"] == "-"
    assert extra["component"] == "other"


def test_adapter_does_not_modify_original_extra_dict():
    mock_logger = MagicMock(spec=logging.Logger)
    mock_logger.name = "emitter.sink"
    adapter = CorrelationLoggerAdapter(mock_logger, {})

    original_extra = {"field": "value"}
    adapter.info("Test message", extra=original_extra)

    assert original_extra == {"field": "value"}
    assert mock_logger.log.call_args.kwargs["extra"]["field"] == "value"
