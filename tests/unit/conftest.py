"""Shared fixtures for unit tests."""

import logging

import pytest

from emitter.domain.correlation_id import clear_correlation_id


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("emitter")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate
    clear_correlation_id()
