"""Shared fixtures for the sieve pipeline tests."""

import logging

import pytest

from sieve_pipeline.config import SieveConfig


@pytest.fixture
def sieve_config():
    """Run configuration with a join timeout so a hang fails instead of blocking."""
    return SieveConfig(join_timeout=10.0, receive_timeout=10.0, send_timeout=10.0)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Drop handlers installed by a test (the CLI installs its own)."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)
