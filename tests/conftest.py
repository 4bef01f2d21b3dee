"""
Pytest configuration and fixtures for record-reformer tests

This module provides shared fixtures for unit and integration tests.
"""
import logging
from unittest.mock import MagicMock

import pytest

from record_reformer.core.models import Event
from record_reformer.core.reform import RecordReformer, format_event_time

TEST_HOSTNAME = "web01.example.com"
TEST_TAG = "test.tag"
TEST_TIME = 1265000645  # 2010-02-01 05:04:05 UTC


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for a single component"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that drive the reformer through a pipeline, Spark adapter or CLI"
    )


# =======================
# REFORMER FIXTURES
# =======================

@pytest.fixture
def hostname() -> str:
    return TEST_HOSTNAME


@pytest.fixture
def event_time() -> int:
    return TEST_TIME


@pytest.fixture
def formatted_time() -> str:
    """Event time as rendered by ${time}"""
    return format_event_time(TEST_TIME)


@pytest.fixture
def reform_logger() -> MagicMock:
    """
    Logger double injected into reformers so warnings can be asserted on

    Returns:
        MagicMock standing in for logging.Logger
    """
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def make_reformer(reform_logger):
    """
    Factory building a RecordReformer from directives with a fixed hostname

    Returns:
        Callable taking a directive mapping
    """
    def _make(directives: dict) -> RecordReformer:
        return RecordReformer.from_directives(directives, hostname=TEST_HOSTNAME, logger=reform_logger)

    return _make


@pytest.fixture
def emit(make_reformer):
    """
    Reform one event per message and return the emitted events

    Each event carries the record {"eventType0": "bar", "message": msg}.
    """
    def _emit(directives: dict, msgs=("",), tag: str = TEST_TAG) -> list[Event]:
        reformer = make_reformer(directives)
        events = [
            Event(tag=tag, time=TEST_TIME, record={"eventType0": "bar", "message": msg})
            for msg in msgs
        ]
        return reformer.reform_batch(events)

    return _emit


# =======================
# CLEANUP FIXTURES
# =======================

@pytest.fixture(autouse=True)
def reset_package_logger():
    """
    Undo setup_logger() calls made by CLI tests

    Yields control to the test, then restores the package logger.
    """
    yield
    package_logger = logging.getLogger("record_reformer")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
