"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

# urllib3 logs every retry and connection at DEBUG; keep test output readable.
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep developer environment overrides out of configuration tests."""
    monkeypatch.delenv("INVENTORY_API_URL", raising=False)
    monkeypatch.delenv("INVENTORY_VERIFY_TLS", raising=False)


@pytest.fixture(autouse=True)
def restore_app_logger():
    """Undo handler changes made by CLI runs so later tests log normally."""
    app_logger = logging.getLogger("src")
    handlers = list(app_logger.handlers)
    level = app_logger.level
    yield
    app_logger.handlers[:] = handlers
    app_logger.setLevel(level)
