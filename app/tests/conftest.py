"""Shared pytest configuration.

The application root (app/) is put on sys.path by the pytest configuration
in pyproject.toml, so tests import packages as ``infrastructure.*``.
"""

import pytest
import structlog

from infrastructure.services.providers import get_dynamodb_client, get_settings


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Isolate tests from cached providers and bound log context."""
    get_settings.cache_clear()
    get_dynamodb_client.cache_clear()
    structlog.contextvars.clear_contextvars()
    yield
    get_settings.cache_clear()
    get_dynamodb_client.cache_clear()
    structlog.contextvars.clear_contextvars()
