"""
Pytest configuration and fixtures for framework unit tests.
Resets global state so tests do not leak configuration or log handlers.
"""

from typing import Generator

import pytest

from yacht.core import config
from yacht.core.log import shutdown_logging


@pytest.fixture(autouse=True)
def cleanup_logging() -> Generator[None, None, None]:
    """Clean up logging system after each test."""
    yield
    shutdown_logging()


@pytest.fixture(autouse=True)
def cleanup_global_state() -> Generator[None, None, None]:
    """Forget configuration loaded by a test."""
    yield
    # pylint: disable=protected-access
    config._config_manager._config = None
    config._config_manager._config_file = None
