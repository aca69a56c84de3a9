# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def no_request_jitter() -> Generator[None, None, None]:
    """Remove the UI pacing delay so client calls resolve instantly."""
    with patch.object(Settings, "REQUEST_JITTER", (0.0, 0.0)):
        yield
