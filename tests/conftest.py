"""Pytest configuration shared across the suite."""

import pytest

import _bootstrap  # noqa: F401


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"
