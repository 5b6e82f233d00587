"""Shared fixtures for mockhttp tests."""

import httpx
import pytest

pytest_plugins = ["mockhttp.pytest_plugin"]


@pytest.fixture
def http_client():
    """HTTP client that ignores proxy settings from the environment."""
    with httpx.Client(trust_env=False, timeout=5.0) as client:
        yield client
