"""
mockhttp pytest plugin

Enable in a conftest.py with:

    pytest_plugins = ["mockhttp.pytest_plugin"]

The `mock_http_server` fixture yields a started MockServer on a free port
and always stops it at teardown, whether or not the test failed.
Verification is left to the test so failures show up where they belong.
"""

import pytest

from .mock.server import MockConfig, MockServer


@pytest.fixture
def mock_http_server_config():
    """Config used by mock_http_server. Override to change policies."""
    return MockConfig(port=0)


@pytest.fixture
def mock_http_server(mock_http_server_config):
    """Started mock server, stopped on teardown."""
    server = MockServer(config=mock_http_server_config)
    server.start()
    try:
        yield server
    finally:
        server.stop()
