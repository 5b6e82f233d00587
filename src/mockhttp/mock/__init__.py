"""
mockhttp Mock Server Module

Expectation-driven mock HTTP server for tests.

This module provides:
- Immutable request/response models with fluent builders
- Expectation registry with exact request matching
- Verification of unmet expectations and unexpected requests
- FastAPI-based mock server
"""

from .request import (
    Method,
    QueryParameter,
    HttpRequest,
    FullHttpRequest,
    HttpRequestBuilder,
    FullHttpRequestBuilder
)
from .response import HttpResponse
from .matcher import ExpectedResponseProvider, ExpectationEntry, MatchResult, Multiplicity
from .exceptions import MockHttpError, MockServerError, UnsatisfiedExpectationException
from .server import MockServer, MockConfig, MockMetrics, ExpectationBuilder, create_mock_server

__all__ = [
    # Model
    'Method',
    'QueryParameter',
    'HttpRequest',
    'FullHttpRequest',
    'HttpRequestBuilder',
    'FullHttpRequestBuilder',
    'HttpResponse',

    # Matcher
    'ExpectedResponseProvider',
    'ExpectationEntry',
    'MatchResult',
    'Multiplicity',

    # Errors
    'MockHttpError',
    'MockServerError',
    'UnsatisfiedExpectationException',

    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'ExpectationBuilder',
    'create_mock_server',
]
