"""
mockhttp Mock Server

FastAPI-based HTTP mock server that serves responses from declared
expectations.

Features:
- Exact request matching through ExpectedResponseProvider
- Ordered response sequences and call-count verification
- Deterministic fallback response for unmatched requests
- Background uvicorn thread with start/stop lifecycle
- Optional admin API with metrics and expectation status
"""

from __future__ import annotations  # Enable forward references for type hints

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from ..common.url_utils import QueryStringParser
from .exceptions import MockServerError
from .matcher import ExpectedResponseProvider, MatchResult, Multiplicity
from .request import FullHttpRequest, HttpRequest, Method, RequestLike
from .response import HttpResponse

MATCHED_HEADER = "X-Mock-Matched"

# Levels uvicorn accepts, mapped to logging levels
LOG_LEVELS = {
    'critical': logging.CRITICAL,
    'error': logging.ERROR,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
    'trace': logging.DEBUG,
}


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    # Matching policy
    repeat_last_response: bool = False  # Serve last response again once a sequence is exhausted
    fail_on_unexpected: bool = True  # Unmatched requests fail verify()

    # Fallback behavior
    fallback_status: int = 404
    fallback_content_type: str = "text/plain"

    # Request recording
    recording_limit: int = 1000  # Maximum number of requests to record (0 = unlimited)

    # Server options
    host: str = "127.0.0.1"
    port: int = 8080  # 0 picks a free port
    log_level: str = "warning"
    access_log: bool = False
    startup_timeout: float = 5.0  # Seconds to wait for the listener
    shutdown_timeout: float = 5.0

    # Admin API
    admin_enabled: bool = False
    admin_prefix: str = "/__admin__"

    def __post_init__(self):
        if self.log_level.lower() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{self.log_level}', expected one of: {', '.join(LOG_LEVELS)}")

    @property
    def python_log_level(self) -> int:
        """logging level for mockhttp loggers; uvicorn's trace maps to DEBUG."""
        return LOG_LEVELS[self.log_level.lower()]


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class ExpectationBuilder:
    """
    Chained registration of responses for one expected request.

    Every respond_with() call adds the response for the next call.
    """

    def __init__(
        self,
        provider: ExpectedResponseProvider,
        pattern: RequestLike,
        multiplicity: Optional[Multiplicity] = None
    ):
        self.provider = provider
        self.pattern = pattern
        self.multiplicity = multiplicity

    def respond_with(
        self,
        status_code: int,
        content_type: Optional[str] = None,
        content: Optional[str] = None
    ) -> ExpectationBuilder:
        return self.respond_with_sequence([HttpResponse(status_code, content_type, content)])

    def respond_with_sequence(self, responses: Sequence[HttpResponse]) -> ExpectationBuilder:
        self.provider.register(self.pattern, responses, self.multiplicity)
        return self


class MockServer:
    """
    HTTP mock server for tests.

    Incoming requests are decoded into HttpRequest values and answered by an
    ExpectedResponseProvider. Requests nobody expected get the fallback
    response and are reported by verify().

    Example:
        server = MockServer(MockConfig(port=0))
        server.expect(Method.GET, '/ping').respond_with(200, 'text/plain', 'pong')

        with server:
            httpx.get(f"{server.url}/ping")

        server.verify()
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        provider: Optional[ExpectedResponseProvider] = None
    ):
        """
        Initialize mock server.

        Args:
            config: Optional MockConfig for server behavior
            provider: Optional ExpectedResponseProvider (will create from config if None)
        """
        self.config = config or MockConfig()
        self.metrics = MockMetrics()
        self.recorded_requests: List[Dict[str, Any]] = []

        self.logger = logging.getLogger("mockhttp.mock")
        self.logger.setLevel(self.config.python_log_level)

        self.provider = provider or ExpectedResponseProvider(
            repeat_last_response=self.config.repeat_last_response,
            fail_on_unexpected=self.config.fail_on_unexpected
        )

        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._bound_host: Optional[str] = None
        self._bound_port: Optional[int] = None

        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        app = FastAPI(
            title="mockhttp Mock Server",
            description="Mock HTTP server answering declared expectations",
            version="1.0.0"
        )

        if self.config.admin_enabled:
            @app.get(f"{self.config.admin_prefix}/metrics")
            async def get_metrics():
                """Get server metrics."""
                return JSONResponse(content=self.metrics.to_dict())

            @app.get(f"{self.config.admin_prefix}/expectations")
            async def list_expectations():
                """List registered expectations and their call counts."""
                expectations = [entry.to_dict() for entry in self.provider.expectations]
                return JSONResponse(content={
                    'total': len(expectations),
                    'unexpected_requests': len(self.provider.unexpected_requests),
                    'expectations': expectations
                })

        # Catch-all route for expectations
        @app.api_route("/{path:path}", methods=[method.value for method in Method])
        async def mock_request(request: Request, path: str):
            """Handle incoming requests and serve expected responses."""
            return await self._handle_request(request)

        return app

    async def _handle_request(self, request: Request) -> Response:
        """
        Decode an incoming request and answer it from the provider.

        Args:
            request: FastAPI Request object

        Returns:
            Registered response, or the fallback response when nothing matched
        """
        self.metrics.total_requests += 1

        incoming, blank = await self._decode_request(request)
        self.logger.debug(f"Incoming: {incoming.method} {request.url}")

        if blank:
            # Not representable as QueryParameter values, so it can never match
            reason = "Blank query parameter(s): " + ", ".join(f"'{k}={v}'" for k, v in blank)
            description = f"{request.method} {request.url.path}?{request.url.query} ({reason})\n{incoming}"
            self.provider.record_unmatchable(description)
            match_result = MatchResult(matched=False, reason=reason)
        else:
            match_result = self.provider.match(incoming)

        if match_result.matched:
            self.metrics.matched_requests += 1
            response = self._create_response(match_result.response)
        else:
            self.metrics.unmatched_requests += 1
            self.logger.warning(f"No match found for {incoming.method} {request.url} ({match_result.reason})")
            response = self._create_fallback(incoming, match_result.reason)

        self._record_request(
            method=request.method,
            url=str(request.url),
            matched=match_result.matched,
            response_status=response.status_code,
            reason=match_result.reason
        )

        return response

    async def _decode_request(self, request: Request) -> Tuple[HttpRequest, List[Tuple[str, str]]]:
        """
        Build an HttpRequest from what the transport received.

        Returns:
            The request, and any query pairs with a blank key or value
            (left out of the request)
        """
        body = await request.body()
        content = body.decode('utf-8', errors='replace') if body else None

        builder = (HttpRequest.builder()
                   .method(request.method)
                   .path(request.url.path)
                   .content_type(request.headers.get('content-type'))
                   .content(content))

        query = QueryStringParser.parse(request.url.query)
        for key, value in query.pairs:
            builder.query_parameter(key, value)

        return builder.build(), query.blank

    def _create_response(self, expected: HttpResponse) -> Response:
        """
        Create FastAPI Response from an expected response.

        Status, content type and body are written unchanged.
        """
        headers = {}
        if expected.content_type is not None:
            # Passed as a header so no charset gets appended
            headers['content-type'] = expected.content_type

        return Response(
            content=expected.content or "",
            status_code=expected.status_code,
            headers=headers
        )

    def _create_fallback(self, incoming: HttpRequest, reason: str) -> Response:
        """Fallback response for requests without a matching expectation."""
        body = f"No expectation matched the request ({reason}).\n\n{incoming}\n"
        return Response(
            content=body,
            status_code=self.config.fallback_status,
            headers={
                'content-type': self.config.fallback_content_type,
                MATCHED_HEADER: 'false'
            }
        )

    def _record_request(
        self,
        method: str,
        url: str,
        matched: bool,
        response_status: int,
        reason: str
    ):
        """Record an incoming request for later analysis."""
        if self.config.recording_limit > 0 and len(self.recorded_requests) >= self.config.recording_limit:
            # Remove oldest request (FIFO)
            self.recorded_requests.pop(0)

        self.recorded_requests.append({
            'timestamp': datetime.now().isoformat(),
            'method': method,
            'url': url,
            'matched': matched,
            'response_status': response_status,
            'reason': reason
        })

    def expect(
        self,
        request: Union[RequestLike, Method, str],
        path: Optional[str] = None,
        multiplicity: Optional[Multiplicity] = None
    ) -> ExpectationBuilder:
        """
        Declare an expected request.

        Args:
            request: HttpRequest/FullHttpRequest pattern, or a method
            path: Path when request is a method
            multiplicity: Required number of calls

        Returns:
            ExpectationBuilder to attach responses with respond_with()
        """
        if isinstance(request, (HttpRequest, FullHttpRequest)):
            if path is not None:
                raise ValueError("Path should be set on the request pattern itself")
            pattern = request
        else:
            pattern = HttpRequest.builder().method(request).path(path).build()

        return ExpectationBuilder(self.provider, pattern, multiplicity)

    def start(self, port: Optional[int] = None, host: Optional[str] = None):
        """
        Start serving on a background thread.

        Args:
            port: Port to bind to (overrides config, 0 picks a free port)
            host: Host to bind to (overrides config)

        Raises:
            MockServerError: if the server is already running or could not bind
        """
        if self.is_running:
            raise MockServerError(f"Mock server already running on {self.url}")

        actual_host = host or self.config.host
        actual_port = self.config.port if port is None else port

        server_config = uvicorn.Config(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level.lower(),
            access_log=self.config.access_log,
            lifespan="off"
        )
        server = uvicorn.Server(server_config)
        thread = threading.Thread(target=server.run, name=f"mockhttp-{actual_port}", daemon=True)
        thread.start()

        deadline = time.monotonic() + self.config.startup_timeout
        while not server.started:
            if not thread.is_alive():
                raise MockServerError(f"Mock server failed to start on {actual_host}:{actual_port}")
            if time.monotonic() > deadline:
                server.should_exit = True
                thread.join(timeout=self.config.shutdown_timeout)
                raise MockServerError(f"Mock server did not start within {self.config.startup_timeout}s")
            time.sleep(0.01)

        self._server = server
        self._thread = thread
        self._bound_host = actual_host
        self._bound_port = server.servers[0].sockets[0].getsockname()[1]

        self.logger.info(f"Mock server listening on {self.url}")

    def stop(self):
        """Stop serving and release the port. Safe to call more than once."""
        if self._server is None:
            return

        self._server.should_exit = True
        self._thread.join(timeout=self.config.shutdown_timeout)

        if self._thread.is_alive():
            self.logger.warning("Graceful shutdown timed out, forcing exit")
            self._server.force_exit = True
            self._thread.join(timeout=self.config.shutdown_timeout)

        self.logger.info(f"Mock server on {self.url} stopped")

        self._server = None
        self._thread = None
        self._bound_host = None
        self._bound_port = None

    def verify(self):
        """
        Verify all expectations; call at test teardown.

        Raises:
            UnsatisfiedExpectationException: if expectations were not met
        """
        self.provider.verify()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def port(self) -> Optional[int]:
        """Bound port while running."""
        return self._bound_port

    @property
    def url(self) -> Optional[str]:
        """Base url while running, e.g. http://127.0.0.1:54321"""
        if self._bound_port is None:
            return None
        return f"http://{self._bound_host}:{self._bound_port}"

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for in-process testing.

        Returns:
            FastAPI application instance
        """
        return self.app

    def __enter__(self) -> MockServer:
        if not self.is_running:
            self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.stop()


def create_mock_server(
    host: str = "127.0.0.1",
    port: int = 8080,
    repeat_last_response: bool = False,
    fail_on_unexpected: bool = True,
    fallback_status: int = 404,
    log_level: str = "warning",
    admin_enabled: bool = False
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        host: Host to bind to
        port: Port to bind to (0 picks a free port)
        repeat_last_response: Repeat the last response once a sequence is exhausted
        fail_on_unexpected: Make verify() fail on requests nobody expected
        fallback_status: Status code for unmatched requests
        log_level: Log level for mockhttp and uvicorn
        admin_enabled: Expose the admin API

    Returns:
        Configured MockServer instance (not started)

    Example:
        server = create_mock_server(port=0, repeat_last_response=True)
        server.expect(Method.GET, '/ping').respond_with(200, 'text/plain', 'pong')
        server.start()
    """
    config = MockConfig(
        host=host,
        port=port,
        repeat_last_response=repeat_last_response,
        fail_on_unexpected=fail_on_unexpected,
        fallback_status=fallback_status,
        log_level=log_level,
        admin_enabled=admin_enabled
    )

    return MockServer(config=config)
