"""
mockhttp Request Model

Immutable HTTP request values used both as expectation patterns and as the
decoded form of incoming traffic.

Properties of a request:
- method: HTTP method (GET, PUT, POST, DELETE, HEAD)
- content_type: Content of the Content-Type header
- content: Message body
- path: Path part of the url, e.g. /persons
- query_parameters: e.g. name=Smith, gender=female

A FullHttpRequest adds the address (domain and port) so it can render a
complete url such as http://localhost:8081/persons?name=Smith&gender=female
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

NOT_SPECIFIED = "null"
HTTP_SCHEME = "http"
PORT_SEPARATOR = ":"
QUERY_SEPARATOR = "?"
PARAMETER_SEPARATOR = "&"


class Method(str, Enum):
    """Supported HTTP methods."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    HEAD = "HEAD"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class QueryParameter:
    """A single key=value query parameter. Both parts must be non-empty."""

    key: str
    value: str

    def __post_init__(self):
        if not isinstance(self.key, str) or not self.key:
            raise ValueError("Query parameter key should not be empty")
        if not isinstance(self.value, str) or not self.value:
            raise ValueError(f"Query parameter value for '{self.key}' should not be empty")

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


def _describe(label: str, value) -> str:
    return f"{label}{value if value is not None else NOT_SPECIFIED}"


def _unique(parameters) -> Tuple[QueryParameter, ...]:
    """Drop duplicate pairs, keeping first-seen order."""
    return tuple(dict.fromkeys(parameters))


@dataclass(frozen=True, eq=False)
class HttpRequest:
    """
    Request value compared field by field.

    Query parameters behave as a set for equality and hashing, while their
    insertion order is kept for rendering.
    """

    method: Optional[Method] = None
    content_type: Optional[str] = None
    content: Optional[str] = None
    path: Optional[str] = None
    query_parameters: Tuple[QueryParameter, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'query_parameters', _unique(self.query_parameters))

    @staticmethod
    def builder() -> 'HttpRequestBuilder':
        """Start building a new request."""
        return HttpRequestBuilder()

    def _key(self):
        return (
            self.method,
            self.content_type,
            self.content,
            self.path,
            frozenset(self.query_parameters),
        )

    def __eq__(self, other):
        if type(other) is not HttpRequest:
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    @property
    def query_string(self) -> str:
        """Query parameters joined in insertion order, without encoding."""
        return PARAMETER_SEPARATOR.join(str(p) for p in self.query_parameters)

    def __str__(self) -> str:
        lines = [
            _describe("Method: ", self.method),
            _describe("Content-Type: ", self.content_type),
            _describe("Content: ", self.content),
            _describe("Path: ", self.path),
            _describe("Query parameters: ", self.query_string or None),
        ]
        return "\n".join(lines)


@dataclass(frozen=True, eq=False)
class FullHttpRequest:
    """HttpRequest with an address (domain and port) that can render a url."""

    request: HttpRequest = field(default_factory=HttpRequest)
    domain: Optional[str] = None
    port: Optional[int] = None

    @staticmethod
    def builder() -> 'FullHttpRequestBuilder':
        return FullHttpRequestBuilder()

    @property
    def method(self) -> Optional[Method]:
        return self.request.method

    @property
    def content_type(self) -> Optional[str]:
        return self.request.content_type

    @property
    def content(self) -> Optional[str]:
        return self.request.content

    @property
    def path(self) -> Optional[str]:
        return self.request.path

    @property
    def query_parameters(self) -> Tuple[QueryParameter, ...]:
        return self.request.query_parameters

    def as_http_request(self) -> HttpRequest:
        """Address-free view of this request, as used for matching."""
        return self.request

    @property
    def url(self) -> str:
        """
        Render the request as a url.

        Format: http://{domain}{:port}{path}{?query}. A missing path renders as
        "/" and query parameters follow insertion order.
        """
        url = f"{HTTP_SCHEME}://{self.domain or ''}"
        if self.port is not None:
            url += f"{PORT_SEPARATOR}{self.port}"
        url += self.request.path if self.request.path is not None else "/"
        if self.request.query_parameters:
            url += QUERY_SEPARATOR + self.request.query_string
        return url

    def _key(self):
        return (self.request, self.domain, self.port)

    def __eq__(self, other):
        if type(other) is not FullHttpRequest:
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self) -> str:
        return "\n".join([
            str(self.request),
            _describe("Domain: ", self.domain),
            _describe("Port: ", self.port),
        ])


RequestLike = Union[HttpRequest, FullHttpRequest]


def to_http_request(request: RequestLike) -> HttpRequest:
    """Strip the address from a request if it has one."""
    if isinstance(request, FullHttpRequest):
        return request.as_http_request()
    if isinstance(request, HttpRequest):
        return request
    raise TypeError(f"Expected HttpRequest or FullHttpRequest, got {type(request).__name__}")


def to_full_http_request(request: RequestLike) -> FullHttpRequest:
    if isinstance(request, FullHttpRequest):
        return request
    return FullHttpRequest(request=to_http_request(request))


class HttpRequestBuilder:
    """
    Fluent builder for HttpRequest values.

    Example:
        request = (HttpRequest.builder()
                   .method(Method.GET)
                   .path('/persons')
                   .query_parameter('name', 'Smith')
                   .build())
    """

    def __init__(self):
        self._method: Optional[Method] = None
        self._content_type: Optional[str] = None
        self._content: Optional[str] = None
        self._path: Optional[str] = None
        self._query_parameters: List[QueryParameter] = []

    @classmethod
    def from_request(cls, request: RequestLike) -> 'HttpRequestBuilder':
        """Copy every field of an existing request into a new builder."""
        request = to_http_request(request)
        builder = cls()
        builder._method = request.method
        builder._content_type = request.content_type
        builder._content = request.content
        builder._path = request.path
        builder._query_parameters = list(request.query_parameters)
        return builder

    def method(self, method: Union[Method, str]) -> 'HttpRequestBuilder':
        self._method = Method(method)
        return self

    def content_type(self, content_type: Optional[str]) -> 'HttpRequestBuilder':
        self._content_type = content_type
        return self

    def content(self, content: Optional[str]) -> 'HttpRequestBuilder':
        self._content = content
        return self

    def path(self, path: Optional[str]) -> 'HttpRequestBuilder':
        self._path = path
        return self

    def query_parameter(self, key: str, value: str) -> 'HttpRequestBuilder':
        """Add a query parameter. Key and value must be non-empty."""
        self._query_parameters.append(QueryParameter(key, value))
        return self

    def build(self) -> HttpRequest:
        return HttpRequest(
            method=self._method,
            content_type=self._content_type,
            content=self._content,
            path=self._path,
            query_parameters=tuple(self._query_parameters),
        )


class FullHttpRequestBuilder(HttpRequestBuilder):
    """Builder for FullHttpRequest, adding domain and port setters."""

    def __init__(self):
        super().__init__()
        self._domain: Optional[str] = None
        self._port: Optional[int] = None

    @classmethod
    def from_request(cls, request: RequestLike) -> 'FullHttpRequestBuilder':
        builder = super().from_request(request)
        if isinstance(request, FullHttpRequest):
            builder._domain = request.domain
            builder._port = request.port
        return builder

    def domain(self, domain: Optional[str]) -> 'FullHttpRequestBuilder':
        self._domain = domain
        return self

    def port(self, port: Optional[int]) -> 'FullHttpRequestBuilder':
        if port is not None and (isinstance(port, bool) or not isinstance(port, int)):
            raise TypeError(f"Port should be an int, got {type(port).__name__}")
        self._port = port
        return self

    def build(self) -> FullHttpRequest:
        return FullHttpRequest(
            request=super().build(),
            domain=self._domain,
            port=self._port,
        )
