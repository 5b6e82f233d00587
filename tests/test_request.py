"""
Tests for mockhttp request and response models

Tests the immutable request values and their builders including:
- Query parameter validation, equality and ordering
- Structural equality independent of query parameter order
- URL rendering for full requests
- Copy construction of builders
- Response validation
"""

import dataclasses

import pytest

from mockhttp.mock.request import (
    FullHttpRequest,
    FullHttpRequestBuilder,
    HttpRequest,
    HttpRequestBuilder,
    Method,
    QueryParameter
)
from mockhttp.mock.response import HttpResponse


@pytest.fixture
def persons_request():
    """GET /persons?name=Smith&gender=female"""
    return (HttpRequest.builder()
            .method(Method.GET)
            .path('/persons')
            .query_parameter('name', 'Smith')
            .query_parameter('gender', 'female')
            .build())


class TestQueryParameter:
    """Test QueryParameter value."""

    def test_equality(self):
        """Test parameters with same key and value are equal."""
        assert QueryParameter('name', 'Smith') == QueryParameter('name', 'Smith')
        assert hash(QueryParameter('name', 'Smith')) == hash(QueryParameter('name', 'Smith'))
        assert QueryParameter('name', 'Smith') != QueryParameter('name', 'Jones')

    def test_ordering(self):
        """Test ordering by key then value."""
        params = [QueryParameter('b', '1'), QueryParameter('a', '2'), QueryParameter('a', '1')]

        assert sorted(params) == [
            QueryParameter('a', '1'),
            QueryParameter('a', '2'),
            QueryParameter('b', '1')
        ]

    def test_string_form(self):
        """Test rendering as key=value without encoding."""
        assert str(QueryParameter('q', 'a b')) == 'q=a b'

    @pytest.mark.parametrize('key,value', [('', 'x'), ('x', ''), (None, 'x'), ('x', None)])
    def test_empty_key_or_value_rejected(self, key, value):
        """Test construction fails immediately for empty parts."""
        with pytest.raises(ValueError):
            QueryParameter(key, value)

    def test_immutable(self):
        """Test parameters cannot be changed after construction."""
        param = QueryParameter('name', 'Smith')

        with pytest.raises(dataclasses.FrozenInstanceError):
            param.value = 'Jones'


class TestHttpRequest:
    """Test HttpRequest value semantics."""

    def test_equal_regardless_of_query_order(self, persons_request):
        """Test query parameters added in a different order give equal requests."""
        other = (HttpRequest.builder()
                 .method(Method.GET)
                 .path('/persons')
                 .query_parameter('gender', 'female')
                 .query_parameter('name', 'Smith')
                 .build())

        assert persons_request == other
        assert hash(persons_request) == hash(other)

    @pytest.mark.parametrize('change', [
        lambda b: b.method(Method.POST),
        lambda b: b.path('/people'),
        lambda b: b.content_type('application/json'),
        lambda b: b.content('{}'),
        lambda b: b.query_parameter('age', '42'),
    ])
    def test_single_field_difference(self, persons_request, change):
        """Test that changing any one field breaks equality."""
        builder = HttpRequestBuilder.from_request(persons_request)
        change(builder)

        assert builder.build() != persons_request

    def test_different_query_value_not_equal(self, persons_request):
        """Test one differing query parameter value breaks equality."""
        other = (HttpRequest.builder()
                 .method(Method.GET)
                 .path('/persons')
                 .query_parameter('name', 'Smith')
                 .query_parameter('gender', 'male')
                 .build())

        assert persons_request != other

    def test_unspecified_fields_take_part_in_equality(self):
        """Test a missing path is not a wildcard."""
        without_path = HttpRequest.builder().method(Method.GET).build()
        with_path = HttpRequest.builder().method(Method.GET).path('/').build()

        assert without_path != with_path

    def test_duplicate_parameters_collapse(self):
        """Test query parameters behave as a set."""
        request = (HttpRequest.builder()
                   .query_parameter('a', '1')
                   .query_parameter('a', '1')
                   .query_parameter('a', '2')
                   .build())

        assert request.query_parameters == (QueryParameter('a', '1'), QueryParameter('a', '2'))

    def test_multiple_values_for_same_key(self):
        """Test same key with different values are distinct entries."""
        one = HttpRequest.builder().query_parameter('tag', 'x').build()
        both = HttpRequest.builder().query_parameter('tag', 'x').query_parameter('tag', 'y').build()

        assert one != both

    def test_method_from_exact_string(self):
        """Test method accepts exact names and rejects other casing."""
        assert HttpRequest.builder().method('DELETE').build().method is Method.DELETE

        with pytest.raises(ValueError):
            HttpRequest.builder().method('get')

    def test_no_normalization(self):
        """Test values are stored as given."""
        request = (HttpRequest.builder()
                   .content_type('Application/JSON')
                   .path('/a%20b')
                   .build())

        assert request.content_type == 'Application/JSON'
        assert request.path == '/a%20b'

    def test_immutable(self, persons_request):
        """Test built requests cannot be changed."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            persons_request.path = '/other'

    def test_string_form(self, persons_request):
        """Test readable multi-line description."""
        text = str(persons_request)

        assert 'Method: GET' in text
        assert 'Path: /persons' in text
        assert 'Content-Type: null' in text
        assert 'Content: null' in text
        assert 'Query parameters: name=Smith&gender=female' in text

    def test_not_equal_to_full_request(self, persons_request):
        """Test plain and full requests are different types of value."""
        full = FullHttpRequest(request=persons_request)

        assert persons_request != full
        assert full.as_http_request() == persons_request


class TestFullHttpRequest:
    """Test FullHttpRequest url rendering and equality."""

    def test_url_rendering(self):
        """Test complete url with domain, port, path and query."""
        request = (FullHttpRequest.builder()
                   .domain('localhost')
                   .port(8081)
                   .path('/persons')
                   .query_parameter('name', 'Smith')
                   .query_parameter('gender', 'female')
                   .build())

        assert request.url == 'http://localhost:8081/persons?name=Smith&gender=female'

    def test_url_without_address_or_path(self):
        """Test defaults when domain, port and path are missing."""
        assert FullHttpRequest.builder().build().url == 'http:///'

    def test_url_without_port(self):
        """Test port separator only appears when port is set."""
        request = FullHttpRequest.builder().domain('example.com').path('/x').build()

        assert request.url == 'http://example.com/x'

    def test_equality_includes_address(self):
        """Test domain and port take part in equality."""
        a = FullHttpRequest.builder().domain('localhost').port(80).path('/').build()
        b = FullHttpRequest.builder().domain('localhost').port(81).path('/').build()

        assert a != b
        assert a.as_http_request() == b.as_http_request()

    def test_delegated_properties(self):
        """Test request fields are readable on the full request."""
        request = (FullHttpRequest.builder()
                   .method(Method.POST)
                   .content_type('text/plain')
                   .content('hello')
                   .path('/echo')
                   .build())

        assert request.method is Method.POST
        assert request.content_type == 'text/plain'
        assert request.content == 'hello'
        assert request.path == '/echo'
        assert request.query_parameters == ()

    def test_string_form_includes_address(self):
        """Test description lists domain and port."""
        text = str(FullHttpRequest.builder().domain('localhost').build())

        assert 'Domain: localhost' in text
        assert 'Port: null' in text

    def test_port_must_be_int(self):
        """Test port setter rejects non-int values."""
        with pytest.raises(TypeError):
            FullHttpRequest.builder().port('8080')


class TestBuilderCopy:
    """Test copy construction of builders."""

    def test_copy_is_independent(self, persons_request):
        """Test mutating a copied builder does not affect the source."""
        source = HttpRequestBuilder.from_request(persons_request)
        copy = HttpRequestBuilder.from_request(source.build())

        copy.query_parameter('age', '42').path('/people')

        assert source.build() == persons_request
        assert copy.build() != persons_request
        assert len(persons_request.query_parameters) == 2

    def test_full_copy_keeps_address(self):
        """Test full builder copies domain and port."""
        original = (FullHttpRequest.builder()
                    .domain('localhost')
                    .port(8081)
                    .path('/persons')
                    .query_parameter('name', 'Smith')
                    .build())

        copied = FullHttpRequestBuilder.from_request(original).build()

        assert copied == original
        assert copied is not original

    def test_full_copy_from_plain_request(self, persons_request):
        """Test full builder accepts a plain request as source."""
        copied = FullHttpRequestBuilder.from_request(persons_request).domain('localhost').build()

        assert copied.as_http_request() == persons_request
        assert copied.domain == 'localhost'
        assert copied.port is None

    def test_builder_reuse_after_build(self):
        """Test building does not share state with later builder calls."""
        builder = HttpRequest.builder().query_parameter('a', '1')
        first = builder.build()

        builder.query_parameter('b', '2')

        assert first.query_parameters == (QueryParameter('a', '1'),)


class TestHttpResponse:
    """Test HttpResponse value."""

    def test_structural_equality(self):
        """Test responses with equal fields are equal."""
        assert HttpResponse(200, 'text/plain', 'pong') == HttpResponse(200, 'text/plain', 'pong')
        assert HttpResponse(200, 'text/plain', 'pong') != HttpResponse(201, 'text/plain', 'pong')

    def test_invalid_status_code(self):
        """Test status codes outside the HTTP range are rejected."""
        with pytest.raises(ValueError):
            HttpResponse(42)

        with pytest.raises(TypeError):
            HttpResponse('200')

    def test_to_dict(self):
        """Test converting response to dictionary."""
        data = HttpResponse(204).to_dict()

        assert data == {'status_code': 204, 'content_type': None, 'content': None}
