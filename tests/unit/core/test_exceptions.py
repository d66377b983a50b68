"""Тесты иерархии исключений."""

import httpx
import pytest
import requests

from fluent_http.core.exceptions import (
    ConfigurationError,
    ConnectionError,
    HTTPClientException,
    MiddlewareError,
    RequestError,
    ResponseError,
    SerializationError,
    TimeoutError,
    classify_httpx_exception,
    classify_requests_exception,
)


class TestHierarchy:
    def test_all_inherit_base(self):
        for exc_class in (
            RequestError, ConnectionError, TimeoutError, ResponseError,
            SerializationError, ConfigurationError, MiddlewareError,
        ):
            assert issubclass(exc_class, HTTPClientException)

    def test_timeout_and_connection_are_request_errors(self):
        assert issubclass(TimeoutError, RequestError)
        assert issubclass(ConnectionError, RequestError)

    def test_flags(self):
        assert RequestError("x").retryable is True
        assert TimeoutError("x").retryable is True
        assert ConfigurationError("x").fatal is True
        assert SerializationError("x").fatal is True
        assert MiddlewareError("auth").fatal is True
        assert ResponseError(500).retryable is False


class TestFields:
    def test_request_error_keeps_url_and_cause(self):
        cause = OSError("boom")
        error = RequestError("Request failed", "https://api.example.com", cause=cause)
        assert error.url == "https://api.example.com"
        assert error.cause is cause
        assert "https://api.example.com" in str(error)

    def test_timeout_error_message(self):
        error = TimeoutError("Request timeout", "https://x.com", timeout=5.0, timeout_type="connect")
        assert error.timeout == 5.0
        assert error.timeout_type == "connect"
        assert "connect timeout: 5.0s" in str(error)

    def test_response_error_preserves_body(self):
        error = ResponseError(404, "not found", "https://api.example.com/users/1")
        assert error.status_code == 404
        assert error.body == "not found"
        assert str(error) == "HTTP 404 error for https://api.example.com/users/1: not found"

    def test_middleware_error_message(self):
        cause = ValueError("bad header")
        error = MiddlewareError("HeaderMiddleware", cause=cause, phase="request")
        assert error.middleware == "HeaderMiddleware"
        assert error.phase == "request"
        assert error.cause is cause
        assert str(error) == "Middleware 'HeaderMiddleware' failed in request phase: bad header"


class TestClassifyRequests:
    @pytest.mark.parametrize("exc, expected, timeout_type", [
        (requests.exceptions.ConnectTimeout(), TimeoutError, "connect"),
        (requests.exceptions.ReadTimeout(), TimeoutError, "read"),
        (requests.exceptions.ConnectionError(), ConnectionError, None),
        (requests.exceptions.InvalidURL(), RequestError, None),
    ])
    def test_mapping(self, exc, expected, timeout_type):
        result = classify_requests_exception(exc, "https://x.com", 10.0)
        assert type(result) is expected
        assert result.cause is exc
        assert getattr(result, "timeout_type", None) == timeout_type


class TestClassifyHttpx:
    @pytest.mark.parametrize("exc, expected, timeout_type", [
        (httpx.ConnectTimeout("t"), TimeoutError, "connect"),
        (httpx.ReadTimeout("t"), TimeoutError, "total"),
        (httpx.ConnectError("refused"), ConnectionError, None),
        (httpx.RemoteProtocolError("reset"), ConnectionError, None),
        (httpx.UnsupportedProtocol("ftp"), RequestError, None),
    ])
    def test_mapping(self, exc, expected, timeout_type):
        result = classify_httpx_exception(exc, "https://x.com")
        assert type(result) is expected
        assert result.cause is exc
        assert getattr(result, "timeout_type", None) == timeout_type
