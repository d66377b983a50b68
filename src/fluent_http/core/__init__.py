"""Core fluent-http модули."""

from .config import (
    TimeoutConfig,
    RedirectPolicy,
    RetryConfig,
    ClientConfig,
    ClientConfigBuilder,
)
from .retry_engine import RetryEngine
from .exceptions import (
    HTTPClientException,
    RequestError,
    ConnectionError,
    TimeoutError,
    ResponseError,
    SerializationError,
    ConfigurationError,
    MiddlewareError,
    classify_requests_exception,
    classify_httpx_exception,
)
from .models import PipelineState, Request, Response
from .transport import AsyncTransport, HttpxTransport, RequestsTransport, Transport
from .http_client import HttpClient, client_with_base_url, new_client

__all__ = [
    # Config
    "TimeoutConfig",
    "RedirectPolicy",
    "RetryConfig",
    "ClientConfig",
    "ClientConfigBuilder",
    # Retry
    "RetryEngine",
    # Models
    "PipelineState",
    "Request",
    "Response",
    # Transport
    "Transport",
    "AsyncTransport",
    "RequestsTransport",
    "HttpxTransport",
    # Client
    "HttpClient",
    "new_client",
    "client_with_base_url",
    # Exceptions
    "HTTPClientException",
    "RequestError",
    "ConnectionError",
    "TimeoutError",
    "ResponseError",
    "SerializationError",
    "ConfigurationError",
    "MiddlewareError",
    "classify_requests_exception",
    "classify_httpx_exception",
]
