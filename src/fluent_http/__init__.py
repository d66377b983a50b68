"""fluent-http - fluent configuration, middleware pipeline and JSON helpers over requests/httpx."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.http_client import HttpClient, new_client, client_with_base_url
from .async_client import AsyncHttpClient, new_async_client, async_client_with_base_url
from .core.config import (
    ClientConfig,
    ClientConfigBuilder,
    TimeoutConfig,
    RedirectPolicy,
    RetryConfig,
)
from .core.exceptions import (
    HTTPClientException,
    RequestError,
    ConnectionError,
    TimeoutError,
    ResponseError,
    SerializationError,
    ConfigurationError,
    MiddlewareError,
)
from .core.logging import HTTPClientLogger, LoggingConfig, StdlibSink
from .core.models import PipelineState, Request, Response
from .middleware import (
    Middleware,
    AsyncMiddleware,
    SyncMiddlewareAdapter,
    Pipeline,
    AuthMiddleware,
    HeaderMiddleware,
    LoggingMiddleware,
    RetryMiddleware,
)
from .utils.builders import HeaderBuilder, QueryBuilder, UrlBuilder, headers, query, url

# NullHandler to prevent "No handler found" warnings.
# Users can configure logging themselves using logging.getLogger('fluent_http')
logging.getLogger('fluent_http').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("fluent-http")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Clients
    "HttpClient",
    "AsyncHttpClient",
    "new_client",
    "client_with_base_url",
    "new_async_client",
    "async_client_with_base_url",

    # Config
    "ClientConfig",
    "ClientConfigBuilder",
    "TimeoutConfig",
    "RedirectPolicy",
    "RetryConfig",
    "LoggingConfig",

    # Models
    "PipelineState",
    "Request",
    "Response",

    # Exceptions
    "HTTPClientException",
    "RequestError",
    "ConnectionError",
    "TimeoutError",
    "ResponseError",
    "SerializationError",
    "ConfigurationError",
    "MiddlewareError",

    # Middleware
    "Middleware",
    "AsyncMiddleware",
    "SyncMiddlewareAdapter",
    "Pipeline",
    "AuthMiddleware",
    "HeaderMiddleware",
    "LoggingMiddleware",
    "RetryMiddleware",

    # Logging
    "HTTPClientLogger",
    "StdlibSink",

    # Builders
    "HeaderBuilder",
    "QueryBuilder",
    "UrlBuilder",
    "headers",
    "query",
    "url",

    # Version
    "__version__",
]
