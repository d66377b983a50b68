"""Middleware pipeline and built-in middlewares."""

from .auth_middleware import AuthMiddleware
from .base import AsyncMiddleware, Middleware, PipelineWrapper, SyncMiddlewareAdapter
from .header_middleware import HeaderMiddleware
from .logging_middleware import LoggingMiddleware
from .pipeline import Pipeline
from .retry_middleware import RetryMiddleware

__all__ = [
    'Middleware',
    'AsyncMiddleware',
    'SyncMiddlewareAdapter',
    'PipelineWrapper',
    'Pipeline',
    'AuthMiddleware',
    'HeaderMiddleware',
    'LoggingMiddleware',
    'RetryMiddleware',
]
