"""
Log filters: correlation id and static extra fields.

The correlation id lives in a ContextVar, so every asyncio task and every
thread sees its own value.
"""

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

_correlation_id: ContextVar[Optional[str]] = ContextVar("fluent_http_correlation_id", default=None)


def set_correlation_id(correlation_id: str) -> None:
    """
    Set correlation ID for the current context.

    Example:
        >>> set_correlation_id("req-12345")
        >>> logger.info("Processing request")  # Will include correlation_id
    """
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Correlation ID of the current context or None."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """
    Adds correlation_id to log records when one is set.

    Example:
        >>> handler.addFilter(CorrelationIdFilter())
        >>> set_correlation_id("req-12345")
        >>> logger.info("Request started")  # correlation_id=req-12345
    """

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service, environment, ...) to all records.

    Fields already present on the record are not overwritten.
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
