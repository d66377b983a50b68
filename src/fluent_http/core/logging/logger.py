"""
Loggers handed to clients and middlewares.

Nothing here is global: HttpClient builds an HTTPClientLogger from
ClientConfig.logging, LoggingMiddleware receives whatever sink it is given.
Any object with debug/info/warning/error(message, **fields) is a valid sink.
"""

import logging
from typing import Any, Optional, Protocol

from ...utils.sanitizer import mask_sensitive_data
from .config import LoggingConfig, LogLevel
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .formatters import get_formatter
from .handlers import create_console_handler, create_file_handler


class LogSink(Protocol):
    """Structured logging interface used by LoggingMiddleware."""

    def debug(self, message: str, **fields: Any) -> None: ...

    def info(self, message: str, **fields: Any) -> None: ...

    def warning(self, message: str, **fields: Any) -> None: ...

    def error(self, message: str, **fields: Any) -> None: ...


class HTTPClientLogger:
    """
    Self-contained logger with its own handlers.

    The underlying logging.Logger does not propagate to the root logger.
    Every structured field passes through mask_sensitive_data.

    Example:
        >>> config = LoggingConfig.create(level="INFO", format="json")
        >>> logger = HTTPClientLogger(config, name="fluent_http.api")
        >>> logger.info("Request started", method="GET", url="https://api.com")
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = "fluent_http"):
        """
        Args:
            config: Logging configuration (uses defaults if None)
            name: Logger name
        """
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        level = self._get_level(self.config.level)
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False

        # Reinitialization with the same name replaces handlers
        self._logger.handlers.clear()

        filters = []
        if self.config.enable_correlation_id:
            filters.append(CorrelationIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)

        if self.config.enable_console:
            self._logger.addHandler(create_console_handler(level, formatter, filters))

        if self.config.enable_file and self.config.file_path:
            self._logger.addHandler(create_file_handler(
                file_path=self.config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=self.config.max_bytes,
                backup_count=self.config.backup_count,
                filters=filters
            ))

    @staticmethod
    def _get_level(level: LogLevel) -> int:
        return getattr(logging, level.value)

    @property
    def logger(self) -> logging.Logger:
        """Underlying stdlib logger."""
        return self._logger

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, extra=mask_sensitive_data(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Example:
            >>> logger.info("Request completed", status_code=200, duration_ms=150)
        """
        self._logger.info(message, extra=mask_sensitive_data(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, extra=mask_sensitive_data(kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, extra=mask_sensitive_data(kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log with traceback. Call from an exception handler."""
        self._logger.exception(message, extra=mask_sensitive_data(kwargs))

    def close(self) -> None:
        """
        Flush and close all handlers. Idempotent.

        Example:
            >>> with HTTPClientLogger(config) as logger:
            ...     logger.info("Processing...")
        """
        if self._closed:
            return

        for handler in self._logger.handlers[:]:
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class StdlibSink:
    """
    Adapts a plain logging.Logger to the sink interface.

    Fields are masked and passed as ``extra``, so any handler or formatter
    configured by the application receives them as record attributes.

    Example:
        >>> sink = StdlibSink(logging.getLogger("myapp.http"))
        >>> sink.info("Response received", status_code=200)
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, fields: dict) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=mask_sensitive_data(fields))

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, fields)
