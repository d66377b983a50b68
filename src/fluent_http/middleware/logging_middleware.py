# src/fluent_http/middleware/logging_middleware.py

import logging
import time
from typing import Any, Optional

from ..core.logging import LogSink, StdlibSink
from ..core.models import Request, Response
from ..core.utils import sanitize_url
from .base import Middleware

logger = logging.getLogger(__name__)

_STARTED_AT = "logging_middleware.started_at"


class LoggingMiddleware(Middleware):
    """
    Middleware для логирования HTTP запросов и ответов.

    Пишет method/url/status/duration в переданный sink (HTTPClientLogger
    или любой объект с info/debug(message, **fields)). По умолчанию -
    stdlib логгер ``fluent_http.middleware``. Запрос и ответ не меняет,
    ошибки sink не прерывают pipeline.

    Регистрируйте после AuthMiddleware, чтобы в логах был итоговый запрос.

    Example:
        >>> sink = HTTPClientLogger(LoggingConfig.create(format="json"), name="api")
        >>> client.with_middleware(LoggingMiddleware(sink))
        >>> client.with_middleware(LoggingMiddleware.responses_only())
    """

    def __init__(
        self,
        sink: Optional[LogSink] = None,
        log_requests: bool = True,
        log_responses: bool = True,
    ):
        """
        Args:
            sink: Куда писать записи
            log_requests: Логировать исходящие запросы
            log_responses: Логировать полученные ответы
        """
        self.sink = sink if sink is not None else StdlibSink(logging.getLogger("fluent_http.middleware"))
        self.log_requests = log_requests
        self.log_responses = log_responses

    @classmethod
    def requests_only(cls, sink: Optional[LogSink] = None) -> 'LoggingMiddleware':
        return cls(sink, log_requests=True, log_responses=False)

    @classmethod
    def responses_only(cls, sink: Optional[LogSink] = None) -> 'LoggingMiddleware':
        return cls(sink, log_requests=False, log_responses=True)

    def process_request(self, request: Request) -> None:
        request.metadata[_STARTED_AT] = time.perf_counter()
        if self.log_requests:
            self._emit(
                "HTTP request",
                method=request.method,
                url=sanitize_url(request.url),
                request_id=request.request_id,
            )

    def process_response(self, response: Response) -> None:
        if not self.log_responses:
            return

        request = response.request
        started_at = request.metadata.get(_STARTED_AT) if request is not None else None
        if started_at is not None:
            duration = time.perf_counter() - started_at
        else:
            duration = response.elapsed.total_seconds()

        self._emit(
            "HTTP response",
            method=request.method if request is not None else None,
            url=sanitize_url(response.url or (request.url if request is not None else "")),
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            request_id=request.request_id if request is not None else None,
        )

    def _emit(self, message: str, **fields: Any) -> None:
        try:
            self.sink.info(message, **fields)
        except Exception:
            logger.warning("Log sink %r failed", self.sink, exc_info=True)
