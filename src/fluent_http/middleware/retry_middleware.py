# src/fluent_http/middleware/retry_middleware.py

import asyncio
import dataclasses
import logging
import time
from typing import Awaitable, Callable, Optional

from ..core.config import RetryConfig
from ..core.models import Request, Response
from ..core.retry_engine import RetryEngine
from ..core.utils import sanitize_url
from .base import Middleware

logger = logging.getLogger(__name__)


class RetryMiddleware(Middleware):
    """
    Повторные попытки для всего вызова pipeline.

    Оборачивает pipeline целиком (wrap/wrap_async): каждая попытка заново
    проходит все хуки со свежей копией запроса и снова делает dispatch.
    Хуки process_request/process_response ничего не делают.

    Ретраит только идемпотентные методы (RetryConfig.idempotent_methods):
    - RequestError/TimeoutError/ConnectionError транспорта
    - статусы из RetryConfig.retryable_status_codes

    Когда попытки кончились: последнее исключение поднимается, а для
    статусов возвращается последний ответ. MiddlewareError, SerializationError
    и ConfigurationError не ретраятся.
    Отброшенный потоковый ответ закрывается перед следующей попыткой.

    Middleware, добавляющий случайный nonce в тело, должен сам обеспечить
    воспроизводимость запроса между попытками.

    Example:
        >>> client.with_middleware(RetryMiddleware(max_attempts=3).with_delay(0.2))
        >>> client.with_middleware(RetryMiddleware(config=RetryConfig(max_attempts=5, backoff_max=10)))
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        config: Optional[RetryConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
        async_sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Args:
            max_attempts: Всего попыток, включая первую (перекрывает config)
            config: Стратегия retry (по умолчанию RetryConfig())
            sleep: Функция ожидания для sync клиента (time.sleep)
            async_sleep: Функция ожидания для async клиента (asyncio.sleep)
        """
        config = config or RetryConfig()
        if max_attempts is not None:
            config = dataclasses.replace(config, max_attempts=max_attempts)
        self.config = config
        self._sleep = sleep or time.sleep
        self._async_sleep = async_sleep or asyncio.sleep

    def with_delay(self, seconds: float) -> 'RetryMiddleware':
        """Фиксированная задержка между попытками вместо exponential backoff."""
        self.config = dataclasses.replace(
            self.config,
            backoff_base=seconds,
            backoff_factor=1.0,
            backoff_max=max(seconds, 0),
            backoff_jitter=False,
        )
        return self

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def wrap(self, call: Callable[[Request], Response], request: Request) -> Response:
        engine = RetryEngine(self.config)
        while True:
            try:
                response = call(request.copy())
            except Exception as e:
                if not engine.should_retry(request.method, error=e):
                    raise
                wait = engine.get_wait_time()
                self._log_retry(engine, request, repr(e), wait)
            else:
                if not engine.should_retry(request.method, response=response):
                    return response
                wait = engine.get_wait_time(response)
                response.close()
                self._log_retry(engine, request, f"status {response.status_code}", wait)

            self._sleep(wait)
            engine.increment()

    async def wrap_async(
        self,
        call: Callable[[Request], Awaitable[Response]],
        request: Request,
    ) -> Response:
        engine = RetryEngine(self.config)
        while True:
            try:
                response = await call(request.copy())
            except Exception as e:
                if not engine.should_retry(request.method, error=e):
                    raise
                wait = engine.get_wait_time()
                self._log_retry(engine, request, repr(e), wait)
            else:
                if not engine.should_retry(request.method, response=response):
                    return response
                wait = engine.get_wait_time(response)
                await response.aclose()
                self._log_retry(engine, request, f"status {response.status_code}", wait)

            await self._async_sleep(wait)
            engine.increment()

    def _log_retry(self, engine: RetryEngine, request: Request, reason: str, wait: float) -> None:
        logger.warning(
            "Retrying %s %s after %s (attempt %d/%d, waiting %.2fs)",
            request.method,
            sanitize_url(request.url),
            reason,
            engine.attempt + 2,
            self.config.max_attempts,
            wait,
        )
