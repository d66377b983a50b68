"""
Retry engine для RetryMiddleware.

Включает:
- Exponential backoff с jitter
- Retry-After header parsing
- Проверку идемпотентности метода

Один RetryEngine на один вызов pipeline: счётчик попыток не делится
между параллельными запросами.
"""

import logging
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from .config import RetryConfig
from .models import Response

logger = logging.getLogger(__name__)

# Нормальные значения: "60" или "Wed, 21 Oct 2015 07:28:00 GMT"
MAX_RETRY_AFTER_LENGTH = 100


class RetryEngine:
    """
    Механизм retry.

    Examples:
        >>> engine = RetryEngine(RetryConfig(max_attempts=3))
        >>> if engine.should_retry('GET', error=error):
        ...     time.sleep(engine.get_wait_time())
        ...     engine.increment()
    """

    def __init__(self, config: RetryConfig):
        """
        Args:
            config: Конфигурация retry
        """
        self.config = config
        self._attempt = 0

    def should_retry(
        self,
        method: str,
        error: Optional[BaseException] = None,
        response: Optional[Response] = None
    ) -> bool:
        """
        Решить, нужна ли ещё одна попытка.

        Args:
            method: HTTP метод
            error: Исключение последней попытки
            response: Ответ последней попытки

        Returns:
            True если нужен retry
        """
        # Следующая попытка не должна превысить лимит
        if self._attempt + 1 >= self.config.max_attempts:
            return False

        if method.upper() not in self.config.idempotent_methods:
            return False

        if error is not None:
            # Фатальные ошибки (MiddlewareError, SerializationError, ...) не ретраим
            if getattr(error, 'fatal', False):
                return False
            return bool(getattr(error, 'retryable', False))

        if response is not None:
            return response.status_code in self.config.retryable_status_codes

        return False

    def get_wait_time(self, response: Optional[Response] = None) -> float:
        """
        Секунды ожидания перед следующей попыткой.

        Retry-After (если разрешён) важнее exponential backoff.
        """
        if self.config.respect_retry_after and response is not None:
            retry_after = self._parse_retry_after(response)
            if retry_after is not None:
                return min(retry_after, self.config.retry_after_max)

        wait = self.config.backoff_base * (
            self.config.backoff_factor ** self._attempt
        )
        wait = min(wait, self.config.backoff_max)

        # Jitter: 50-150% от wait
        if self.config.backoff_jitter:
            wait = wait * (0.5 + random.random())

        return wait

    def _parse_retry_after(self, response: Response) -> Optional[float]:
        """
        Распарсить Retry-After (секунды или HTTP-date).

        Returns:
            Секунды или None для отсутствующего/некорректного значения
        """
        retry_after = response.headers.get('Retry-After')
        if not retry_after:
            return None

        if len(retry_after) > MAX_RETRY_AFTER_LENGTH:
            logger.warning("Retry-After header too long (%d chars), ignoring", len(retry_after))
            return None

        try:
            seconds = float(retry_after)
        except ValueError:
            pass
        else:
            if seconds < 0 or seconds > 86400 * 365:
                logger.warning("Retry-After value out of range: %s", seconds)
                return None
            return seconds

        try:
            retry_date = parsedate_to_datetime(retry_after)
        except (ValueError, TypeError, OverflowError) as e:
            logger.debug("Failed to parse Retry-After header %r: %s", retry_after, e)
            return None

        if retry_date.tzinfo is None:
            retry_date = retry_date.replace(tzinfo=timezone.utc)
        return max(0.0, (retry_date - datetime.now(timezone.utc)).total_seconds())

    def increment(self) -> None:
        """Увеличить счётчик попыток."""
        self._attempt += 1

    @property
    def attempt(self) -> int:
        """Номер текущей попытки (с нуля)."""
        return self._attempt
