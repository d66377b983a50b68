"""
Иерархия исключений fluent-http.

Классификация:
- RequestError (retryable=True) - сбой транспорта, можно ретраить
- ResponseError - не-2xx статус в строгом режиме (_json методы)
- SerializationError, ConfigurationError, MiddlewareError (fatal=True)

Все исключения несут структурированные поля (статус, тело, имя middleware,
исходная причина), чтобы вызывающий код мог ветвиться без разбора строк.
"""

from typing import Optional

import httpx
import requests

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HTTPClientException(Exception):
    """Базовое исключение fluent-http."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ТРАНСПОРТ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RequestError(HTTPClientException):
    """
    Ошибка транспортного уровня.

    Запрос не дошёл до сервера или ответ не был получен.
    Ядро само не ретраит - только опциональный RetryMiddleware.

    Args:
        message: Описание ошибки
        url: URL запроса
        cause: Исходное исключение транспортной библиотеки
    """
    retryable = True

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        self.url = url
        full_message = message
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message, cause)

class ConnectionError(RequestError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Connection reset
    - DNS resolution failed
    """
    pass

class TimeoutError(RequestError):
    """
    Dispatch превысил настроенный таймаут.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        timeout: Значение таймаута (сек)
        timeout_type: Тип таймаута ('connect', 'read' или 'total')
        cause: Исходное исключение
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        timeout_type: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        self.timeout = timeout
        self.timeout_type = timeout_type

        msg = message
        if timeout_type:
            msg += f" ({timeout_type} timeout"
            if timeout:
                msg += f": {timeout}s"
            msg += ")"

        super().__init__(msg, url, cause)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОТВЕТ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ResponseError(HTTPClientException):
    """
    Не-2xx статус там, где вызывающий код потребовал успешный ответ.

    Тело сохраняется дословно для диагностики.

    Args:
        status_code: HTTP статус
        body: Тело ответа как текст
        url: URL
    """

    def __init__(self, status_code: int, body: str = "", url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.url = url

        msg = f"HTTP {status_code} error"
        if url:
            msg += f" for {url}"
        if body:
            msg += f": {body}"

        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФАТАЛЬНЫЕ ОШИБКИ (fatal=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SerializationError(HTTPClientException):
    """
    Тело не удалось закодировать или декодировать.

    Примеры:
    - Битый JSON
    - JSON не соответствует запрошенной модели
    - Значение не сериализуется в JSON
    """
    fatal = True

class ConfigurationError(HTTPClientException):
    """Ошибка конфигурации (невалидный URL, заголовок, таймаут)."""
    fatal = True

class MiddlewareError(HTTPClientException):
    """
    Middleware прервал выполнение pipeline.

    Args:
        middleware: Имя middleware
        cause: Исходное исключение
        phase: Фаза ('request' или 'response')
    """
    fatal = True

    def __init__(
        self,
        middleware: str,
        cause: Optional[BaseException] = None,
        phase: Optional[str] = None,
        message: Optional[str] = None
    ):
        self.middleware = middleware
        self.phase = phase

        if message is None:
            message = f"Middleware '{middleware}' failed"
            if phase:
                message += f" in {phase} phase"
            if cause is not None:
                message += f": {cause}"

        super().__init__(message, cause)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def classify_requests_exception(
    exc: Exception,
    url: str,
    timeout: Optional[float] = None
) -> HTTPClientException:
    """
    Конвертировать requests.exceptions в наши исключения.

    Args:
        exc: Исключение из requests
        url: URL запроса
        timeout: Таймаут, с которым выполнялся запрос

    Returns:
        Наше исключение с исходным в поле cause

    Examples:
        >>> exc = requests.exceptions.ConnectTimeout()
        >>> our_exc = classify_requests_exception(exc, "https://example.com")
        >>> assert isinstance(our_exc, TimeoutError)
        >>> assert our_exc.timeout_type == "connect"
    """
    if isinstance(exc, requests.exceptions.ConnectTimeout):
        return TimeoutError("Request timeout", url, timeout, "connect", cause=exc)

    elif isinstance(exc, requests.exceptions.Timeout):
        return TimeoutError("Request timeout", url, timeout, "read", cause=exc)

    elif isinstance(exc, requests.exceptions.ConnectionError):
        return ConnectionError(f"Connection error: {exc}", url, cause=exc)

    return RequestError(f"Request failed: {exc}", url, cause=exc)

def classify_httpx_exception(
    exc: Exception,
    url: str,
    timeout: Optional[float] = None
) -> HTTPClientException:
    """
    Конвертировать исключения httpx в наши исключения.

    Args:
        exc: Исключение из httpx
        url: URL запроса
        timeout: Таймаут, с которым выполнялся запрос

    Returns:
        Наше исключение с исходным в поле cause
    """
    if isinstance(exc, httpx.ConnectTimeout):
        return TimeoutError("Request timeout", url, timeout, "connect", cause=exc)

    elif isinstance(exc, httpx.TimeoutException):
        return TimeoutError("Request timeout", url, timeout, "total", cause=exc)

    elif isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError)):
        return ConnectionError(f"Connection error: {exc}", url, cause=exc)

    return RequestError(f"Request failed: {exc}", url, cause=exc)
