# src/fluent_http/middleware/auth_middleware.py

import base64
import threading

from ..core.exceptions import ConfigurationError
from ..core.models import Request
from ..core.utils import validate_header_name, validate_header_value
from .base import Middleware


class AuthMiddleware(Middleware):
    """
    Middleware для аутентификации (Bearer, Basic, API key).

    Заголовок выставляется безусловно и перезаписывает существующее значение.
    Конфигурация проверяется при создании, поэтому сам хук не падает.

    Example:
        >>> client.with_middleware(AuthMiddleware.bearer("my-token"))
        >>> client.with_middleware(AuthMiddleware.api_key("X-API-Key", "secret"))
    """

    def __init__(self, header_name: str, scheme: str, credentials: str):
        """
        Args:
            header_name: Заголовок (Authorization или заголовок API ключа)
            scheme: Префикс значения ('Bearer', 'Basic' или '' для API ключа)
            credentials: Токен или ключ
        """
        validate_header_name(header_name)
        self.header_name = header_name
        self.scheme = scheme
        self._lock = threading.Lock()
        self._value = self._format(credentials)

    @classmethod
    def bearer(cls, token: str) -> 'AuthMiddleware':
        return cls("Authorization", "Bearer", token)

    @classmethod
    def basic(cls, token: str) -> 'AuthMiddleware':
        """Basic с уже закодированным base64 токеном."""
        return cls("Authorization", "Basic", token)

    @classmethod
    def basic_credentials(cls, username: str, password: str) -> 'AuthMiddleware':
        token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        return cls.basic(token)

    @classmethod
    def api_key(cls, header_name: str, key: str) -> 'AuthMiddleware':
        return cls(header_name, "", key)

    def _format(self, credentials: str) -> str:
        if not credentials:
            raise ConfigurationError(f"{self.header_name} credentials must not be empty")
        value = f"{self.scheme} {credentials}" if self.scheme else credentials
        return validate_header_value(self.header_name, value)

    def update_token(self, token: str) -> None:
        """Заменить токен для следующих запросов (потокобезопасно)."""
        value = self._format(token)
        with self._lock:
            self._value = value

    def process_request(self, request: Request) -> None:
        with self._lock:
            request.headers[self.header_name] = self._value
