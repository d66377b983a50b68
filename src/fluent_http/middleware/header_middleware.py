# src/fluent_http/middleware/header_middleware.py

from typing import Any, Dict, Mapping, Optional

from ..core.models import Request
from ..core.utils import validate_header_name, validate_header_value
from .base import Middleware


class HeaderMiddleware(Middleware):
    """
    Добавляет фиксированные заголовки к каждому запросу.

    Значения проверяются в момент запроса: некорректное имя или значение
    прерывает pipeline с MiddlewareError, запрос не отправляется.

    Example:
        >>> client.with_middleware(
        ...     HeaderMiddleware().with_header("X-Client", "fluent").with_header("X-Env", "prod")
        ... )
    """

    def __init__(self, headers: Optional[Mapping[str, Any]] = None):
        self._headers: Dict[str, Any] = dict(headers or {})

    def with_header(self, name: str, value: Any) -> 'HeaderMiddleware':
        self._headers[name] = value
        return self

    @property
    def headers(self) -> Dict[str, Any]:
        return dict(self._headers)

    def process_request(self, request: Request) -> None:
        validated = {
            validate_header_name(name): validate_header_value(name, value)
            for name, value in self._headers.items()
        }
        request.headers.update(validated)
