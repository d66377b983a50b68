# src/fluent_http/middleware/base.py
"""
Базовые классы middleware.

Middleware - именованная единица с двумя хуками:
- process_request(request): может менять метод, URL, заголовки и тело
- process_response(response): может менять статус, заголовки и тело

Хуки ничего не возвращают, изменения делаются на месте. Любое исключение
из хука прерывает pipeline с MiddlewareError.
"""

import asyncio
import functools
from typing import Awaitable, Callable, Protocol, runtime_checkable

from ..core.models import Request, Response


class Middleware:
    """
    Синхронный middleware. Оба хука по умолчанию ничего не делают.

    Example:
        >>> class RequestIdMiddleware(Middleware):
        ...     def process_request(self, request):
        ...         request.headers['X-Request-Id'] = request.request_id
    """

    @property
    def name(self) -> str:
        """Имя для MiddlewareError и логов (по умолчанию имя класса)."""
        return type(self).__name__

    def process_request(self, request: Request) -> None:
        pass

    def process_response(self, response: Response) -> None:
        pass

    def __repr__(self):
        return f"<{type(self).__name__} name={self.name!r}>"


class AsyncMiddleware:
    """
    Асинхронный middleware для AsyncHttpClient.

    Хуки могут ждать внешний I/O, например получение свежего токена.

    Example:
        >>> class TokenMiddleware(AsyncMiddleware):
        ...     async def process_request(self, request):
        ...         token = await self.token_source.fetch()
        ...         request.headers['Authorization'] = f"Bearer {token}"
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    async def process_request(self, request: Request) -> None:
        pass

    async def process_response(self, response: Response) -> None:
        pass

    def __repr__(self):
        return f"<{type(self).__name__} name={self.name!r}>"


class SyncMiddlewareAdapter(AsyncMiddleware):
    """
    Адаптер для блокирующих sync middleware в async контексте.

    Хуки выполняются в default executor, чтобы не блокировать event loop.
    Обычные (неблокирующие) sync middleware оборачивать не нужно:
    async pipeline вызывает их напрямую.

    Example:
        >>> client.with_middleware(SyncMiddlewareAdapter(VaultAuthMiddleware()))
    """

    def __init__(self, middleware: Middleware):
        """
        Args:
            middleware: Sync middleware с блокирующими хуками
        """
        self._middleware = middleware

    @property
    def name(self) -> str:
        return self._middleware.name

    async def process_request(self, request: Request) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, functools.partial(self._middleware.process_request, request)
        )

    async def process_response(self, response: Response) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, functools.partial(self._middleware.process_response, response)
        )

    def __repr__(self):
        return f"SyncMiddlewareAdapter({self._middleware!r})"


@runtime_checkable
class PipelineWrapper(Protocol):
    """
    Middleware, оборачивающий весь вызов pipeline целиком.

    ``call`` прогоняет переданный запрос через все хуки и dispatch и
    возвращает финальный Response. Wrapper может вызвать его несколько раз
    (retry) - каждый раз со свежей копией запроса (request.copy()).
    """

    def wrap(self, call: Callable[[Request], Response], request: Request) -> Response:
        ...

    async def wrap_async(
        self,
        call: Callable[[Request], Awaitable[Response]],
        request: Request,
    ) -> Response:
        ...
