# src/fluent_http/async_client.py
"""
Асинхронный HTTP клиент на базе httpx.

Тот же ClientConfig и тот же Pipeline, что у HttpClient. Запрос выполняется
как одна задача; точки приостановки - dispatch и async хуки middleware.
Отмена задачи даёт asyncio.CancelledError, а не исключение fluent-http.
"""

import inspect
from typing import Any, Iterable, Mapping, Optional, Union

from .core.config import ClientConfig
from .core.exceptions import RequestError
from .core.http_client import BaseHttpClient, QueryParams
from .core.models import Request, Response
from .core.transport import AsyncTransport, HttpxTransport
from .middleware.pipeline import AnyMiddleware


class AsyncHttpClient(BaseHttpClient):
    """
    Асинхронный HTTP клиент.

    Sync middleware выполняются inline в event loop; блокирующие
    оборачивайте в SyncMiddlewareAdapter.

    Example:
        >>> async with AsyncHttpClient.with_base_url("https://api.example.com") as client:
        ...     client.with_middleware(AuthMiddleware.bearer("token"))
        ...     user = await client.get_json("/users/1", User)

        >>> # Или без context manager
        >>> client = AsyncHttpClient(config)
        >>> response = await client.get("/users")
        >>> await client.close()
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        middlewares: Optional[Iterable[AnyMiddleware]] = None,
        transport: Optional[AsyncTransport] = None,
    ):
        """
        Args:
            config: Конфигурация (по умолчанию ClientConfig())
            middlewares: Middleware в порядке выполнения (sync или async)
            transport: Транспорт (по умолчанию HttpxTransport)
        """
        super().__init__(config, middlewares=middlewares)
        self._transport = transport or HttpxTransport(
            pool_connections=self._config.pool_connections,
            pool_maxsize=self._config.pool_maxsize,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def close(self) -> None:
        """Закрыть httpx клиент и обработчики логгера."""
        await self._transport.close()
        if self._logger is not None:
            self._logger.close()

    # ==================== Выполнение ====================

    async def _dispatch(self, request: Request) -> Response:
        return await self._transport.send(
            request,
            self._config.timeout,
            self._config.redirect,
            self._config.verify_ssl,
        )

    async def _dispatch_stream(self, request: Request) -> Response:
        return await self._transport.send(
            request,
            self._config.timeout,
            self._config.redirect,
            self._config.verify_ssl,
            stream=True,
        )

    async def send(self, request: Request, stream: bool = False) -> Response:
        """
        Прогнать готовый Request через pipeline и транспорт.

        Args:
            stream: Не читать тело в dispatch (Response.aiter_content / aclose)
        """
        dispatch = self._dispatch_stream if stream else self._dispatch
        started = self._log_started(request)
        try:
            response = await self._pipeline.execute_async(request, dispatch)
        except Exception as e:
            self._log_failed(request, e, started)
            raise
        except BaseException:
            # Отмена задачи
            self._log_cancelled(request, started)
            raise
        self._log_completed(request, response, started)
        return response

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, Any]] = None,
        query: QueryParams = None,
        body: Union[bytes, str, None] = None,
        json: Any = None,
        form: Any = None,
        multipart: Any = None,
    ) -> Response:
        """
        Выполнить запрос. Параметры как у HttpClient.request.

        Raises:
            RequestError: Ошибка транспорта или относительный URL без base_url
            TimeoutError: Превышен таймаут
            MiddlewareError: Middleware прервал запрос
        """
        return await self.send(self._prepare(
            method, url, headers=headers, query=query,
            body=body, json=json, form=form, multipart=multipart,
        ))

    async def get(self, url: str, **kwargs: Any) -> Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Response:
        return await self.request("DELETE", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Response:
        return await self.request("PATCH", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> Response:
        return await self.request("HEAD", url, **kwargs)

    async def options(self, url: str, **kwargs: Any) -> Response:
        return await self.request("OPTIONS", url, **kwargs)

    # ==================== JSON ====================

    async def get_json(self, url: str, model: Any = None, **kwargs: Any) -> Any:
        """
        GET и декодирование JSON ответа.

        Raises:
            ResponseError: Статус вне 2xx
            SerializationError: Тело не декодируется в model
        """
        return self._decode(await self.get(url, **kwargs), model)

    async def post_json(self, url: str, body: Any, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(await self.post(url, json=body, **kwargs), model)

    async def put_json(self, url: str, body: Any, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(await self.put(url, json=body, **kwargs), model)

    async def patch_json(self, url: str, body: Any, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(await self.patch(url, json=body, **kwargs), model)

    async def delete_json(self, url: str, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(await self.delete(url, **kwargs), model)

    # ==================== Прочее ====================

    async def post_form(self, url: str, form: Any, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(await self.post(url, form=form, **kwargs), model)

    async def download_bytes(self, url: str, **kwargs: Any) -> bytes:
        """
        Raises:
            ResponseError: Статус вне 2xx
        """
        response = await self.get(url, **kwargs)
        return response.raise_for_status().content

    async def post_multipart(self, url: str, fields: Any, model: Any = None, **kwargs: Any) -> Any:
        """POST multipart/form-data (поля как у HttpClient.post_multipart)."""
        return self._decode(await self.post(url, multipart=fields, **kwargs), model)

    async def download_to_writer(
        self,
        url: str,
        writer: Any,
        chunk_size: int = 8192,
        **kwargs: Any
    ) -> int:
        """
        Потоковая загрузка тела в writer.

        writer.write может быть обычной функцией (файл, BytesIO) или
        корутиной (async файл).

        Returns:
            Всего записано байт

        Raises:
            ResponseError: Статус вне 2xx
            RequestError: Ошибка сети во время чтения или записи в writer
        """
        response = await self.send(self._prepare("GET", url, **kwargs), stream=True)
        if not response.is_success:
            await response.aread()
            response.raise_for_status()

        written = 0
        chunks = response.aiter_content(chunk_size)
        try:
            async for chunk in chunks:
                try:
                    result = writer.write(chunk)
                    if inspect.isawaitable(result):
                        await result
                except OSError as e:
                    raise RequestError(f"Failed to write response body: {e}", url=response.url, cause=e) from e
                written += len(chunk)
        finally:
            await chunks.aclose()
        return written

    async def request_with_headers(
        self, method: str, url: str, headers: Mapping[str, Any], **kwargs: Any
    ) -> Response:
        return await self.request(method, url, headers=headers, **kwargs)

    async def request_with_query(
        self, method: str, url: str, query: QueryParams, **kwargs: Any
    ) -> Response:
        return await self.request(method, url, query=query, **kwargs)

    def __repr__(self):
        return f"<AsyncHttpClient base_url={self.base_url!r} middlewares={self._pipeline.names()!r}>"


def new_async_client(config: Optional[ClientConfig] = None, **kwargs: Any) -> AsyncHttpClient:
    """Асинхронный клиент с конфигурацией по умолчанию."""
    return AsyncHttpClient(config, **kwargs)


def async_client_with_base_url(base_url: str, **kwargs: Any) -> AsyncHttpClient:
    return AsyncHttpClient.with_base_url(base_url, **kwargs)
