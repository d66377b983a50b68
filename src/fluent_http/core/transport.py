# src/fluent_http/core/transport.py
"""
Транспортный слой - единственная граница с сетью.

Транспорт получает полностью сформированный Request (метод, абсолютный URL,
заголовки, тело) вместе с политикой таймаутов и редиректов и возвращает
Response или поднимает RequestError/TimeoutError. Пулы соединений, TLS и
редиректы выполняет обёрнутая библиотека (requests или httpx).
"""

from datetime import timedelta
from typing import AsyncIterator, Iterator, Optional, Protocol, runtime_checkable

import httpx
import requests
from requests.adapters import HTTPAdapter

from .config import RedirectPolicy, TimeoutConfig
from .exceptions import (
    SerializationError,
    classify_httpx_exception,
    classify_requests_exception,
)
from .models import Request, Response
from .session_manager import ThreadSafeSessionManager


@runtime_checkable
class Transport(Protocol):
    """
    Синхронный транспорт.

    Клиент передаёт stream=True только для потоковых загрузок, поэтому
    транспорт без поддержки потоков может этот аргумент не принимать.
    """

    def send(
        self,
        request: Request,
        timeout: TimeoutConfig,
        redirect: RedirectPolicy,
        verify: bool = True,
        stream: bool = False,
    ) -> Response:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Асинхронный транспорт (stream как у Transport)."""

    async def send(
        self,
        request: Request,
        timeout: TimeoutConfig,
        redirect: RedirectPolicy,
        verify: bool = True,
        stream: bool = False,
    ) -> Response:
        ...

    async def close(self) -> None:
        ...


def _encoding_error(error: UnicodeEncodeError) -> SerializationError:
    # Заголовок, выставленный middleware в обход валидации
    return SerializationError(f"Request headers cannot be encoded: {error}", cause=error)


class _RequestsStream:
    """Непрочитанное тело ответа requests (stream=True)."""

    def __init__(self, raw: requests.Response, url: str, timeout: Optional[float]):
        self._raw = raw
        self._url = url
        self._timeout = timeout

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        try:
            yield from self._raw.iter_content(chunk_size)
        except requests.exceptions.RequestException as e:
            raise classify_requests_exception(e, self._url, self._timeout) from e

    def close(self) -> None:
        self._raw.close()


class _HttpxStream:
    """Непрочитанное тело ответа httpx (stream=True)."""

    def __init__(self, raw: httpx.Response, url: str, timeout: Optional[float]):
        self._raw = raw
        self._url = url
        self._timeout = timeout

    async def aiter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._raw.aiter_bytes(chunk_size):
                yield chunk
        except httpx.HTTPError as e:
            raise classify_httpx_exception(e, self._url, self._timeout) from e

    async def aclose(self) -> None:
        await self._raw.aclose()


class RequestsTransport:
    """
    Блокирующий транспорт на базе requests.

    Каждый поток получает собственную сессию (ThreadSafeSessionManager).
    Ретраев на уровне адаптера нет - их делает только RetryMiddleware.
    """

    def __init__(self, pool_connections: int = 10, pool_maxsize: int = 10):
        """
        Args:
            pool_connections: Количество connection pools для кеширования
            pool_maxsize: Максимум соединений в пуле
        """
        self._pool_connections = pool_connections
        self._pool_maxsize = pool_maxsize
        self._session_manager = ThreadSafeSessionManager(self._create_session)

    def _create_session(self) -> requests.Session:
        """Create configured session."""
        session = requests.Session()

        adapter = HTTPAdapter(
            pool_connections=self._pool_connections,
            pool_maxsize=self._pool_maxsize,
            max_retries=0,
        )
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        return session

    @property
    def session(self) -> requests.Session:
        """Сессия текущего потока."""
        return self._session_manager.get_session()

    def send(
        self,
        request: Request,
        timeout: TimeoutConfig,
        redirect: RedirectPolicy,
        verify: bool = True,
        stream: bool = False,
    ) -> Response:
        """
        Выполнить запрос.

        Args:
            stream: Не читать тело; оно будет доступно через Response.iter_content

        Raises:
            TimeoutError: Превышен таймаут
            ConnectionError: Ошибка соединения
            RequestError: Прочие ошибки транспорта
            SerializationError: Заголовки не кодируются для отправки
        """
        session = self.session
        if redirect.follow:
            session.max_redirects = redirect.max_redirects

        try:
            raw = session.request(
                method=request.method,
                url=request.url,
                headers=dict(request.headers),
                data=request.body,
                timeout=timeout.as_requests(),
                allow_redirects=redirect.follow,
                verify=verify,
                stream=stream,
            )
        except requests.exceptions.RequestException as e:
            raise classify_requests_exception(e, request.url, timeout.total) from e
        except UnicodeEncodeError as e:
            raise _encoding_error(e) from e

        return Response(
            status_code=raw.status_code,
            headers=raw.headers,
            content=b"" if stream else raw.content,
            url=raw.url,
            reason=raw.reason or "",
            elapsed=raw.elapsed or timedelta(),
            request=request,
            stream=_RequestsStream(raw, request.url, timeout.total) if stream else None,
        )

    def close(self) -> None:
        """Закрыть сессии всех потоков."""
        self._session_manager.close_all()


class HttpxTransport:
    """
    Асинхронный транспорт на базе httpx.

    httpx.AsyncClient создаётся лениво при первом запросе: политика
    редиректов и verify фиксируются в момент создания.
    """

    def __init__(
        self,
        pool_connections: int = 10,
        pool_maxsize: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            pool_connections: Максимум keep-alive соединений
            pool_maxsize: Максимум соединений
            client: Готовый httpx.AsyncClient (не закрывается транспортом)
        """
        self._limits = httpx.Limits(
            max_connections=pool_maxsize,
            max_keepalive_connections=pool_connections,
        )
        self._client = client
        self._owns_client = client is None

    def _get_client(self, redirect: RedirectPolicy, verify: bool) -> httpx.AsyncClient:
        """Получить или создать httpx клиент."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=redirect.follow,
                max_redirects=redirect.max_redirects,
                verify=verify,
                limits=self._limits,
            )
        return self._client

    async def send(
        self,
        request: Request,
        timeout: TimeoutConfig,
        redirect: RedirectPolicy,
        verify: bool = True,
        stream: bool = False,
    ) -> Response:
        """
        Выполнить запрос.

        Args:
            stream: Не читать тело; оно будет доступно через Response.aiter_content

        Raises:
            TimeoutError: Превышен таймаут
            ConnectionError: Ошибка соединения
            RequestError: Прочие ошибки транспорта
            SerializationError: Заголовки не кодируются для отправки
        """
        client = self._get_client(redirect, verify)

        try:
            raw_request = client.build_request(
                request.method,
                request.url,
                headers=list(request.headers.items()),
                content=request.body,
                timeout=timeout.as_httpx(),
            )
            raw = await client.send(raw_request, stream=stream, follow_redirects=redirect.follow)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise classify_httpx_exception(e, request.url, timeout.total) from e
        except UnicodeEncodeError as e:
            raise _encoding_error(e) from e

        try:
            elapsed = raw.elapsed
        except RuntimeError:
            # elapsed недоступен, пока поток ответа не закрыт
            elapsed = timedelta()

        return Response(
            status_code=raw.status_code,
            headers=raw.headers.items(),
            content=b"" if stream else raw.content,
            url=str(raw.url),
            reason=raw.reason_phrase,
            elapsed=elapsed,
            request=request,
            stream=_HttpxStream(raw, request.url, timeout.total) if stream else None,
        )

    async def close(self) -> None:
        """Закрыть httpx клиент."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
