# src/fluent_http/core/http_client.py
"""
Блокирующий HTTP клиент.

HttpClient = ClientConfig + Pipeline + Transport. Запрос собирается
(URL, query, заголовки, тело), проходит pipeline и возвращается как Response.
Сырые методы (get, post, ...) никогда не поднимают ResponseError для не-2xx;
``_json`` методы поднимают.
"""

import time
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit

from requests.structures import CaseInsensitiveDict

from ..middleware.base import AsyncMiddleware
from ..middleware.pipeline import AnyMiddleware, Pipeline
from ..utils.builders import QueryBuilder
from ..utils.serialization import JsonSerializer, encode_form, encode_multipart
from .config import ClientConfig
from .exceptions import ConfigurationError, RequestError, SerializationError
from .logging import HTTPClientLogger, clear_correlation_id, set_correlation_id
from .models import Request, Response
from .transport import RequestsTransport, Transport
from .utils import sanitize_url, to_query_params, validate_header_name, validate_header_value

QueryParams = Union[Mapping[str, Any], Iterable, QueryBuilder, str, None]


class BaseHttpClient:
    """
    Общая часть HttpClient и AsyncHttpClient: конфиг, pipeline, сборка запроса,
    декодирование ``_json`` ответов и логирование жизненного цикла.

    Pipeline меняется только при построении клиента (with_middleware) и
    только читается во время запросов.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        middlewares: Optional[Iterable[AnyMiddleware]] = None,
    ):
        self._config = config or ClientConfig()
        self._pipeline = Pipeline()
        self._serializer = JsonSerializer()

        for middleware in middlewares or ():
            self.with_middleware(middleware)

        self._logger: Optional[HTTPClientLogger] = None
        if self._config.logging:
            self._logger = HTTPClientLogger(self._config.logging, name=self._logger_name())

    def _logger_name(self) -> str:
        if self._config.base_url:
            return f"fluent_http.{urlsplit(self._config.base_url).netloc}"
        return "fluent_http.client"

    @classmethod
    def with_base_url(cls, base_url: str, **kwargs: Any):
        """
        Клиент с базовым URL и остальными настройками по умолчанию.

        Raises:
            ConfigurationError: base_url не абсолютный URL
        """
        return cls(ClientConfig(base_url=base_url), **kwargs)

    # ==================== Middleware ====================

    def with_middleware(self, middleware: AnyMiddleware):
        """
        Добавить middleware в конец pipeline.

        Returns:
            self, для цепочки вызовов

        Example:
            >>> client = (
            ...     HttpClient.with_base_url("https://api.example.com")
            ...     .with_middleware(AuthMiddleware.bearer("token"))
            ...     .with_middleware(LoggingMiddleware())
            ... )
        """
        self._pipeline.add(middleware)
        return self

    def add_middleware(self, middleware: AnyMiddleware):
        return self.with_middleware(middleware)

    @property
    def middleware_count(self) -> int:
        return len(self._pipeline)

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> Optional[str]:
        """Base URL (read-only)."""
        return self._config.base_url

    # ==================== Сборка запроса ====================

    def _build_url(self, url: str) -> str:
        """
        Абсолютный URL оставить как есть, относительный склеить с base_url
        ровно через один '/'.

        Raises:
            RequestError: Относительный URL без base_url
        """
        parts = urlsplit(url)
        if parts.scheme and parts.netloc:
            return url

        base = self._config.base_url
        if not base:
            raise RequestError(f"Relative URL '{url}' requires a base URL", url=url)

        path = url.lstrip("/")
        return f"{base}/{path}" if path else base

    @staticmethod
    def _append_query(url: str, query: QueryParams) -> str:
        if query is None:
            return url

        if isinstance(query, str):
            encoded = query.lstrip("?")
        elif isinstance(query, QueryBuilder):
            encoded = query.build()
        elif isinstance(query, (list, tuple)):
            encoded = QueryBuilder().params(query).build()
        else:
            # Mapping, pydantic модель или dataclass
            encoded = QueryBuilder().params(to_query_params(query)).build()

        if not encoded:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{encoded}"

    def _prepare(
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
    ) -> Request:
        """
        Собрать Request: URL + query, дефолтные заголовки, тело, затем
        заголовки вызова (перезаписывают без учёта регистра).
        """
        if sum(value is not None for value in (body, json, form, multipart)) > 1:
            raise TypeError("Only one of body, json, form or multipart can be given")

        request_headers = CaseInsensitiveDict(self._config.headers)
        content: Optional[bytes] = None

        if json is not None:
            content, content_type = self._serializer.encode_body(json)
            request_headers["Content-Type"] = content_type
        elif form is not None:
            content, content_type = encode_form(form)
            request_headers["Content-Type"] = content_type
        elif multipart is not None:
            content, content_type = encode_multipart(multipart)
            request_headers["Content-Type"] = content_type
        elif body is not None:
            if isinstance(body, str):
                content = body.encode("utf-8")
            elif isinstance(body, (bytes, bytearray)):
                content = bytes(body)
            else:
                raise SerializationError(
                    f"Raw body must be bytes or str, got {type(body).__name__}; use json= or form="
                )

        for name, value in (headers or {}).items():
            validate_header_name(name)
            request_headers[name] = validate_header_value(name, value)

        return Request(
            method=method,
            url=self._append_query(self._build_url(url), query),
            headers=request_headers,
            body=content,
        )

    # ==================== Ответы ====================

    def _decode(self, response: Response, model: Any = None) -> Any:
        """
        Строгий режим для ``_json`` методов.

        Raises:
            ResponseError: Статус вне 2xx (статус и тело сохраняются)
            SerializationError: Тело не декодируется в model
        """
        response.raise_for_status()
        if model is None and not response.content:
            return None
        return self._serializer.decode(response.content, model)

    # ==================== Логирование ====================

    def _log_started(self, request: Request) -> float:
        if self._logger:
            set_correlation_id(request.request_id)
            self._logger.info(
                "Request started",
                method=request.method,
                url=sanitize_url(request.url),
                middlewares=self._pipeline.names(),
            )
        return time.perf_counter()

    def _log_completed(self, request: Request, response: Response, started: float) -> None:
        if self._logger:
            self._logger.info(
                "Request completed",
                method=request.method,
                url=sanitize_url(request.url),
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                response_size=len(response.content),
            )
            clear_correlation_id()

    def _log_failed(self, request: Request, error: BaseException, started: float) -> None:
        if self._logger:
            self._logger.error(
                "Request failed",
                method=request.method,
                url=sanitize_url(request.url),
                error=str(error),
                error_type=type(error).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            clear_correlation_id()

    def _log_cancelled(self, request: Request, started: float) -> None:
        # CancelledError, KeyboardInterrupt: не ошибка запроса, но контекст сбросить
        if self._logger:
            self._logger.warning(
                "Request cancelled",
                method=request.method,
                url=sanitize_url(request.url),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            clear_correlation_id()


class HttpClient(BaseHttpClient):
    """
    Блокирующий HTTP клиент.

    Pipeline выполняется на вызывающем потоке до конца; поток заблокирован
    на всё время dispatch. Один клиент можно использовать из нескольких
    потоков: у каждого потока своя requests.Session.

    Example:
        >>> config = (
        ...     ClientConfig.builder()
        ...     .set_base_url("https://api.example.com")
        ...     .with_json_headers()
        ...     .set_timeout(10)
        ...     .build()
        ... )
        >>> with HttpClient(config).with_middleware(AuthMiddleware.bearer("t")) as client:
        ...     user = client.get_json("/users/1", User)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        middlewares: Optional[Iterable[AnyMiddleware]] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Args:
            config: Конфигурация (по умолчанию ClientConfig())
            middlewares: Middleware в порядке выполнения
            transport: Транспорт (по умолчанию RequestsTransport)
        """
        super().__init__(config, middlewares=middlewares)
        self._transport = transport or RequestsTransport(
            pool_connections=self._config.pool_connections,
            pool_maxsize=self._config.pool_maxsize,
        )

    def with_middleware(self, middleware: AnyMiddleware) -> 'HttpClient':
        """
        Raises:
            ConfigurationError: Async middleware в блокирующем клиенте
        """
        if isinstance(middleware, AsyncMiddleware):
            raise ConfigurationError(
                f"{type(middleware).__name__} is async; use AsyncHttpClient"
            )
        return super().with_middleware(middleware)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        """Закрыть транспорт (сессии всех потоков) и обработчики логгера."""
        self._transport.close()
        if self._logger is not None:
            self._logger.close()

    # ==================== Выполнение ====================

    def _dispatch(self, request: Request) -> Response:
        return self._transport.send(
            request,
            self._config.timeout,
            self._config.redirect,
            self._config.verify_ssl,
        )

    def _dispatch_stream(self, request: Request) -> Response:
        return self._transport.send(
            request,
            self._config.timeout,
            self._config.redirect,
            self._config.verify_ssl,
            stream=True,
        )

    def send(self, request: Request, stream: bool = False) -> Response:
        """
        Прогнать готовый Request через pipeline и транспорт.

        Args:
            stream: Не читать тело в dispatch (Response.iter_content / close)
        """
        dispatch = self._dispatch_stream if stream else self._dispatch
        started = self._log_started(request)
        try:
            response = self._pipeline.execute(request, dispatch)
        except Exception as e:
            self._log_failed(request, e, started)
            raise
        except BaseException:
            self._log_cancelled(request, started)
            raise
        self._log_completed(request, response, started)
        return response

    def request(
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
        Выполнить запрос.

        Args:
            method: HTTP метод
            url: Путь (относительно base_url) или абсолютный URL
            headers: Заголовки вызова (поверх дефолтных)
            query: Mapping, пары (key, value) или QueryBuilder
            body: Сырое тело (bytes или str)
            json: Значение для JSON тела (dict, pydantic модель, dataclass)
            form: Mapping для application/x-www-form-urlencoded
            multipart: Поля multipart/form-data (см. encode_multipart)

        Returns:
            Response после всех middleware (статус не проверяется)

        Raises:
            RequestError: Ошибка транспорта или относительный URL без base_url
            TimeoutError: Превышен таймаут
            MiddlewareError: Middleware прервал запрос
            ConfigurationError: Невалидный заголовок вызова
            SerializationError: Тело не сериализуется
        """
        return self.send(self._prepare(
            method, url, headers=headers, query=query,
            body=body, json=json, form=form, multipart=multipart,
        ))

    def get(self, url: str, **kwargs: Any) -> Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> Response:
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> Response:
        return self.request("DELETE", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> Response:
        return self.request("PATCH", url, **kwargs)

    def head(self, url: str, **kwargs: Any) -> Response:
        return self.request("HEAD", url, **kwargs)

    def options(self, url: str, **kwargs: Any) -> Response:
        return self.request("OPTIONS", url, **kwargs)

    # ==================== JSON ====================

    def get_json(self, url: str, model: Any = None, **kwargs: Any) -> Any:
        """
        GET и декодирование JSON ответа.

        Args:
            url: Путь или абсолютный URL
            model: Целевой тип (pydantic модель, dataclass, List[Model], ...);
                   None - обычный JSON

        Raises:
            ResponseError: Статус вне 2xx
            SerializationError: Тело не декодируется в model

        Example:
            >>> user = client.get_json("/users/1", User)
            >>> users = client.get_json("/users", List[User])
        """
        return self._decode(self.get(url, **kwargs), model)

    def post_json(self, url: str, body: Any, model: Any = None, **kwargs: Any) -> Any:
        """
        POST с JSON телом и декодирование JSON ответа.

        Example:
            >>> created = client.post_json("/users", CreateUser(name="A"), User)
        """
        return self._decode(self.post(url, json=body, **kwargs), model)

    def put_json(self, url: str, body: Any, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(self.put(url, json=body, **kwargs), model)

    def patch_json(self, url: str, body: Any, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(self.patch(url, json=body, **kwargs), model)

    def delete_json(self, url: str, model: Any = None, **kwargs: Any) -> Any:
        return self._decode(self.delete(url, **kwargs), model)

    # ==================== Прочее ====================

    def post_form(self, url: str, form: Any, model: Any = None, **kwargs: Any) -> Any:
        """POST application/x-www-form-urlencoded и декодирование JSON ответа."""
        return self._decode(self.post(url, form=form, **kwargs), model)

    def download_bytes(self, url: str, **kwargs: Any) -> bytes:
        """
        Тело ответа целиком.

        Raises:
            ResponseError: Статус вне 2xx
        """
        return self.get(url, **kwargs).raise_for_status().content

    def post_multipart(self, url: str, fields: Any, model: Any = None, **kwargs: Any) -> Any:
        """
        POST multipart/form-data и декодирование JSON ответа.

        Args:
            fields: Mapping или пары (name, value); value - str/bytes или
                    (filename, data[, content_type]) для файла

        Example:
            >>> with open("report.csv", "rb") as f:
            ...     client.post_multipart("/upload", {
            ...         "title": "Q3",
            ...         "file": ("report.csv", f.read(), "text/csv"),
            ...     })
        """
        return self._decode(self.post(url, multipart=fields, **kwargs), model)

    def download_to_writer(
        self,
        url: str,
        writer: Any,
        chunk_size: int = 8192,
        **kwargs: Any
    ) -> int:
        """
        Потоковая загрузка тела в writer (файл, BytesIO, сокет) без
        буферизации всего ответа в памяти.

        Args:
            url: Путь или абсолютный URL
            writer: Объект с методом write(bytes)
            chunk_size: Размер куска чтения

        Returns:
            Всего записано байт

        Raises:
            ResponseError: Статус вне 2xx (тело читается целиком для ошибки)
            RequestError: Ошибка сети во время чтения или записи в writer

        Example:
            >>> with open("archive.zip", "wb") as f:
            ...     written = client.download_to_writer("/archive.zip", f)
        """
        response = self.send(self._prepare("GET", url, **kwargs), stream=True)
        if not response.is_success:
            response.read()
            response.raise_for_status()

        written = 0
        chunks = response.iter_content(chunk_size)
        try:
            for chunk in chunks:
                try:
                    writer.write(chunk)
                except OSError as e:
                    raise RequestError(f"Failed to write response body: {e}", url=response.url, cause=e) from e
                written += len(chunk)
        finally:
            chunks.close()
        return written

    def request_with_headers(
        self, method: str, url: str, headers: Mapping[str, Any], **kwargs: Any
    ) -> Response:
        return self.request(method, url, headers=headers, **kwargs)

    def request_with_query(self, method: str, url: str, query: QueryParams, **kwargs: Any) -> Response:
        return self.request(method, url, query=query, **kwargs)

    def __repr__(self):
        return f"<HttpClient base_url={self.base_url!r} middlewares={self._pipeline.names()!r}>"


def new_client(config: Optional[ClientConfig] = None, **kwargs: Any) -> HttpClient:
    """Блокирующий клиент с конфигурацией по умолчанию."""
    return HttpClient(config, **kwargs)


def client_with_base_url(base_url: str, **kwargs: Any) -> HttpClient:
    return HttpClient.with_base_url(base_url, **kwargs)
