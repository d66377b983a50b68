# src/fluent_http/middleware/pipeline.py
"""
Middleware pipeline.

Жизненный цикл запроса:

    CREATED -> REQUEST_PHASE -> DISPATCHED -> RESPONSE_PHASE -> COMPLETED
                     |                |               |
                     +----------------+---------------+--> ABORTED

Обе фазы идут в порядке регистрации (response фаза НЕ в обратном порядке).
Pipeline не меняется во время выполнения запросов и не держит состояние
между вызовами; синхронизацию stateful middleware делает сам middleware.
"""

import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Iterator, List, NoReturn, Optional, Union

from ..core.exceptions import ConfigurationError, MiddlewareError
from ..core.models import PipelineState, Request, Response
from .base import AsyncMiddleware, Middleware, PipelineWrapper

logger = logging.getLogger(__name__)

AnyMiddleware = Union[Middleware, AsyncMiddleware]
Dispatch = Callable[[Request], Response]
AsyncDispatch = Callable[[Request], Awaitable[Response]]


def middleware_name(middleware: Any) -> str:
    return getattr(middleware, 'name', None) or type(middleware).__name__


def _abort(request: Request, middleware: Any, error: Exception, phase: str) -> NoReturn:
    """Перевести запрос в ABORTED и поднять MiddlewareError (вызывать из except)."""
    request.state = PipelineState.ABORTED
    if isinstance(error, MiddlewareError):
        raise error
    name = middleware_name(middleware)
    logger.debug("Middleware %s failed in %s phase: %r", name, phase, error)
    raise MiddlewareError(name, cause=error, phase=phase) from error


class Pipeline:
    """
    Упорядоченный набор middleware плюс контракт выполнения вокруг dispatch.

    Example:
        >>> pipeline = Pipeline().add(AuthMiddleware.bearer("t")).add(LoggingMiddleware())
        >>> response = pipeline.execute(request, transport_call)
    """

    def __init__(self, middlewares: Optional[Iterable[AnyMiddleware]] = None):
        self._middlewares: List[AnyMiddleware] = []
        for middleware in middlewares or ():
            self.add(middleware)

    def add(self, middleware: AnyMiddleware) -> 'Pipeline':
        """
        Добавить middleware в конец.

        Raises:
            ConfigurationError: Объект не реализует хуки middleware
        """
        if not (hasattr(middleware, 'process_request') and hasattr(middleware, 'process_response')):
            raise ConfigurationError(
                f"{type(middleware).__name__} is not a middleware: "
                f"process_request/process_response required"
            )
        self._middlewares.append(middleware)
        return self

    def __len__(self) -> int:
        return len(self._middlewares)

    def __iter__(self) -> Iterator[AnyMiddleware]:
        return iter(self._middlewares)

    def names(self) -> List[str]:
        return [middleware_name(m) for m in self._middlewares]

    @property
    def wrappers(self) -> List[PipelineWrapper]:
        """Middleware, оборачивающие весь вызов (например RetryMiddleware)."""
        return [m for m in self._middlewares if isinstance(m, PipelineWrapper)]

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # SYNC
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def execute(self, request: Request, dispatch: Dispatch) -> Response:
        """
        Прогнать запрос через pipeline на вызывающем потоке.

        Первый зарегистрированный wrapper оказывается самым внешним.

        Raises:
            MiddlewareError: Хук прервал выполнение
            RequestError: Ошибка транспорта (пробрасывается без изменений)
        """
        call = functools.partial(self._run, dispatch=dispatch)
        for wrapper in reversed(self.wrappers):
            call = functools.partial(wrapper.wrap, call)
        return call(request)

    def _run(self, request: Request, dispatch: Dispatch) -> Response:
        request.state = PipelineState.REQUEST_PHASE
        for middleware in self._middlewares:
            try:
                self._call_sync(middleware.process_request, request)
            except Exception as e:
                _abort(request, middleware, e, "request")
            except BaseException:
                request.state = PipelineState.ABORTED
                raise

        response = self._dispatch(request, dispatch)

        request.state = PipelineState.RESPONSE_PHASE
        for middleware in self._middlewares:
            try:
                self._call_sync(middleware.process_response, response)
            except Exception as e:
                _abort(request, middleware, e, "response")
            except BaseException:
                request.state = PipelineState.ABORTED
                raise

        request.state = PipelineState.COMPLETED
        return response

    @staticmethod
    def _call_sync(hook: Callable[[Any], Any], target: Any) -> None:
        result = hook(target)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError("async middleware cannot run in a blocking client")

    @staticmethod
    def _dispatch(request: Request, dispatch: Dispatch) -> Response:
        request.state = PipelineState.DISPATCHED
        try:
            response = dispatch(request)
        except BaseException:
            request.state = PipelineState.ABORTED
            raise
        response.request = request
        return response

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # ASYNC
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def execute_async(self, request: Request, dispatch: AsyncDispatch) -> Response:
        """
        Async вариант execute().

        Sync middleware выполняются inline, async - через await.
        Точки приостановки: dispatch и await внутри async хуков.
        """
        call = functools.partial(self._run_async, dispatch=dispatch)
        for wrapper in reversed(self.wrappers):
            call = functools.partial(wrapper.wrap_async, call)
        return await call(request)

    async def _run_async(self, request: Request, dispatch: AsyncDispatch) -> Response:
        request.state = PipelineState.REQUEST_PHASE
        for middleware in self._middlewares:
            try:
                await self._call_async(middleware.process_request, request)
            except Exception as e:
                _abort(request, middleware, e, "request")
            except BaseException:
                # CancelledError внутри async хука
                request.state = PipelineState.ABORTED
                raise

        request.state = PipelineState.DISPATCHED
        try:
            response = await dispatch(request)
        except BaseException:
            # CancelledError тоже сюда: запрос прерван, ответа нет
            request.state = PipelineState.ABORTED
            raise
        response.request = request

        request.state = PipelineState.RESPONSE_PHASE
        for middleware in self._middlewares:
            try:
                await self._call_async(middleware.process_response, response)
            except Exception as e:
                _abort(request, middleware, e, "response")
            except BaseException:
                request.state = PipelineState.ABORTED
                raise

        request.state = PipelineState.COMPLETED
        return response

    @staticmethod
    async def _call_async(hook: Callable[[Any], Any], target: Any) -> None:
        result = hook(target)
        if inspect.isawaitable(result):
            await result

    def __repr__(self):
        return f"Pipeline({self.names()!r})"
