"""Тесты RetryMiddleware."""

from unittest.mock import AsyncMock, Mock

import pytest

from conftest import AsyncFakeTransport, FakeTransport, RecordingMiddleware
from fluent_http import AsyncHttpClient, HttpClient
from fluent_http.core.config import RetryConfig
from fluent_http.core.exceptions import ConnectionError, MiddlewareError, TimeoutError
from fluent_http.core.models import Response
from fluent_http.middleware import RetryMiddleware
from fluent_http.middleware.base import PipelineWrapper

BASE = "https://api.example.com"


def no_sleep(seconds):
    pass


def make_client(transport, *middlewares):
    client = HttpClient.with_base_url(BASE, transport=transport)
    for middleware in middlewares:
        client.with_middleware(middleware)
    return client


class TestConfiguration:
    def test_is_pipeline_wrapper(self):
        assert isinstance(RetryMiddleware(), PipelineWrapper)

    def test_max_attempts_override(self):
        middleware = RetryMiddleware(max_attempts=5, config=RetryConfig(backoff_base=2))
        assert middleware.max_attempts == 5
        assert middleware.config.backoff_base == 2

    def test_with_delay(self):
        middleware = RetryMiddleware(3).with_delay(0.2)
        assert middleware.config.backoff_base == 0.2
        assert middleware.config.backoff_factor == 1.0
        assert middleware.config.backoff_jitter is False


class TestSyncRetry:
    def test_transient_failures_then_success(self):
        transport = FakeTransport(
            ConnectionError("refused"),
            TimeoutError("slow", BASE),
            Response(200, content=b"ok"),
        )
        sleeps = []
        client = make_client(transport, RetryMiddleware(3, sleep=sleeps.append).with_delay(0.1))

        response = client.get("/users")

        assert response.status_code == 200
        assert transport.calls == 3
        assert sleeps == [0.1, 0.1]

    def test_exhausted_raises_last_error(self):
        transport = FakeTransport(ConnectionError("refused"))
        client = make_client(transport, RetryMiddleware(3, sleep=no_sleep))

        with pytest.raises(ConnectionError):
            client.get("/users")
        assert transport.calls == 3

    def test_retryable_status_exhausted_returns_last_response(self):
        transport = FakeTransport(Response(503))
        client = make_client(transport, RetryMiddleware(2, sleep=no_sleep))
        assert client.get("/users").status_code == 503
        assert transport.calls == 2

    def test_retryable_status_then_success(self):
        transport = FakeTransport(Response(502), Response(200))
        client = make_client(transport, RetryMiddleware(3, sleep=no_sleep))
        assert client.get("/users").status_code == 200
        assert transport.calls == 2

    def test_discarded_streamed_response_closed(self):
        stream = Mock()
        transport = FakeTransport(lambda request: Response(503, stream=stream), Response(200))
        client = make_client(transport, RetryMiddleware(3, sleep=no_sleep))
        assert client.get("/users").status_code == 200
        stream.close.assert_called_once()

    def test_non_retryable_status(self):
        transport = FakeTransport(Response(404))
        client = make_client(transport, RetryMiddleware(3, sleep=no_sleep))
        assert client.get("/users").status_code == 404
        assert transport.calls == 1

    def test_post_not_retried(self):
        transport = FakeTransport(ConnectionError("refused"))
        client = make_client(transport, RetryMiddleware(3, sleep=no_sleep))
        with pytest.raises(ConnectionError):
            client.post("/users", json={"a": 1})
        assert transport.calls == 1

    def test_post_retried_when_configured(self):
        transport = FakeTransport(Response(503), Response(201))
        config = RetryConfig(idempotent_methods={"GET", "POST"})
        client = make_client(transport, RetryMiddleware(config=config, sleep=no_sleep))
        assert client.post("/users", json={"a": 1}).status_code == 201
        assert transport.requests[0].body == transport.requests[1].body

    def test_middleware_error_not_retried(self):
        def fail(request):
            raise ValueError("no credentials")

        transport = FakeTransport()
        log = []
        client = make_client(
            transport,
            RetryMiddleware(3, sleep=no_sleep),
            RecordingMiddleware("auth", log, on_request=fail),
        )
        with pytest.raises(MiddlewareError):
            client.get("/users")
        assert log == ["auth:request"]
        assert transport.calls == 0

    def test_every_attempt_runs_all_hooks(self):
        log = []
        transport = FakeTransport(Response(503), Response(200))
        client = make_client(
            transport,
            RecordingMiddleware("a", log),
            RetryMiddleware(3, sleep=no_sleep),
        )
        client.get("/users")
        assert log == ["a:request", "a:response", "a:request", "a:response"]

    def test_each_attempt_gets_fresh_request(self):
        def add_attempt(request):
            request.headers["X-Attempt"] = request.headers.get("X-Attempt", "") + "+"

        transport = FakeTransport(Response(503), Response(200))
        client = make_client(
            transport,
            RetryMiddleware(3, sleep=no_sleep),
            RecordingMiddleware("mark", [], on_request=add_attempt),
        )
        client.get("/users")
        assert [r.headers["X-Attempt"] for r in transport.requests] == ["+", "+"]
        assert transport.requests[0].request_id == transport.requests[1].request_id

    def test_retry_after_honoured(self):
        sleeps = []
        transport = FakeTransport(Response(429, headers={"Retry-After": "3"}), Response(200))
        client = make_client(transport, RetryMiddleware(3, sleep=sleeps.append))
        client.get("/users")
        assert sleeps == [3.0]

    def test_counter_not_shared_between_calls(self):
        transport = FakeTransport(Response(503), Response(200), Response(503), Response(200))
        client = make_client(transport, RetryMiddleware(2, sleep=no_sleep))
        assert client.get("/a").status_code == 200
        assert client.get("/b").status_code == 200
        assert transport.calls == 4


class TestAsyncRetry:
    @pytest.mark.asyncio
    async def test_retries_with_async_sleep(self):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        transport = AsyncFakeTransport(TimeoutError("slow", BASE), Response(200))
        client = AsyncHttpClient.with_base_url(BASE, transport=transport).with_middleware(
            RetryMiddleware(3, async_sleep=fake_sleep).with_delay(0.5)
        )

        response = await client.get("/users")

        assert response.status_code == 200
        assert transport.calls == 2
        assert sleeps == [0.5]

    @pytest.mark.asyncio
    async def test_exhausted(self):
        async def fake_sleep(seconds):
            pass

        transport = AsyncFakeTransport(ConnectionError("refused"))
        client = AsyncHttpClient.with_base_url(BASE, transport=transport).with_middleware(
            RetryMiddleware(2, async_sleep=fake_sleep)
        )
        with pytest.raises(ConnectionError):
            await client.get("/users")
        assert transport.calls == 2

    @pytest.mark.asyncio
    async def test_discarded_streamed_response_closed(self):
        async def fake_sleep(seconds):
            pass

        stream = Mock(aclose=AsyncMock())
        transport = AsyncFakeTransport(lambda request: Response(503, stream=stream), Response(200))
        client = AsyncHttpClient.with_base_url(BASE, transport=transport).with_middleware(
            RetryMiddleware(2, async_sleep=fake_sleep)
        )
        assert (await client.get("/users")).status_code == 200
        stream.aclose.assert_awaited_once()
