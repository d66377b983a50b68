"""
Pytest configuration and fixtures for fluent-http tests.
"""

from typing import Callable, List, Optional

import pytest
import responses as responses_lib

from fluent_http.core.config import ClientConfig
from fluent_http.core.http_client import HttpClient
from fluent_http.core.logging.config import LoggingConfig
from fluent_http.core.models import Request, Response
from fluent_http.middleware.base import Middleware


class FakeTransport:
    """
    Transport stub: records every dispatched request and replays outcomes.

    Each outcome is a Response, an exception instance (raised) or a callable
    taking the Request. The last outcome repeats once the list runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [Response(200)]
        self.requests: List[Request] = []
        self.closed = False

    def _next(self, request: Request) -> Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(request)
        return Response(
            status_code=outcome.status_code,
            headers=dict(outcome.headers),
            content=outcome.content,
            url=outcome.url or request.url,
        )

    @property
    def calls(self) -> int:
        return len(self.requests)

    def send(self, request, timeout, redirect, verify=True, stream=False) -> Response:
        return self._next(request)

    def close(self) -> None:
        self.closed = True


class AsyncFakeTransport(FakeTransport):
    """Async variant of FakeTransport."""

    async def send(self, request, timeout, redirect, verify=True, stream=False) -> Response:
        return self._next(request)

    async def close(self) -> None:
        self.closed = True


class RecordingMiddleware(Middleware):
    """Appends '<name>:request' / '<name>:response' to a shared log."""

    def __init__(self, label: str, log: List[str], on_request: Optional[Callable] = None):
        self.label = label
        self.log = log
        self.on_request = on_request

    @property
    def name(self) -> str:
        return self.label

    def process_request(self, request: Request) -> None:
        self.log.append(f"{self.label}:request")
        if self.on_request:
            self.on_request(request)

    def process_response(self, response: Response) -> None:
        self.log.append(f"{self.label}:response")


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def client(base_url):
    """Blocking client with base URL."""
    client = HttpClient(ClientConfig(base_url=base_url))
    yield client
    client.close()


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig with file logging enabled.

    Uses a temporary directory for log files to avoid cleanup issues.
    """
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(tmp_path / "test.log"),
    )
