"""
Integration: сборка клиента из билдеров и middleware поверх реального
requests транспорта (сеть подменяется responses).
"""

import json
import logging
from typing import List

import pytest
import responses
from pydantic import BaseModel

from fluent_http import (
    AuthMiddleware,
    ClientConfig,
    HeaderMiddleware,
    HttpClient,
    LoggingMiddleware,
    ResponseError,
    RetryMiddleware,
    headers,
    query,
    url,
)
from fluent_http.core.logging import HTTPClientLogger, LoggingConfig

BASE = "https://api.example.com"


class Repo(BaseModel):
    id: int
    name: str
    stars: int = 0


@pytest.fixture
def configured_client():
    config = (
        ClientConfig.builder()
        .set_base_url(BASE + "/v1/")
        .set_default_headers(headers().json_headers().user_agent("fluent-test").build())
        .set_timeout(5)
        .build()
    )
    client = (
        HttpClient(config)
        .with_middleware(RetryMiddleware(3, sleep=lambda s: None))
        .with_middleware(AuthMiddleware.bearer("secret-token"))
        .with_middleware(HeaderMiddleware().with_header("X-Client", "integration"))
    )
    yield client
    client.close()


@responses.activate
def test_full_round_trip(configured_client):
    responses.add(responses.GET, BASE + "/v1/repos", status=503)
    responses.add(responses.GET, BASE + "/v1/repos", json=[{"id": 1, "name": "fluent"}])

    repos = configured_client.get_json(
        "repos", List[Repo], query=query().param("sort", "stars").optional_param("q", None)
    )

    assert repos == [Repo(id=1, name="fluent")]
    assert len(responses.calls) == 2
    sent = responses.calls[-1].request
    assert sent.url == BASE + "/v1/repos?sort=stars"
    assert sent.headers["Authorization"] == "Bearer secret-token"
    assert sent.headers["X-Client"] == "integration"
    assert sent.headers["User-Agent"] == "fluent-test"
    assert sent.headers["Accept"] == "application/json"


@responses.activate
def test_url_builder_with_absolute_url(configured_client):
    target = url("https://uploads.example.com").path("files").path("a b/c.txt").build()
    responses.add(responses.GET, target, body=b"content")

    assert configured_client.download_bytes(target) == b"content"
    assert responses.calls[0].request.url == "https://uploads.example.com/files/a%20b%2Fc.txt"


@responses.activate
def test_post_json_and_error_body(configured_client):
    responses.add(responses.POST, BASE + "/v1/repos", status=422, json={"error": "name taken"})

    with pytest.raises(ResponseError) as exc_info:
        configured_client.post_json("/repos", Repo(id=0, name="taken"), Repo)

    assert exc_info.value.status_code == 422
    assert json.loads(exc_info.value.body) == {"error": "name taken"}
    assert len(responses.calls) == 1
    assert json.loads(responses.calls[0].request.body) == {"id": 0, "name": "taken", "stars": 0}


@responses.activate
def test_logging_middleware_with_client_logger(tmp_path):
    log_file = tmp_path / "http.log"
    sink = HTTPClientLogger(
        LoggingConfig.create(format="json", enable_console=False, enable_file=True, file_path=str(log_file)),
        name="fluent_http.integration",
    )
    responses.add(responses.GET, BASE + "/status", json={"ok": True})

    with HttpClient.with_base_url(BASE).with_middleware(LoggingMiddleware(sink)) as client:
        assert client.get_json("/status") == {"ok": True}
    sink.close()

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert [r["message"] for r in records] == ["HTTP request", "HTTP response"]
    assert records[1]["status_code"] == 200
    assert records[0]["request_id"] == records[1]["request_id"]
    assert logging.getLogger("fluent_http.integration").propagate is False
