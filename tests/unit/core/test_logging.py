"""Тесты логирования: конфиг, фильтры, форматтеры, HTTPClientLogger, StdlibSink."""

import asyncio
import json
import logging
import sys

import pytest

from fluent_http.core.exceptions import ConfigurationError
from fluent_http.core.logging import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    HTTPClientLogger,
    JSONFormatter,
    LogFormat,
    LoggingConfig,
    LogLevel,
    StdlibSink,
    TextFormatter,
    clear_correlation_id,
    get_correlation_id,
    get_formatter,
    set_correlation_id,
)


def make_record(message="hello", **extra):
    record = logging.LogRecord("fluent_http.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.TEXT
        assert config.enable_console is True

    def test_create(self):
        config = LoggingConfig.create(level="debug", format="JSON")
        assert config.level == LogLevel.DEBUG
        assert config.format == LogFormat.JSON

    @pytest.mark.parametrize("kwargs", [
        {"level": "LOUD"},
        {"format": "xml"},
        {"enable_file": True},
        {"max_bytes": 0},
        {"backup_count": -1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            LoggingConfig.create(**kwargs)


class TestCorrelationId:
    def test_set_get_clear(self):
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_filter(self):
        record = make_record()
        set_correlation_id("req-2")
        try:
            assert CorrelationIdFilter().filter(record) is True
        finally:
            clear_correlation_id()
        assert record.correlation_id == "req-2"

    def test_filter_without_id(self):
        record = make_record()
        CorrelationIdFilter().filter(record)
        assert not hasattr(record, "correlation_id")

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        async def worker(value):
            set_correlation_id(value)
            await asyncio.sleep(0)
            return get_correlation_id()

        results = await asyncio.gather(worker("a"), worker("b"))
        assert results == ["a", "b"]


def test_extra_fields_filter_does_not_overwrite():
    record = make_record(service="own")
    ExtraFieldsFilter({"service": "api", "env": "prod"}).filter(record)
    assert record.service == "own"
    assert record.env == "prod"


class TestFormatters:
    def test_json(self):
        output = json.loads(JSONFormatter().format(make_record("done", status_code=200)))
        assert output["message"] == "done"
        assert output["level"] == "INFO"
        assert output["logger"] == "fluent_http.test"
        assert output["status_code"] == 200
        assert "timestamp" in output

    def test_json_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()
        output = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in output["exception"]

    def test_text(self):
        line = TextFormatter().format(make_record("done", method="GET"))
        assert "[INFO] [fluent_http.test] done" in line
        assert line.endswith("method=GET")

    def test_get_formatter(self):
        assert isinstance(get_formatter("JSON"), JSONFormatter)
        with pytest.raises(ValueError):
            get_formatter("colored")


class TestHTTPClientLogger:
    def test_writes_masked_json(self, logging_config_with_file):
        with HTTPClientLogger(logging_config_with_file, name="fluent_http.test.file") as logger:
            logger.info("Request started", url="https://x.com?token=abc", authorization="Bearer abc")

        with open(logging_config_with_file.file_path, encoding="utf-8") as f:
            record = json.loads(f.readline())

        assert record["message"] == "Request started"
        assert "abc" not in record["url"]
        assert record["authorization"] == "***REDACTED***"

    def test_does_not_propagate(self):
        logger = HTTPClientLogger(LoggingConfig(enable_console=False), name="fluent_http.test.prop")
        assert logger.logger.propagate is False
        assert logger.logger.handlers == []

    def test_reinit_replaces_handlers(self):
        HTTPClientLogger(LoggingConfig(), name="fluent_http.test.reinit")
        logger = HTTPClientLogger(LoggingConfig(), name="fluent_http.test.reinit")
        assert len(logger.logger.handlers) == 1
        logger.close()

    def test_close_idempotent(self):
        logger = HTTPClientLogger(LoggingConfig(), name="fluent_http.test.close")
        logger.close()
        logger.close()
        assert logger.logger.handlers == []

    def test_level(self):
        logger = HTTPClientLogger(LoggingConfig.create(level="WARNING"), name="fluent_http.test.level")
        assert logger.logger.level == logging.WARNING
        logger.close()


class TestStdlibSink:
    def test_fields_as_extra(self, caplog):
        sink = StdlibSink(logging.getLogger("fluent_http.test.sink"))
        with caplog.at_level(logging.INFO, logger="fluent_http.test.sink"):
            sink.info("HTTP response", status_code=201, api_key="k")

        record = caplog.records[-1]
        assert record.getMessage() == "HTTP response"
        assert record.status_code == 201
        assert record.api_key == "***REDACTED***"

    def test_disabled_level_skipped(self, caplog):
        sink = StdlibSink(logging.getLogger("fluent_http.test.sink2"))
        with caplog.at_level(logging.WARNING, logger="fluent_http.test.sink2"):
            sink.debug("noise")
        assert caplog.records == []
