"""Tests for log context, logging utilities and setup_logging."""

import json
import logging

import pytest

from sdk_core.errors import RequestFailedError, ThrottlingError
from sdk_core.logging import (
    JSONFormatter,
    LogContext,
    clear_log_context,
    get_log_context,
    log_exception,
    log_with_context,
    set_log_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogContext:
    def test_set_and_clear(self):
        set_log_context(service="kv", client_request_id="abc")
        assert get_log_context()["service"] == "kv"
        assert get_log_context()["client_request_id"] == "abc"

        clear_log_context()
        assert get_log_context()["service"] == ""

    def test_context_manager_restores(self):
        set_log_context(operation="outer")

        with LogContext(operation="inner", service="svc"):
            assert get_log_context()["operation"] == "inner"
            assert get_log_context()["service"] == "svc"

        assert get_log_context()["operation"] == "outer"
        assert get_log_context()["service"] == ""

    def test_otel_ids_when_span_active(self, tracer):
        with tracer.start_as_current_span("op") as span:
            context = get_log_context()
        assert context["otel_trace_id"] == format(span.get_span_context().trace_id, "032x")
        assert "otel_trace_id" not in get_log_context()


class TestLogUtilities:
    def test_log_with_context_drops_reserved_keys(self, caplog):
        logger = logging.getLogger("sdk_core.test")
        with caplog.at_level(logging.INFO, logger="sdk_core.test"):
            log_with_context(logger, logging.INFO, "hello", http_status=200, message="clash")

        (record,) = caplog.records
        assert record.http_status == 200
        assert record.getMessage() == "hello"

    def test_log_exception_extracts_fields(self, caplog):
        logger = logging.getLogger("sdk_core.test")
        error = RequestFailedError("not found", status=404, error_code="KeyNotFound")

        with caplog.at_level(logging.ERROR, logger="sdk_core.test"):
            log_exception(logger, error, "Get failed", operation="Get")

        (record,) = caplog.records
        assert record.error_category == "permanent"
        assert record.http_status == 404
        assert record.error_type == "RequestFailedError"
        assert record.operation == "Get"
        assert record.exc_info is not None

    def test_log_exception_without_traceback(self, caplog):
        logger = logging.getLogger("sdk_core.test")
        with caplog.at_level(logging.WARNING, logger="sdk_core.test"):
            log_exception(
                logger, ThrottlingError("slow down"), "Throttled",
                level=logging.WARNING, include_traceback=False,
            )

        (record,) = caplog.records
        assert record.error_category == "transient"
        assert not record.exc_info


class TestSetupLogging:
    def test_console_json(self, restore_root_logger, capsys):
        logger = setup_logging(name="sdk_core.setup_test", level="DEBUG", json_format=True)

        logger.info("ready", extra={"operation": "startup"})

        entry = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert entry["message"] == "ready"
        assert entry["operation"] == "startup"

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "sdk.log"

        setup_logging(name="sdk_core.setup_test", log_file=log_file, service="kv")
        logging.getLogger("sdk_core.setup_test").debug("to file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        entry = json.loads(lines[-1])
        assert entry["message"] == "to file"
        assert entry["service"] == "kv"
        assert any(isinstance(h.formatter, JSONFormatter) for h in restore_root_logger.handlers)

    def test_noisy_loggers_suppressed(self, restore_root_logger):
        setup_logging()
        assert logging.getLogger("azure.identity").level == logging.WARNING
