"""Tests for logging setup and digest context fields."""

import json
import logging
import os
import sys
from unittest.mock import patch

import pytest

from src.logging_config import (
    NOISY_LOGGERS,
    ContextTextFormatter,
    JSONFormatter,
    configure_logging,
)


@pytest.fixture(autouse=True)
def _reset_root_logger():
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]
    yield
    root.setLevel(original_level)
    root.handlers = original_handlers


def _record(msg="Processed channel", level=logging.INFO, **context):
    record = logging.LogRecord(
        name="src.orchestrator.pipeline",
        level=level,
        pathname="pipeline.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in context.items():
        setattr(record, key, value)
    return record


class TestConfigureLogging:
    def test_level_override_beats_env(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}, clear=True):
            configure_logging(level_override="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "CHATTY"}, clear=True):
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    @pytest.mark.parametrize(
        "log_format, formatter_class",
        [("json", JSONFormatter), ("text", ContextTextFormatter)],
    )
    def test_single_handler_with_selected_formatter(self, log_format, formatter_class):
        logging.getLogger().addHandler(logging.StreamHandler())
        with patch.dict(os.environ, {"LOG_FORMAT": log_format}, clear=True):
            configure_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, formatter_class)

    def test_quiets_client_libraries(self):
        with patch.dict(os.environ, {}, clear=True):
            configure_logging()
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING


class TestJSONFormatter:
    def test_context_fields_emitted(self):
        record = _record(focus="support", channel="general", step="sync")

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Processed channel"
        assert data["focus"] == "support"
        assert data["channel"] == "general"
        assert data["step"] == "sync"

    def test_absent_context_fields_omitted(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        for key in ("focus", "channel", "step", "exception"):
            assert key not in data

    def test_extra_from_logger_call_reaches_output(self):
        captured = []

        class _Capture(logging.Handler):
            def emit(self, record):
                captured.append(JSONFormatter().format(record))

        logger = logging.getLogger("tests.logging_context")
        logger.addHandler(_Capture())
        logger.setLevel(logging.INFO)
        logger.propagate = False

        logger.warning("Channel %s not found", "random", extra={"channel": "random"})

        data = json.loads(captured[0])
        assert data["message"] == "Channel random not found"
        assert data["channel"] == "random"

    def test_exception_included(self):
        try:
            raise ValueError("bad page")
        except ValueError:
            record = _record(level=logging.ERROR, step="digest")
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data["step"] == "digest"
        assert "ValueError: bad page" in data["exception"]


class TestContextTextFormatter:
    def test_appends_context_suffix(self):
        line = ContextTextFormatter().format(_record(channel="general", step="sync"))

        assert line.endswith("Processed channel [channel=general step=sync]")

    def test_plain_line_without_context(self):
        line = ContextTextFormatter().format(_record())

        assert line.endswith("src.orchestrator.pipeline: Processed channel")
