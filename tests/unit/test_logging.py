"""Testes para o modulo de logging estruturado."""

from __future__ import annotations

import json
import logging

import structlog

import voxstream.logging as vox_logging


def _reset_logging() -> None:
    """Reset do estado global de logging para isolamento entre testes."""
    vox_logging._configured = False
    structlog.reset_defaults()


def _capture(logger_fn: object) -> list[str]:
    root = logging.getLogger()
    captured: list[str] = []

    class CaptureHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            captured.append(self.format(record))

    handler = CaptureHandler()
    handler.setFormatter(root.handlers[0].formatter)
    root.addHandler(handler)
    try:
        logger_fn()  # type: ignore[operator]
    finally:
        root.removeHandler(handler)
    return captured


class TestGetLogger:
    def setup_method(self) -> None:
        _reset_logging()

    def teardown_method(self) -> None:
        _reset_logging()

    def test_get_logger_returns_bound_logger(self) -> None:
        logger = vox_logging.get_logger("test")
        assert isinstance(logger, structlog.stdlib.BoundLogger)

    def test_get_logger_binds_component(self) -> None:
        logger = vox_logging.get_logger("session.streaming")
        context = logger._context  # type: ignore[attr-defined]
        assert context.get("component") == "session.streaming"

    def test_bind_adds_context(self) -> None:
        logger = vox_logging.get_logger("server.speech_stream")
        bound = logger.bind(session_id="sess_123")
        context = bound._context  # type: ignore[attr-defined]
        assert context.get("component") == "server.speech_stream"
        assert context.get("session_id") == "sess_123"


class TestConfigureLogging:
    def setup_method(self) -> None:
        _reset_logging()

    def teardown_method(self) -> None:
        _reset_logging()

    def test_configure_idempotent(self) -> None:
        vox_logging.configure_logging(log_format="console", level="DEBUG")
        vox_logging.configure_logging(log_format="json", level="ERROR")
        assert vox_logging._configured is True
        assert logging.getLogger().level == logging.DEBUG

    def test_force_reconfigures(self) -> None:
        vox_logging.configure_logging(log_format="console", level="DEBUG")
        vox_logging.configure_logging(log_format="json", level="ERROR", force=True)
        assert logging.getLogger().level == logging.ERROR
        assert len(logging.getLogger().handlers) == 1

    def test_env_sets_level(self, monkeypatch: object) -> None:
        monkeypatch.setenv("VOXSTREAM_LOG_LEVEL", "WARNING")  # type: ignore[attr-defined]
        vox_logging.configure_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_access_log_is_quiet(self) -> None:
        vox_logging.configure_logging(level="DEBUG")
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_json_format_has_required_fields(self) -> None:
        vox_logging.configure_logging(log_format="json", level="DEBUG")
        logger = vox_logging.get_logger("test_component")

        captured = _capture(lambda: logger.info("structured event", key="value"))

        assert len(captured) > 0
        parsed = json.loads(captured[-1])
        assert parsed["event"] == "structured event"
        assert parsed["level"] == "info"
        assert "timestamp" in parsed
        assert parsed["component"] == "test_component"
        assert parsed["key"] == "value"

    def test_contextvars_are_merged(self) -> None:
        vox_logging.configure_logging(log_format="json", level="DEBUG")
        logger = vox_logging.get_logger("test_component")

        structlog.contextvars.bind_contextvars(session_id="sess_abc")
        try:
            captured = _capture(lambda: logger.info("with context"))
        finally:
            structlog.contextvars.clear_contextvars()

        parsed = json.loads(captured[-1])
        assert parsed["session_id"] == "sess_abc"
