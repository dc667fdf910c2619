"""Tests for structured logging setup."""

from __future__ import annotations

import logging
from logging.handlers import QueueHandler

import structlog

from taskbreakdown.logger import _add_service, build_processors, setup_logging, stop_logging


def test_logging_writes_through_queue() -> None:
    setup_logging(service="test-api", level="info")
    logging.getLogger("test_queue").info("hello from queue test")
    structlog.get_logger().info("structured hello", request_id="r-1")
    stop_logging()


def test_console_format() -> None:
    setup_logging(service="test-api", level="debug", fmt="console")
    assert logging.getLogger().level == logging.DEBUG
    structlog.get_logger().debug("console line")
    stop_logging()


def test_unknown_level_defaults_to_info() -> None:
    setup_logging(service="test-api", level="chatty")
    assert logging.getLogger().level == logging.INFO
    stop_logging()


def test_setup_twice_replaces_listener() -> None:
    setup_logging(service="test-api")
    setup_logging(service="test-api")
    assert len(logging.getLogger().handlers) == 1
    stop_logging()


def test_stop_logging_is_idempotent() -> None:
    setup_logging(service="test-api", level="info")
    stop_logging()
    stop_logging()


def test_add_service_processor() -> None:
    processor = _add_service("task-breakdown-api")
    assert processor(None, "info", {"event": "x"}) == {"event": "x", "service": "task-breakdown-api"}


def test_stop_logging_detaches_queue_handler() -> None:
    setup_logging(service="test-api")
    stop_logging()
    assert not any(isinstance(h, QueueHandler) for h in logging.getLogger().handlers)


def test_uvicorn_access_log_quieted() -> None:
    setup_logging(service="test-api", level="info")
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
    stop_logging()


def test_json_processors_render_structured_tracebacks() -> None:
    processors = build_processors("test-api")
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)
    assert structlog.processors.dict_tracebacks in processors


def test_console_processors_end_with_console_renderer() -> None:
    processors = build_processors("test-api", fmt="console")
    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
    assert structlog.processors.dict_tracebacks not in processors
