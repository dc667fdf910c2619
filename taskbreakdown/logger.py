"""Structured logging for the task breakdown API.

JSON lines carry ``{timestamp, level, logger, service, event, request_id, ...}``;
``request_id`` comes from the HTTP middleware through structlog contextvars.
"""

from __future__ import annotations

import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener

import structlog

# uvicorn's own access line duplicates the middleware's "request handled" event.
_QUIETED_LOGGERS = ("uvicorn.access",)

_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None


def build_processors(service: str, fmt: str = "json") -> list[structlog.types.Processor]:
    """Processor chain for *fmt*: ``json`` (default) or ``console``."""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_service(service),
    ]
    if fmt == "console":
        # ConsoleRenderer prints exc_info itself.
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    return processors


def setup_logging(service: str = "task-breakdown-api", level: str = "info", fmt: str = "json") -> None:
    """Route structlog and stdlib logging through one queue to stdout.

    Call once at startup; calling again replaces the previous listener.
    Request handlers only enqueue records, the listener thread writes them.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    stop_logging()

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=10_000)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)

    global _listener, _queue_handler
    _listener = QueueListener(log_queue, stream_handler, respect_handler_level=True)
    _listener.start()
    _queue_handler = QueueHandler(log_queue)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_queue_handler)
    root.setLevel(log_level)
    for name in _QUIETED_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=build_processors(service, fmt),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def stop_logging() -> None:
    """Flush pending records and detach the queue from the root logger."""
    global _listener, _queue_handler
    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None
    if _listener is not None:
        _listener.stop()
        _listener = None


def _add_service(service: str) -> structlog.types.Processor:
    def processor(
        _logger: structlog.types.WrappedLogger,
        _method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        event_dict["service"] = service
        return event_dict

    return processor
