"""Structured logging configuration using structlog.

``configure_logging`` sets up structlog processors, binds the application name
into every event, and routes everything through the stdlib root logger so the
``google-cloud-tasks`` transport logs end up in the same JSON (production) or
console (development) stream as ours.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Chatty third-party loggers pinned to WARNING regardless of the root level.
_NOISY_LOGGERS = ("google", "google.auth", "urllib3", "grpc")


def configure_logging(
    *, json_logs: bool = True, log_level: str = "INFO", app_name: str = "tasksbox"
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_logs: Render JSON when *True*, coloured console output otherwise.
        log_level: Root log level name (e.g. ``"INFO"``, ``"DEBUG"``).
        app_name: Bound as ``app`` on every log event via contextvars.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    # foreign_pre_chain gives stdlib records (e.g. from google.api_core) the
    # same timestamp and level keys as structlog events.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(app=app_name)
