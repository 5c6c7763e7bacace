"""
Logging for the consumer process.

The consumer logs through an injected stdlib logger; structlog only renders
the records. Queue context bound with bind_context() and the current trace
ids are added to every line.
"""

import logging
import sys
from typing import Any

import structlog
from opentelemetry import trace

from sqsjobs.config import Settings, get_settings

CONSUMER_LOGGER_NAME = "sqsjobs.consumer"

# Loggers from the AWS stack that are too chatty at INFO
NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the active span's trace_id and span_id, if any."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """
    Route stdlib logging through a structlog formatter on stdout.

    Args:
        settings: Source of log level and format. Defaults to the cached
            environment settings.

    Returns:
        The logger to hand to the consumer.
    """
    settings = settings or get_settings()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ExtraAdder(),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings.log_format),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(CONSUMER_LOGGER_NAME)


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every subsequent log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)
