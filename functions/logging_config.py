"""
Logging configuration for the subscribe function.

Structured JSON lines on stdout (picked up by CloudWatch) with the service
name and the Lambda request id attached to every event.
"""

import logging
import sys
import time
from contextvars import ContextVar

import structlog

# Lambda aws_request_id of the invocation being handled
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_configured = False


def configure_logging(service_name: str, level: str = "INFO") -> None:
    """
    Configure structured logging once per container.

    Args:
        service_name: Name of the service for log context
        level: stdlib level name, e.g. "INFO" or "DEBUG"
    """
    global _configured
    if _configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    # Lambda's bootstrap installs its own handler on the root logger
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_name(service_name),
            _add_correlation_id,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def _add_service_name(service_name: str):
    """Processor to add service name to all logs."""

    def processor(logger, method_name, event_dict):
        event_dict["service"] = service_name
        return event_dict

    return processor


def _add_correlation_id(logger, method_name, event_dict):
    cid = correlation_id.get()
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def set_correlation_id(cid: str) -> None:
    correlation_id.set(cid)


class Timer:
    """Context manager for timing an outbound call."""

    def __init__(self):
        self._start: float = 0
        self._end: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self._end = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        return round((self._end - self._start) * 1000, 2)


def sanitize_for_logging(value: str | None, visible_chars: int = 8) -> str:
    """Truncate identifiers before they reach the logs."""
    if not value:
        return ""
    if len(value) <= visible_chars:
        return value
    return value[:visible_chars] + "..."


def email_domain(email: str) -> str:
    """Domain part of an address, the only piece of it we log."""
    _, _, domain = email.rpartition("@")
    return domain.lower()
