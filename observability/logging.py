"""
CircusRing - Structured Logging with Trace Context

Integrates structlog with OpenTelemetry trace context propagation,
so registry log lines carry trace_id and span_id when a span is active.

Features:
- Structured JSON or console logging
- Automatic trace context injection (trace_id, span_id)
- Configurable log levels and output formats
- Context binding for groups of operations

Usage:
    from observability.logging import setup_logging, get_logger

    # Setup at startup
    setup_logging(LoggingConfig(level="DEBUG"))

    # Get logger
    logger = get_logger(__name__)
    logger.debug("Lazy instance constructed", key="Repo[main]")
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from opentelemetry import trace
from structlog.types import EventDict, WrappedLogger

from config import LoggingConfig, get_config

SERVICE_NAME = "circus-ring"

# Global state
_configured: bool = False


def add_trace_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Structlog processor that adds OpenTelemetry trace context to log events.
    """
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def add_service_context(
    service_name: str,
    environment: str,
) -> structlog.types.Processor:
    """
    Create a processor that adds service context to all log events.

    Args:
        service_name: Name of the service
        environment: Deployment environment
    """

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def format_exception(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Flatten an exception passed as ``error=`` into type and message."""
    error = event_dict.get("error")
    if isinstance(error, BaseException):
        event_dict["error"] = {
            "type": type(error).__name__,
            "message": str(error),
        }
    return event_dict


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structlog on top of the standard library logging module.

    Args:
        config: Logging configuration. Uses the global config if not provided.
    """
    global _configured

    if _configured:
        return

    app_config = get_config()
    config = config or app_config.logging

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context(SERVICE_NAME, app_config.env.value),
        add_timestamp,
        add_trace_context,
        format_exception,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if config.json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_stdlib_logging(config)

    _configured = True


def _configure_stdlib_logging(config: LoggingConfig) -> None:
    """Attach handlers to the package loggers only, leaving the root logger alone."""
    handlers: list[logging.Handler] = []
    level = getattr(logging, config.level, logging.INFO)

    if config.log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(console_handler)

    if config.log_to_file:
        from logging.handlers import RotatingFileHandler

        config.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            config.log_file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(file_handler)

    for name in ("ring", "cues"):
        package_logger = logging.getLogger(name)
        package_logger.setLevel(level)
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)
        for handler in handlers:
            package_logger.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Logger name, typically __name__

    Returns:
        Bound logger instance
    """
    if not _configured:
        setup_logging()

    return structlog.get_logger(name)


def shutdown_logging() -> None:
    """Flush and detach the package handlers."""
    global _configured

    for name in ("ring", "cues"):
        package_logger = logging.getLogger(name)
        for handler in package_logger.handlers[:]:
            handler.flush()
            handler.close()
            package_logger.removeHandler(handler)

    _configured = False


class LogContext:
    """
    Context manager for adding contextual information to all logs.

    Example:
        >>> with LogContext(ring="app"):
        ...     ring.remove_all()
    """

    def __init__(self, **kwargs: Any):
        self.context: Dict[str, Any] = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, *args: Any) -> None:
        self.__exit__(*args)


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove contextual variables from log context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()
