"""
CircusRing - Observability Package

Structured logging with OpenTelemetry trace context.

Usage:
    from observability import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
"""
from observability.logging import (
    LogContext,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
    unbind_context,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    "bind_context",
    "unbind_context",
    "clear_context",
]
