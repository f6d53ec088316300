"""
CircusRing - Unified Error Handling

Provides the error hierarchy raised by the registry and the cue bus.

Features:
- Hierarchical exception classes with context preservation
- Error severity levels for prioritized handling
- Structured error context for debugging
- OpenTelemetry integration for error tracing
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
)

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from ring.keys import RegistrationKey


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"      # Non-critical, informational
    INFO = "info"        # Minor issue, operation continues
    WARNING = "warning"  # Potential problem, degraded operation
    ERROR = "error"      # Operation failed
    CRITICAL = "critical"  # Registry-level failure


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    key: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "key": self.key,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
        }

    @classmethod
    def from_current_span(
        cls,
        operation: str,
        component: str,
        **kwargs: Any
    ) -> "ErrorContext":
        """Create context from current OpenTelemetry span."""
        span = trace.get_current_span()
        trace_id = None
        span_id = None

        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                trace_id = format(ctx.trace_id, "032x")
                span_id = format(ctx.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            stack_trace=traceback.format_exc(),
            **kwargs
        )


class RingError(Exception):
    """
    Base exception for all CircusRing errors.

    Provides:
    - Structured error context
    - Severity level
    - Chained exception support
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "RING_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (component: {self.context.component})")
        if self.cause:
            parts.append(f" [caused by: {self.cause}]")
        return "".join(parts)


class NotRegisteredError(RingError, LookupError):
    """Lookup, bind or removal against a key with no registration."""

    error_code = "NOT_REGISTERED"
    default_severity = ErrorSeverity.WARNING

    def __init__(self, key: Any, **kwargs: Any):
        kwargs.setdefault(
            "suggestions",
            ["Register it first with register_instance, register_lazy, "
             "register_lazy_async or register_factory"],
        )
        super().__init__(f"No registration found for {key}", **kwargs)
        self.key = key


class DuplicateRegistrationError(RingError):
    """Registration against an occupied key without replace=True."""

    error_code = "DUPLICATE_REGISTRATION"

    def __init__(self, key: Any, **kwargs: Any):
        kwargs.setdefault("suggestions", ["Pass replace=True to replace it"])
        super().__init__(f"{key} is already registered", **kwargs)
        self.key = key


class DependencyExistsError(RingError):
    """Removal blocked because other registrations still depend on the key."""

    error_code = "DEPENDENCY_EXISTS"

    def __init__(self, key: Any, dependents: Iterable[Any], **kwargs: Any):
        self.key = key
        self.dependents = list(dependents)
        names = ", ".join(str(d) for d in self.dependents)
        super().__init__(
            f"Cannot remove {key}, it is still depended on by: {names}",
            **kwargs,
        )


class AsyncRecordError(RingError):
    """A synchronous operation was attempted on something that needs the async path."""

    error_code = "ASYNC_RECORD"

    def __init__(self, message: str, key: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.key = key


class CircularDependencyError(RingError):
    """A dependency edge or lazy construction would loop back onto itself."""

    error_code = "CIRCULAR_DEPENDENCY"

    def __init__(self, message: str, path: Optional[Iterable[Any]] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.path = list(path or [])


class DisposalError(RingError):
    """One or more disposals failed; ``failures`` maps each key to its exception."""

    error_code = "DISPOSAL_ERROR"

    def __init__(
        self,
        failures: Mapping["RegistrationKey", BaseException],
        message: Optional[str] = None,
        **kwargs: Any,
    ):
        self.failures: Dict["RegistrationKey", BaseException] = dict(failures)
        if message is None:
            details = "; ".join(
                f"{key}: {type(exc).__name__}: {exc}" for key, exc in self.failures.items()
            )
            message = f"{len(self.failures)} disposal(s) failed: {details}"
        if len(self.failures) == 1 and "cause" not in kwargs:
            kwargs["cause"] = next(iter(self.failures.values()))
        super().__init__(message, **kwargs)


class RegistryDisposedError(RingError):
    """The registry has been disposed and can no longer be used."""

    error_code = "REGISTRY_DISPOSED"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str = "This CircusRing has been disposed and cannot be used anymore", **kwargs: Any):
        super().__init__(message, **kwargs)


class CueMasterDisposedError(RingError):
    """A listener was attached to a cue master after it was disposed."""

    error_code = "CUE_MASTER_DISPOSED"

    def __init__(self, message: str = "This cue master has been disposed", **kwargs: Any):
        super().__init__(message, **kwargs)
