"""
CircusRing - Core Module

Foundational pieces shared by the registry and the cue bus:
- Unified error handling

Usage:
    from core import NotRegisteredError, DependencyExistsError

    try:
        ring.remove(Logger)
    except DependencyExistsError as exc:
        print(exc.dependents)
"""

from core.errors import (
    AsyncRecordError,
    CircularDependencyError,
    CueMasterDisposedError,
    DependencyExistsError,
    DisposalError,
    DuplicateRegistrationError,
    ErrorContext,
    ErrorSeverity,
    NotRegisteredError,
    RegistryDisposedError,
    RingError,
)

__all__ = [
    "RingError",
    "ErrorContext",
    "ErrorSeverity",
    "NotRegisteredError",
    "DuplicateRegistrationError",
    "DependencyExistsError",
    "AsyncRecordError",
    "CircularDependencyError",
    "DisposalError",
    "RegistryDisposedError",
    "CueMasterDisposedError",
]
