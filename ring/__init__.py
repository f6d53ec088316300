"""
CircusRing - Dependency Injection Module

Provides the registry that owns object creation and lifetime:
- Eager, lazy, async lazy, factory and fenix registrations
- Tagged and aliased keys
- Dependency edges that block removal of still-needed services
- Sync and async teardown through Disposable / AsyncDisposable

Usage:
    from ring import CircusRing

    ring = CircusRing()
    ring.register_instance(Logger, Logger())
    ring.register_lazy(Repo, lambda: Repo(ring.resolve(Logger)))
    ring.bind_dependency(Repo, Logger)

    repo = ring.resolve(Repo)

    await ring.remove_all_async()
"""

from ring.container import (
    CircusRing,
    get_ring,
    inject,
    reset_ring,
)
from ring.disposable import (
    AsyncDisposable,
    Disposable,
    DisposalStrategy,
)
from ring.keys import RegistrationKey
from ring.records import (
    AsyncLazyRecord,
    FactoryRecord,
    InstanceRecord,
    LazyRecord,
    RecordState,
    Registration,
)

__all__ = [
    # Registry
    "CircusRing",
    "get_ring",
    "reset_ring",
    "inject",

    # Keys and records
    "RegistrationKey",
    "Registration",
    "RecordState",
    "InstanceRecord",
    "LazyRecord",
    "AsyncLazyRecord",
    "FactoryRecord",

    # Disposal contract
    "Disposable",
    "AsyncDisposable",
    "DisposalStrategy",
]
