"""
Registration records.

Each record owns one registration slot (plus an optional alias slot) and
knows how to produce its instance:

- InstanceRecord: eager singleton, holds the instance from the start
- LazyRecord: built on first resolve and cached; ``fenix=True`` rebuilds
  it on the next resolve after disposal
- AsyncLazyRecord: like LazyRecord but with an async factory; concurrent
  resolutions share one in-flight construction
- FactoryRecord: a fresh instance on every resolve, never cached

Records move through ``RecordState``: UNCONSTRUCTED -> ALIVE -> DISPOSED.
Only fenix records are kept (and later revived) once DISPOSED; the registry
drops every other record on removal.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Optional, Tuple

from core.errors import AsyncRecordError, CircularDependencyError
from ring.disposable import DisposalStrategy, Disposer, disposer_for
from ring.keys import RegistrationKey

FactoryFunc = Callable[[], Any]
AsyncFactoryFunc = Callable[[], Awaitable[Any]]


class RecordState(Enum):
    """Lifecycle state of a registration."""

    UNCONSTRUCTED = "unconstructed"
    ALIVE = "alive"
    DISPOSED = "disposed"


class Registration(ABC):
    """Base class for all registration records."""

    kind: ClassVar[str] = "registration"
    is_async: ClassVar[bool] = False

    def __init__(self, key: RegistrationKey, alias: Optional[Any] = None) -> None:
        self.key = key
        self.alias_key: Optional[RegistrationKey] = None
        if alias is not None and alias != key.service_type:
            self.alias_key = RegistrationKey(alias, key.tag)
        self.state = RecordState.UNCONSTRUCTED
        self.instance: Any = None
        self.strategy = DisposalStrategy.NOOP
        self._disposer: Optional[Disposer] = None

    @property
    def keys(self) -> Tuple[RegistrationKey, ...]:
        if self.alias_key is None:
            return (self.key,)
        return (self.key, self.alias_key)

    @property
    def is_alive(self) -> bool:
        return self.state is RecordState.ALIVE

    @property
    def revivable(self) -> bool:
        """Whether the record survives disposal."""
        return False

    @property
    def needs_async_disposal(self) -> bool:
        return self.is_alive and self.strategy is DisposalStrategy.ASYNC

    @property
    def pending_construction(self) -> Optional["asyncio.Future[Any]"]:
        return None

    def _adopt(self, instance: Any) -> Any:
        self.instance = instance
        self.strategy, self._disposer = disposer_for(instance)
        self.state = RecordState.ALIVE
        return instance

    @abstractmethod
    def resolve(self) -> Any:
        """Return the instance, constructing it when needed."""

    def dispose(self) -> None:
        """Run the instance's synchronous disposal, if any."""
        if not self.is_alive or self._disposer is None:
            return
        if self.strategy is DisposalStrategy.ASYNC:
            raise AsyncRecordError(
                f"{self.key} holds an instance with async disposal, use remove_async",
                key=self.key,
            )
        self._disposer()

    async def dispose_async(self) -> None:
        """Run the instance's disposal, awaiting it when it is async."""
        if not self.is_alive or self._disposer is None:
            return
        if self.strategy is DisposalStrategy.ASYNC:
            await self._disposer()
        else:
            self._disposer()

    def discard(self) -> None:
        """Forget the instance after disposal has been committed."""
        self.instance = None
        self.strategy = DisposalStrategy.NOOP
        self._disposer = None
        self.state = RecordState.DISPOSED

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.key} {self.state.value}>"


class InstanceRecord(Registration):
    """Eager singleton."""

    kind = "instance"

    def __init__(self, key: RegistrationKey, instance: Any, alias: Optional[Any] = None) -> None:
        super().__init__(key, alias)
        self._adopt(instance)

    def resolve(self) -> Any:
        return self.instance


class LazyRecord(Registration):
    """Lazy singleton, optionally self-recreating (fenix)."""

    kind = "lazy"

    def __init__(
        self,
        key: RegistrationKey,
        factory: FactoryFunc,
        alias: Optional[Any] = None,
        fenix: bool = False,
    ) -> None:
        super().__init__(key, alias)
        self.factory = factory
        self.fenix = fenix
        self._constructing = False

    @property
    def revivable(self) -> bool:
        return self.fenix

    def resolve(self) -> Any:
        if self.is_alive:
            return self.instance
        if self._constructing:
            raise CircularDependencyError(
                f"{self.key} was requested again while it was being constructed",
                path=[self.key],
            )
        self._constructing = True
        try:
            return self._adopt(self.factory())
        finally:
            self._constructing = False


class AsyncLazyRecord(Registration):
    """Async lazy singleton with single-flight construction."""

    kind = "lazy_async"
    is_async = True

    def __init__(
        self,
        key: RegistrationKey,
        factory: AsyncFactoryFunc,
        alias: Optional[Any] = None,
        fenix: bool = False,
    ) -> None:
        super().__init__(key, alias)
        self.factory = factory
        self.fenix = fenix
        self._pending: Optional["asyncio.Future[Any]"] = None

    @property
    def revivable(self) -> bool:
        return self.fenix

    @property
    def pending_construction(self) -> Optional["asyncio.Future[Any]"]:
        return self._pending

    def resolve(self) -> Any:
        raise AsyncRecordError(
            f"{self.key} is registered asynchronously, use resolve_async",
            key=self.key,
        )

    def begin_construction(self) -> "asyncio.Future[Any]":
        """
        Return the in-flight construction, starting it if none is running.

        Every caller that arrives while construction is pending gets the
        same future, so the factory runs at most once at a time.
        """
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._construct())
        return self._pending

    async def _construct(self) -> Any:
        try:
            instance = await self.factory()
            return self._adopt(instance)
        finally:
            self._pending = None


class FactoryRecord(Registration):
    """Produces a new instance on every resolve; produced instances are caller-owned."""

    kind = "factory"

    def __init__(self, key: RegistrationKey, factory: FactoryFunc, alias: Optional[Any] = None) -> None:
        super().__init__(key, alias)
        self.factory = factory

    def resolve(self) -> Any:
        return self.factory()
