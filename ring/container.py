"""
CircusRing - Dependency Injection Registry

A service locator mapping (type, tag) keys to registration records, with
dependency edges that block premature removal and ordered sync/async
teardown.

Features:
- Eager, lazy, async lazy, factory and fenix (self-recreating) registrations
- Alias types resolving to the same record
- Single-flight async construction
- Dependency edges with cycle detection
- Disposal through Disposable / AsyncDisposable instances
- Aggregated failure reporting for full teardown
"""

from __future__ import annotations

import asyncio
import threading
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Set,
    Type,
    TypeVar,
    Union,
)

from config import get_config
from core.errors import (
    AsyncRecordError,
    CircularDependencyError,
    DependencyExistsError,
    DisposalError,
    DuplicateRegistrationError,
    ErrorContext,
    NotRegisteredError,
    RegistryDisposedError,
)
from observability.logging import get_logger
from ring.keys import RegistrationKey
from ring.records import (
    AsyncLazyRecord,
    FactoryRecord,
    InstanceRecord,
    LazyRecord,
    Registration,
)

T = TypeVar("T")

ServiceKey = Union[RegistrationKey, Any]

logger = get_logger("ring.container")

# Global registry instance
_ring: Optional["CircusRing"] = None
_ring_lock = threading.Lock()


class CircusRing:
    """
    Dependency injection registry.

    Usage:
        ring = CircusRing()

        ring.register_instance(Logger, Logger())
        ring.register_lazy(Repo, lambda: Repo(ring.resolve(Logger)))
        ring.bind_dependency(Repo, Logger)

        repo = ring.resolve(Repo)

        ring.remove(Repo)
        ring.remove(Logger)
    """

    def __init__(self, enable_logs: Optional[bool] = None, name: str = "ring") -> None:
        self._records: Dict[RegistrationKey, Registration] = {}
        # dependent primary key -> the primary keys it depends on
        self._dependencies: Dict[RegistrationKey, Set[RegistrationKey]] = {}
        # dependency primary key -> the primary keys depending on it
        self._dependents: Dict[RegistrationKey, Set[RegistrationKey]] = {}
        self._removals: Dict[Registration, "asyncio.Future[bool]"] = {}
        self._lock = threading.RLock()
        self._disposed = False
        self.name = name
        self.enable_logs = get_config().ring_debug_logs if enable_logs is None else enable_logs

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _log(self, event: str, **kwargs: Any) -> None:
        if not self.enable_logs:
            return
        # log sink failures never fail a registry operation
        try:
            logger.debug(event, ring=self.name, **kwargs)
        except Exception:
            pass

    def _check_disposed(self) -> None:
        if self._disposed:
            raise RegistryDisposedError(context=self._context("use"))

    def _context(self, operation: str, key: Optional[Any] = None) -> ErrorContext:
        return ErrorContext.from_current_span(
            operation,
            f"ring.{self.name}",
            key=str(key) if key is not None else None,
        )

    def _get_record(self, key: RegistrationKey, operation: str = "resolve") -> Registration:
        self._check_disposed()
        record = self._records.get(key)
        if record is None:
            raise NotRegisteredError(key, context=self._context(operation, key))
        return record

    def _owns(self, record: Registration) -> bool:
        """Whether ``record`` still holds its primary key."""
        return self._records.get(record.key) is record

    def _unique_records(self) -> List[Registration]:
        seen: Set[int] = set()
        records = []
        for record in self._records.values():
            if id(record) not in seen:
                seen.add(id(record))
                records.append(record)
        return records

    def _find_by_tag(self, tag: str) -> Optional[Registration]:
        for key, record in self._records.items():
            if key.tag == tag:
                return record
        return None

    def _store(self, record: Registration, replace: bool) -> None:
        failures: Dict[RegistrationKey, BaseException] = {}
        with self._lock:
            self._check_disposed()
            occupied: List[Registration] = []
            for key in record.keys:
                existing = self._records.get(key)
                if existing is None or existing in occupied:
                    continue
                if not replace:
                    raise DuplicateRegistrationError(key, context=self._context("register", key))
                occupied.append(existing)

            for old in occupied:
                # a record leaving its slot entirely must not strand dependents
                if old.key != record.key:
                    self._ensure_no_dependents(old, "replace")
                if old.needs_async_disposal or old.pending_construction is not None or old in self._removals:
                    raise AsyncRecordError(
                        f"Cannot replace {old.key} synchronously, remove it with remove_async first",
                        key=old.key,
                        context=self._context("replace", old.key),
                    )

            # every old record is disposed before any slot changes hands
            for old in occupied:
                try:
                    old.dispose()
                except Exception as exc:
                    failures[old.key] = exc
                    logger.warning("Disposal failed during replace", key=str(old.key), error=exc)

            for old in occupied:
                old.discard()
                if old.key == record.key:
                    self._unmap(old)
                else:
                    self._drop(old)
                self._log("Registration replaced", key=str(old.key), kind=old.kind)

            for key in record.keys:
                self._records[key] = record

        self._log(
            "Registration added",
            key=str(record.key),
            alias=str(record.alias_key) if record.alias_key else None,
            kind=record.kind,
        )
        if failures:
            raise DisposalError(failures, context=self._context("replace", record.key))

    def _unmap(self, record: Registration) -> None:
        for key in record.keys:
            if self._records.get(key) is record:
                del self._records[key]

    def _drop(self, record: Registration) -> None:
        """Remove the record's keys and every edge touching it, if it still owns its key."""
        owned = self._owns(record)
        self._unmap(record)
        if not owned:
            return
        self._clear_outgoing(record.key)
        for dependent in self._dependents.pop(record.key, set()):
            targets = self._dependencies.get(dependent)
            if targets is not None:
                targets.discard(record.key)
                if not targets:
                    del self._dependencies[dependent]

    def _clear_outgoing(self, key: RegistrationKey) -> None:
        for dependency in self._dependencies.pop(key, set()):
            dependents = self._dependents.get(dependency)
            if dependents is not None:
                dependents.discard(key)
                if not dependents:
                    del self._dependents[dependency]

    def _ensure_no_dependents(self, record: Registration, operation: str = "remove") -> None:
        dependents = self._dependents.get(record.key)
        if dependents:
            raise DependencyExistsError(
                record.key,
                sorted(dependents, key=str),
                context=self._context(operation, record.key),
            )

    def _commit_removal(self, record: Registration, purge: bool) -> None:
        if record.revivable and not purge:
            record.discard()
            if self._owns(record):
                self._clear_outgoing(record.key)
            self._log("Fenix instance disposed, will be rebuilt on next resolve", key=str(record.key))
        else:
            self._drop(record)
            record.discard()
            self._log("Registration removed", key=str(record.key), kind=record.kind)

    def _path_between(
        self, start: RegistrationKey, goal: RegistrationKey
    ) -> Optional[List[RegistrationKey]]:
        stack = [(start, [start])]
        visited: Set[RegistrationKey] = set()
        while stack:
            current, path = stack.pop()
            if current == goal:
                return path
            if current in visited:
                continue
            visited.add(current)
            for nxt in self._dependencies.get(current, ()):
                stack.append((nxt, path + [nxt]))
        return None

    def _teardown_order(self, records: List[Registration]) -> List[Registration]:
        """Dependents before their dependencies, otherwise newest first."""
        remaining = list(records)
        blocked_by = {
            record.key: set(self._dependents.get(record.key, ())) for record in remaining
        }
        order: List[Registration] = []
        while remaining:
            for record in reversed(remaining):
                if not blocked_by[record.key]:
                    break
            else:
                record = remaining[-1]
            remaining.remove(record)
            order.append(record)
            for blockers in blocked_by.values():
                blockers.discard(record.key)
        return order

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_instance(
        self,
        service_type: Type[T],
        instance: T,
        tag: Optional[str] = None,
        alias: Optional[Any] = None,
        replace: bool = False,
    ) -> T:
        """Register an already constructed singleton and return it."""
        self._store(InstanceRecord(RegistrationKey(service_type, tag), instance, alias), replace)
        return instance

    async def register_instance_async(
        self,
        service_type: Type[T],
        factory: Callable[[], Awaitable[T]],
        tag: Optional[str] = None,
        alias: Optional[Any] = None,
        replace: bool = False,
    ) -> T:
        """
        Await ``factory`` and register its result as an eager singleton.

        The slot is checked before the factory runs and again once it has
        finished, so a registration made while it was awaited raises
        DuplicateRegistrationError (or is replaced with ``replace=True``).
        A built instance that cannot be stored is disposed before the error
        propagates.
        """
        key = RegistrationKey(service_type, tag)
        with self._lock:
            self._check_disposed()
            if not replace:
                for slot in InstanceRecord(key, None, alias).keys:
                    if slot in self._records:
                        raise DuplicateRegistrationError(slot, context=self._context("register", slot))

        self._log("Building instance asynchronously", key=str(key))
        instance = await factory()
        record = InstanceRecord(key, instance, alias)
        try:
            self._store(record, replace)
        except DuplicateRegistrationError:
            try:
                await record.dispose_async()
            except Exception as exc:
                logger.warning("Disposal of unregistered instance failed", key=str(key), error=exc)
            raise
        return instance

    def register_lazy(
        self,
        service_type: Type[T],
        factory: Callable[[], T],
        tag: Optional[str] = None,
        alias: Optional[Any] = None,
        fenix: bool = False,
        replace: bool = False,
    ) -> "CircusRing":
        """
        Register a singleton built on first resolve.

        With ``fenix=True`` the record survives removal and the factory
        runs again on the next resolve.
        """
        self._store(
            LazyRecord(RegistrationKey(service_type, tag), factory, alias, fenix=fenix),
            replace,
        )
        return self

    def register_lazy_async(
        self,
        service_type: Type[T],
        factory: Callable[[], Awaitable[T]],
        tag: Optional[str] = None,
        alias: Optional[Any] = None,
        fenix: bool = False,
        replace: bool = False,
    ) -> "CircusRing":
        """Register a singleton built by an async factory on first resolve_async."""
        self._store(
            AsyncLazyRecord(RegistrationKey(service_type, tag), factory, alias, fenix=fenix),
            replace,
        )
        return self

    def register_factory(
        self,
        service_type: Type[T],
        factory: Callable[[], T],
        tag: Optional[str] = None,
        alias: Optional[Any] = None,
        replace: bool = False,
    ) -> "CircusRing":
        """Register a factory invoked on every resolve."""
        self._store(FactoryRecord(RegistrationKey(service_type, tag), factory, alias), replace)
        return self

    def draft(
        self,
        factory: Callable[[], T],
        service_type: Optional[Any] = None,
        tag: Optional[str] = None,
    ) -> T:
        """Build an instance without registering it."""
        self._check_disposed()
        self._log(
            "Drafting instance",
            key=str(RegistrationKey(service_type, tag)) if service_type is not None else None,
        )
        return factory()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, service_type: Type[T], tag: Optional[str] = None) -> T:
        """
        Resolve an instance synchronously.

        Raises:
            NotRegisteredError: nothing is registered under the key
            AsyncRecordError: the key holds an async lazy registration
        """
        key = RegistrationKey.of(service_type, tag)
        with self._lock:
            record = self._get_record(key)
            constructing = not record.is_alive
            instance = record.resolve()
        if constructing:
            self._log("Instance resolved", key=str(key), kind=record.kind, constructed=record.is_alive)
        return instance

    async def resolve_async(self, service_type: Type[T], tag: Optional[str] = None) -> T:
        """
        Resolve an instance, awaiting async lazy construction when needed.

        Concurrent calls for an unconstructed async record share one
        construction. Non-async records resolve immediately.
        """
        key = RegistrationKey.of(service_type, tag)
        with self._lock:
            record = self._get_record(key, "resolve_async")
            if not isinstance(record, AsyncLazyRecord):
                return record.resolve()
            if record.is_alive:
                return record.instance
            pending = record.begin_construction()
        self._log("Awaiting async construction", key=str(key))
        return await asyncio.shield(pending)

    def try_resolve(
        self, service_type: Type[T], tag: Optional[str] = None, default: Optional[T] = None
    ) -> Optional[T]:
        """Like resolve, but returns ``default`` when nothing is registered."""
        key = RegistrationKey.of(service_type, tag)
        with self._lock:
            self._check_disposed()
            if key not in self._records:
                return default
            return self.resolve(key)

    async def try_resolve_async(
        self, service_type: Type[T], tag: Optional[str] = None, default: Optional[T] = None
    ) -> Optional[T]:
        """Like resolve_async, but returns ``default`` when nothing is registered."""
        key = RegistrationKey.of(service_type, tag)
        with self._lock:
            self._check_disposed()
            if key not in self._records:
                return default
        return await self.resolve_async(key)

    def resolve_by_tag(self, tag: str) -> Any:
        """Resolve the first registration carrying ``tag``, whatever its type."""
        with self._lock:
            self._check_disposed()
            record = self._find_by_tag(tag)
            if record is None:
                raise NotRegisteredError(f"tag {tag!r}", context=self._context("resolve_by_tag"))
            return self.resolve(record.key)

    def try_resolve_by_tag(self, tag: str, default: Any = None) -> Any:
        with self._lock:
            self._check_disposed()
            record = self._find_by_tag(tag)
            if record is None:
                return default
            return self.resolve(record.key)

    async def resolve_by_tag_async(self, tag: str) -> Any:
        with self._lock:
            self._check_disposed()
            record = self._find_by_tag(tag)
            if record is None:
                raise NotRegisteredError(f"tag {tag!r}", context=self._context("resolve_by_tag"))
        return await self.resolve_async(record.key)

    def is_registered(self, service_type: ServiceKey, tag: Optional[str] = None) -> bool:
        """Check whether a key is registered, without constructing anything."""
        with self._lock:
            self._check_disposed()
            return RegistrationKey.of(service_type, tag) in self._records

    def keys(self) -> List[RegistrationKey]:
        with self._lock:
            return list(self._records)

    def __contains__(self, item: ServiceKey) -> bool:
        return self.is_registered(item)

    def __len__(self) -> int:
        with self._lock:
            return len(self._unique_records())

    def __iter__(self) -> Iterator[RegistrationKey]:
        return iter(self.keys())

    # ------------------------------------------------------------------
    # Dependency edges
    # ------------------------------------------------------------------

    def bind_dependency(
        self,
        dependent: ServiceKey,
        dependency: ServiceKey,
        *,
        dependent_tag: Optional[str] = None,
        dependency_tag: Optional[str] = None,
    ) -> None:
        """
        Record that ``dependent`` needs ``dependency``.

        While the edge exists, ``dependency`` cannot be removed. Binding the
        same edge twice is a no-op. Edges are stored against each record's
        primary key, so aliases share their record's edges.

        Raises:
            NotRegisteredError: either side is not registered
            CircularDependencyError: the edge would close a cycle
        """
        with self._lock:
            source = self._get_record(RegistrationKey.of(dependent, dependent_tag), "bind_dependency").key
            target = self._get_record(RegistrationKey.of(dependency, dependency_tag), "bind_dependency").key

            if source == target:
                raise CircularDependencyError(
                    f"{source} cannot depend on itself",
                    path=[source],
                    context=self._context("bind_dependency", source),
                )
            if target in self._dependencies.get(source, ()):
                return

            cycle = self._path_between(target, source)
            if cycle is not None:
                path = [source] + cycle
                raise CircularDependencyError(
                    "Binding would create a dependency cycle: " + " -> ".join(str(k) for k in path),
                    path=path,
                    context=self._context("bind_dependency", source),
                )

            self._dependencies.setdefault(source, set()).add(target)
            self._dependents.setdefault(target, set()).add(source)

        self._log("Dependency bound", dependent=str(source), dependency=str(target))

    def unbind_dependency(
        self,
        dependent: ServiceKey,
        dependency: ServiceKey,
        *,
        dependent_tag: Optional[str] = None,
        dependency_tag: Optional[str] = None,
    ) -> bool:
        """Drop an edge; returns whether it existed."""
        with self._lock:
            source = self._get_record(RegistrationKey.of(dependent, dependent_tag), "unbind_dependency").key
            target = self._get_record(RegistrationKey.of(dependency, dependency_tag), "unbind_dependency").key
            targets = self._dependencies.get(source)
            if not targets or target not in targets:
                return False
            targets.discard(target)
            if not targets:
                del self._dependencies[source]
            dependents = self._dependents[target]
            dependents.discard(source)
            if not dependents:
                del self._dependents[target]
        self._log("Dependency unbound", dependent=str(source), dependency=str(target))
        return True

    def dependencies_of(self, service_type: ServiceKey, tag: Optional[str] = None) -> Set[RegistrationKey]:
        with self._lock:
            key = self._get_record(RegistrationKey.of(service_type, tag), "dependencies_of").key
            return set(self._dependencies.get(key, ()))

    def dependents_of(self, service_type: ServiceKey, tag: Optional[str] = None) -> Set[RegistrationKey]:
        with self._lock:
            key = self._get_record(RegistrationKey.of(service_type, tag), "dependents_of").key
            return set(self._dependents.get(key, ()))

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(
        self,
        service_type: ServiceKey,
        tag: Optional[str] = None,
        *,
        force: bool = False,
        purge: bool = False,
    ) -> bool:
        """
        Remove a registration, disposing its instance synchronously.

        Aliases of the record go with it. Fenix records are only disposed
        and stay registered unless ``purge`` is set. If disposal raises, the
        record is left untouched and DisposalError is raised; with
        ``force`` the removal is committed anyway and the failure logged.

        Raises:
            NotRegisteredError: nothing is registered under the key
            DependencyExistsError: other registrations depend on it
            AsyncRecordError: disposal or construction needs the async path
            DisposalError: disposal failed and ``force`` was not set
        """
        key = RegistrationKey.of(service_type, tag)
        with self._lock:
            record = self._get_record(key, "remove")
            self._ensure_no_dependents(record)
            reason = None
            if record in self._removals:
                reason = f"{record.key} is already being removed asynchronously"
            elif record.pending_construction is not None:
                reason = f"{record.key} is still being constructed, use remove_async"
            elif record.needs_async_disposal:
                reason = f"{record.key} holds an instance with async disposal, use remove_async"
            if reason is not None:
                raise AsyncRecordError(reason, key=record.key, context=self._context("remove", record.key))
            try:
                record.dispose()
            except Exception as exc:
                if not force:
                    raise DisposalError(
                        {record.key: exc}, context=self._context("remove", record.key)
                    ) from exc
                logger.warning("Disposal failed, removing anyway", key=str(record.key), error=exc)
            self._commit_removal(record, purge)
        return True

    async def remove_async(
        self,
        service_type: ServiceKey,
        tag: Optional[str] = None,
        *,
        force: bool = False,
        purge: bool = False,
    ) -> bool:
        """
        Remove a registration, awaiting async disposal.

        Removal is committed only after disposal completes. A second call
        for a record already being removed awaits the first one.
        """
        key = RegistrationKey.of(service_type, tag)
        with self._lock:
            record = self._get_record(key, "remove_async")
            task = self._removals.get(record)
            if task is None:
                self._ensure_no_dependents(record, "remove_async")
                task = self._start_removal(record, force, purge)
        return await asyncio.shield(task)

    def _start_removal(self, record: Registration, force: bool, purge: bool) -> "asyncio.Future[bool]":
        """Start the single removal task for ``record``; call with the lock held."""
        task = asyncio.ensure_future(self._remove_record_async(record, force, purge))
        self._removals[record] = task
        task.add_done_callback(lambda _t, r=record: self._removals.pop(r, None))
        return task

    async def _await_construction(self, record: Registration) -> None:
        pending = record.pending_construction
        if pending is None:
            return
        try:
            await pending
        except Exception as exc:
            logger.warning("Construction failed before removal", key=str(record.key), error=exc)

    async def _remove_record_async(self, record: Registration, force: bool, purge: bool) -> bool:
        await self._await_construction(record)
        with self._lock:
            self._ensure_no_dependents(record, "remove_async")
        try:
            await record.dispose_async()
        except Exception as exc:
            if not force:
                raise DisposalError(
                    {record.key: exc}, context=self._context("remove_async", record.key)
                ) from exc
            logger.warning("Disposal failed, removing anyway", key=str(record.key), error=exc)
        with self._lock:
            self._commit_removal(record, purge)
        return True

    def remove_by_tag(self, tag: str, *, force: bool = False, purge: bool = False) -> bool:
        """Remove the first registration carrying ``tag``."""
        with self._lock:
            self._check_disposed()
            record = self._find_by_tag(tag)
            if record is None:
                raise NotRegisteredError(f"tag {tag!r}", context=self._context("remove_by_tag"))
            return self.remove(record.key, force=force, purge=purge)

    async def remove_by_tag_async(self, tag: str, *, force: bool = False, purge: bool = False) -> bool:
        with self._lock:
            self._check_disposed()
            record = self._find_by_tag(tag)
            if record is None:
                raise NotRegisteredError(f"tag {tag!r}", context=self._context("remove_by_tag"))
        return await self.remove_async(record.key, force=force, purge=purge)

    def remove_all(self) -> None:
        """
        Dispose and clear every registration, fenix records included.

        Dependents are disposed before their dependencies. Failures do not
        stop the sweep; they are raised together as one DisposalError.

        Raises:
            AsyncRecordError: some instance needs async disposal (nothing is
                removed in that case)
        """
        failures: Dict[RegistrationKey, BaseException] = {}
        with self._lock:
            self._check_disposed()
            records = self._unique_records()
            blocked = [
                record.key
                for record in records
                if record.needs_async_disposal
                or record.pending_construction is not None
                or record in self._removals
            ]
            if blocked:
                raise AsyncRecordError(
                    "Some registrations need async teardown, use remove_all_async: "
                    + ", ".join(str(k) for k in blocked),
                    context=self._context("remove_all"),
                )
            for record in self._teardown_order(records):
                try:
                    record.dispose()
                except Exception as exc:
                    failures[record.key] = exc
                    logger.warning("Disposal failed during remove_all", key=str(record.key), error=exc)
                self._drop(record)
                record.discard()
        self._log("All registrations removed", count=len(records), failures=len(failures))
        if failures:
            raise DisposalError(failures, context=self._context("remove_all"))

    async def remove_all_async(self) -> None:
        """
        Dispose and clear every registration, awaiting async disposal.

        Sync and async disposables each go through their own path. Failures
        are collected and raised together as one DisposalError once every
        other registration has been torn down.

        The sweep repeats until the registry is empty, so registrations
        added while it awaits are torn down as well. A record that lost its
        key to a newer registration in the meantime is skipped, and that key's
        edges stay with the new owner.
        """
        with self._lock:
            self._check_disposed()

        failures: Dict[RegistrationKey, BaseException] = {}
        removed = 0
        while True:
            with self._lock:
                in_flight = list(self._removals.values())
            if in_flight:
                # outcomes belong to the callers of remove_async
                await asyncio.gather(*(asyncio.shield(t) for t in in_flight), return_exceptions=True)

            with self._lock:
                records = self._unique_records()
                if not records:
                    break
                order = self._teardown_order(records)

            for record in order:
                with self._lock:
                    # dependents bound mid-sweep go first in the next pass
                    if not self._owns(record) or self._dependents.get(record.key):
                        continue
                    task = self._removals.get(record)
                    if task is None:
                        task = self._start_removal(record, force=False, purge=True)
                try:
                    await asyncio.shield(task)
                except DependencyExistsError:
                    continue
                except DisposalError as exc:
                    failures.update(exc.failures)
                    logger.warning("Disposal failed during remove_all_async", key=str(record.key), error=exc)
                    with self._lock:
                        self._drop(record)
                        record.discard()
                removed += 1

        self._log("All registrations removed", count=removed, failures=len(failures))
        if failures:
            raise DisposalError(failures, context=self._context("remove_all_async"))

    # ------------------------------------------------------------------
    # Registry lifetime
    # ------------------------------------------------------------------

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """
        Clear every registration and make the registry unusable.

        Raises AsyncRecordError (leaving the registry usable) when some
        instance needs async disposal; use dispose_async then.
        """
        if self._disposed:
            return
        failure: Optional[DisposalError] = None
        try:
            self.remove_all()
        except DisposalError as exc:
            failure = exc
        self._disposed = True
        self._log("Registry disposed")
        if failure is not None:
            raise failure

    async def dispose_async(self) -> None:
        if self._disposed:
            return
        failure: Optional[DisposalError] = None
        try:
            await self.remove_all_async()
        except DisposalError as exc:
            failure = exc
        self._disposed = True
        self._log("Registry disposed")
        if failure is not None:
            raise failure

    def __enter__(self) -> "CircusRing":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    async def __aenter__(self) -> "CircusRing":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.dispose_async()

    def __repr__(self) -> str:
        return f"<CircusRing {self.name!r} registrations={len(self)}>"


def get_ring() -> CircusRing:
    """Get or create the process-wide registry."""
    global _ring
    if _ring is None:
        with _ring_lock:
            if _ring is None:
                _ring = CircusRing(name="global")
    return _ring


def reset_ring() -> CircusRing:
    """Replace the process-wide registry with a fresh one (the old one is not disposed)."""
    global _ring
    with _ring_lock:
        _ring = CircusRing(name="global")
    return _ring


def inject(service_type: Type[T], tag: Optional[str] = None) -> T:
    """
    Resolve a service from the process-wide registry.

    Usage:
        def handler(repo: Repo = inject(Repo)):
            ...
    """
    return get_ring().resolve(service_type, tag)


__all__ = [
    "CircusRing",
    "get_ring",
    "reset_ring",
    "inject",
]
