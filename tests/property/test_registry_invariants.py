"""
Property-Based Tests for Registry Invariants

Tests the registry's bookkeeping rules under arbitrary sequences of
registrations, bindings and removals.
"""
from typing import Dict, List, Set, Tuple

from hypothesis import given, settings, strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from core.errors import (
    CircularDependencyError,
    DependencyExistsError,
    DuplicateRegistrationError,
    NotRegisteredError,
)
from ring import CircusRing, RegistrationKey
from tests.conftest import DisposableService
from tests.property.strategies import (
    acyclic_graph_strategy,
    key_strategy,
    registration_kind_strategy,
)


class TestLazyInvariants:
    """Property-based tests for lazy singletons."""

    @given(st.integers(min_value=1, max_value=25))
    @settings(max_examples=50)
    def test_factory_runs_once(self, resolutions):
        """However often a lazy singleton is resolved, it is built once."""
        ring = CircusRing(enable_logs=False)
        calls = []
        ring.register_lazy(DisposableService, lambda: calls.append(1) or DisposableService())

        instances = {id(ring.resolve(DisposableService)) for _ in range(resolutions)}

        assert len(calls) == 1
        assert len(instances) == 1

    @given(st.integers(min_value=1, max_value=10))
    @settings(max_examples=30)
    def test_fenix_rebuilds_after_each_removal(self, cycles):
        """Each remove/resolve cycle produces a fresh instance."""
        ring = CircusRing(enable_logs=False)
        ring.register_lazy(DisposableService, DisposableService, fenix=True)

        seen = []
        for _ in range(cycles):
            seen.append(ring.resolve(DisposableService))
            ring.remove(DisposableService)

        assert len({id(instance) for instance in seen}) == cycles
        assert all(instance.dispose_count == 1 for instance in seen)
        assert ring.is_registered(DisposableService)


class TestTeardownOrder:
    """Property-based tests for full teardown ordering."""

    @given(acyclic_graph_strategy())
    @settings(max_examples=100)
    def test_dependents_disposed_before_dependencies(self, graph):
        """remove_all never disposes a dependency while a dependent is alive."""
        node_count, edges = graph
        ring = CircusRing(enable_logs=False)
        log: List[str] = []

        for node in range(node_count):
            ring.register_instance(DisposableService, DisposableService(log, str(node)), tag=str(node))
        for dependent, dependency in edges:
            ring.bind_dependency(
                DisposableService,
                DisposableService,
                dependent_tag=str(dependent),
                dependency_tag=str(dependency),
            )

        ring.remove_all()

        assert sorted(log) == sorted(str(node) for node in range(node_count))
        for dependent, dependency in edges:
            assert log.index(str(dependent)) < log.index(str(dependency))
        assert len(ring) == 0

    @given(acyclic_graph_strategy(min_nodes=2, max_nodes=5))
    @settings(max_examples=50)
    def test_closing_edge_always_rejected(self, graph):
        """Adding the reverse of any reachable pair raises CircularDependencyError."""
        node_count, edges = graph
        ring = CircusRing(enable_logs=False)
        for node in range(node_count):
            ring.register_instance(DisposableService, DisposableService(), tag=str(node))
        for dependent, dependency in edges:
            ring.bind_dependency(
                DisposableService,
                DisposableService,
                dependent_tag=str(dependent),
                dependency_tag=str(dependency),
            )

        for dependent, dependency in edges:
            try:
                ring.bind_dependency(
                    DisposableService,
                    DisposableService,
                    dependent_tag=str(dependency),
                    dependency_tag=str(dependent),
                )
            except CircularDependencyError:
                continue
            raise AssertionError(f"edge {dependency} -> {dependent} should close a cycle")


class RegistryStateMachine(RuleBasedStateMachine):
    """Stateful testing of registration, binding and removal against a model."""

    def __init__(self):
        super().__init__()
        self.ring = CircusRing(enable_logs=False)
        self.registered: Dict[RegistrationKey, str] = {}
        self.edges: Set[Tuple[RegistrationKey, RegistrationKey]] = set()

    def _key(self, slot) -> RegistrationKey:
        service_type, tag = slot
        return RegistrationKey(service_type, tag)

    def _reachable(self, start: RegistrationKey, goal: RegistrationKey) -> bool:
        stack = [start]
        seen = set()
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(dst for src, dst in self.edges if src == current)
        return False

    @rule(slot=key_strategy(), kind=registration_kind_strategy())
    def register(self, slot, kind):
        key = self._key(slot)
        service_type = key.service_type
        try:
            if kind == "instance":
                self.ring.register_instance(service_type, service_type(), tag=key.tag)
            elif kind == "factory":
                self.ring.register_factory(service_type, service_type, tag=key.tag)
            else:
                self.ring.register_lazy(service_type, service_type, tag=key.tag, fenix=kind == "fenix")
        except DuplicateRegistrationError:
            assert key in self.registered
            return
        assert key not in self.registered
        self.registered[key] = kind

    @rule(slot=key_strategy())
    def resolve(self, slot):
        key = self._key(slot)
        try:
            instance = self.ring.resolve(key)
        except NotRegisteredError:
            assert key not in self.registered
            return
        assert isinstance(instance, key.service_type)

    @rule(dependent=key_strategy(), dependency=key_strategy())
    def bind(self, dependent, dependency):
        source, target = self._key(dependent), self._key(dependency)
        try:
            self.ring.bind_dependency(source, target)
        except NotRegisteredError:
            assert source not in self.registered or target not in self.registered
            return
        except CircularDependencyError:
            assert source == target or self._reachable(target, source)
            return
        self.edges.add((source, target))

    @rule(slot=key_strategy())
    def remove(self, slot):
        key = self._key(slot)
        try:
            self.ring.remove(key)
        except NotRegisteredError:
            assert key not in self.registered
            return
        except DependencyExistsError:
            assert any(dst == key for _, dst in self.edges)
            return
        assert not any(dst == key for _, dst in self.edges)
        self.edges = {(src, dst) for src, dst in self.edges if src != key}
        if self.registered[key] != "fenix":
            del self.registered[key]

    @invariant()
    def keys_match_model(self):
        assert set(self.ring.keys()) == set(self.registered)

    @invariant()
    def edges_match_model(self):
        for key in self.registered:
            expected = {dst for src, dst in self.edges if src == key}
            assert self.ring.dependencies_of(key) == expected

    @invariant()
    def edges_only_between_registered_keys(self):
        for src, dst in self.edges:
            assert src in self.registered
            assert dst in self.registered


TestRegistryStateMachine = RegistryStateMachine.TestCase
TestRegistryStateMachine.settings = settings(max_examples=50, stateful_step_count=30)
