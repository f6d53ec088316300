"""
Tests for the cue bus and its registry integration.
"""
from dataclasses import dataclass
from typing import List

import pytest

from core.errors import CueMasterDisposedError
from cues import (
    Cue,
    CueMaster,
    RingCueMaster,
    dispose_cue_master,
    get_cue_master,
    on_cue,
    send_cue,
)
from config import get_config


@dataclass
class CounterIncremented(Cue):
    value: int = 0


@dataclass
class UserLoggedIn(Cue):
    user_id: str = ""


@dataclass
class AdminLoggedIn(UserLoggedIn):
    pass


# =============================================================================
# RING CUE MASTER
# =============================================================================

class TestRingCueMaster:
    """Tests for the default cue master."""

    def test_send_reaches_listener(self, cue_master):
        received: List[CounterIncremented] = []
        cue_master.listen(CounterIncremented, received.append)

        delivered = cue_master.send_cue(CounterIncremented(value=3))

        assert delivered is True
        assert [cue.value for cue in received] == [3]
        assert received[0].timestamp is not None

    def test_send_without_listeners(self, cue_master):
        """Nobody listening means not delivered."""
        assert cue_master.send_cue(CounterIncremented()) is False

    def test_exact_type_dispatch(self, cue_master):
        """Listeners of a base type do not receive subclass cues."""
        base: List[UserLoggedIn] = []
        admin: List[AdminLoggedIn] = []
        cue_master.listen(UserLoggedIn, base.append)
        cue_master.listen(AdminLoggedIn, admin.append)

        cue_master.send_cue(AdminLoggedIn(user_id="root"))

        assert base == []
        assert [cue.user_id for cue in admin] == ["root"]

    def test_any_object_is_a_cue(self, cue_master):
        """Cues do not have to subclass Cue."""
        received = []
        cue_master.listen(str, received.append)

        cue_master.send_cue("hello")

        assert received == ["hello"]

    def test_decorator_form(self, cue_master):
        received = []

        @cue_master.on(CounterIncremented)
        def handle(cue):
            received.append(cue.value)

        cue_master.send_cue(CounterIncremented(value=7))

        assert received == [7]
        assert handle.active

    def test_cancel_subscription(self, cue_master):
        received = []
        subscription = cue_master.listen(CounterIncremented, received.append)

        subscription.cancel()
        subscription.cancel()
        cue_master.send_cue(CounterIncremented())

        assert received == []
        assert not subscription.active
        assert not cue_master.has_listeners(CounterIncremented)

    def test_failing_listener_does_not_stop_delivery(self, cue_master):
        """Later listeners still receive the cue."""
        received = []

        def broken(cue):
            raise RuntimeError("listener failure")

        cue_master.listen(CounterIncremented, broken)
        cue_master.listen(CounterIncremented, received.append)

        assert cue_master.send_cue(CounterIncremented(value=1)) is True
        assert len(received) == 1

    def test_reset(self, cue_master):
        subscription = cue_master.listen(CounterIncremented, lambda cue: None)

        assert cue_master.reset(CounterIncremented) is True
        assert cue_master.reset(CounterIncremented) is False
        assert not subscription.active

    def test_dispose(self):
        master = RingCueMaster()
        subscription = master.listen(CounterIncremented, lambda cue: None)

        master.dispose()

        assert master.is_disposed
        assert not subscription.active
        assert master.send_cue(CounterIncremented()) is False
        with pytest.raises(CueMasterDisposedError):
            master.listen(CounterIncremented, lambda cue: None)


# =============================================================================
# REGISTRY INTEGRATION
# =============================================================================

class TestRingIntegration:
    """Tests for cue masters living inside a registry."""

    def test_get_cue_master_registers_once(self, quiet_ring):
        master = get_cue_master(quiet_ring)

        assert isinstance(master, RingCueMaster)
        assert get_cue_master(quiet_ring) is master
        assert quiet_ring.resolve(CueMaster, get_config().ring.cue_master_tag) is master
        assert quiet_ring.resolve(RingCueMaster, get_config().ring.cue_master_tag) is master

    def test_on_and_send(self, quiet_ring):
        received = []
        on_cue(CounterIncremented, received.append, ring=quiet_ring)

        assert send_cue(CounterIncremented(value=2), ring=quiet_ring) is True
        assert [cue.value for cue in received] == [2]

    def test_tagged_masters_are_separate(self, quiet_ring):
        received = []
        on_cue(CounterIncremented, received.append, ring=quiet_ring, tag="other")

        assert send_cue(CounterIncremented(), ring=quiet_ring) is False
        assert send_cue(CounterIncremented(), ring=quiet_ring, tag="other") is True
        assert len(received) == 1

    def test_dispose_cue_master(self, quiet_ring):
        subscription = on_cue(CounterIncremented, lambda cue: None, ring=quiet_ring)
        master = get_cue_master(quiet_ring)

        assert dispose_cue_master(quiet_ring) is True
        assert master.is_disposed
        assert not subscription.active
        assert dispose_cue_master(quiet_ring) is False

        assert get_cue_master(quiet_ring) is not master

    def test_replace(self, quiet_ring):
        old = get_cue_master(quiet_ring)

        new = get_cue_master(quiet_ring, replace=True)

        assert new is not old
        assert old.is_disposed

    def test_registry_teardown_disposes_master(self, quiet_ring):
        master = get_cue_master(quiet_ring)

        quiet_ring.remove_all()

        assert master.is_disposed
