"""
CircusRing - Test Configuration

Pytest fixtures and shared test doubles for all tests.
"""
from typing import List

import pytest

from cues import RingCueMaster
from ring import CircusRing


# =============================================================================
# TEST DOUBLES
# =============================================================================

class Logger:
    """Plain service without any disposal capability."""

    def __init__(self, name: str = "app"):
        self.name = name


class Repo:
    """Service that needs a Logger."""

    def __init__(self, logger: Logger):
        self.logger = logger


class ApiService:
    """Interface-like base used for alias registrations."""


class HttpApiService(ApiService):
    pass


class DisposableService:
    """Records synchronous dispose calls."""

    def __init__(self, log: List[str] = None, name: str = "sync"):
        self.log = log if log is not None else []
        self.name = name
        self.dispose_count = 0

    def dispose(self) -> None:
        self.dispose_count += 1
        self.log.append(self.name)


class AsyncDisposableService:
    """Records asynchronous dispose calls."""

    def __init__(self, log: List[str] = None, name: str = "async"):
        self.log = log if log is not None else []
        self.name = name
        self.dispose_count = 0

    async def dispose(self) -> None:
        self.dispose_count += 1
        self.log.append(self.name)


class ClosableService:
    """Exposes close() instead of dispose()."""

    def __init__(self):
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FailingDisposable:
    """dispose() always raises."""

    def __init__(self, message: str = "boom"):
        self.message = message
        self.attempts = 0

    def dispose(self) -> None:
        self.attempts += 1
        raise RuntimeError(self.message)


class FailingAsyncDisposable:
    """async dispose() always raises."""

    def __init__(self, message: str = "async boom"):
        self.message = message
        self.attempts = 0

    async def dispose(self) -> None:
        self.attempts += 1
        raise RuntimeError(self.message)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def ring() -> CircusRing:
    """Fresh registry per test, with debug logging on."""
    return CircusRing(enable_logs=True, name="test")


@pytest.fixture
def quiet_ring() -> CircusRing:
    """Fresh registry with logging off."""
    return CircusRing(enable_logs=False, name="quiet")


@pytest.fixture
def cue_master():
    """Standalone cue master, disposed after the test."""
    master = RingCueMaster()
    yield master
    master.dispose()


@pytest.fixture
def disposal_log() -> List[str]:
    """Shared list that disposables append their names to."""
    return []
