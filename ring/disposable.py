"""
Disposal capability contract.

Any registered instance may expose a synchronous ``dispose()``, an
``async def dispose()``, or, failing that, a ``close()`` method. The
registry picks the strategy once, when the instance first becomes known,
and stores it on the record.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class Disposable(Protocol):
    """Synchronous cleanup."""

    def dispose(self) -> None:
        ...


@runtime_checkable
class AsyncDisposable(Protocol):
    """Asynchronous cleanup."""

    async def dispose(self) -> None:
        ...


class DisposalStrategy(Enum):
    """How an instance is torn down on removal."""

    NOOP = "noop"
    SYNC = "sync"
    ASYNC = "async"


Disposer = Callable[[], Any]


def disposer_for(instance: Any) -> Tuple[DisposalStrategy, Optional[Disposer]]:
    """Pick the disposal strategy and bound callable for ``instance``."""
    if instance is None or isinstance(instance, type):
        return DisposalStrategy.NOOP, None

    for name in ("dispose", "close"):
        method = getattr(instance, name, None)
        if method is None or not callable(method):
            continue
        if inspect.iscoroutinefunction(method):
            return DisposalStrategy.ASYNC, method
        return DisposalStrategy.SYNC, method

    return DisposalStrategy.NOOP, None
