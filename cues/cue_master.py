"""
CircusRing - Cue Master

In-process typed event bus. Listeners subscribe to an exact cue type and
receive every cue of that type sent afterwards.

Usage:
    @dataclass
    class CounterIncremented(Cue):
        value: int = 0

    master = RingCueMaster()
    subscription = master.listen(CounterIncremented, lambda cue: print(cue.value))
    master.send_cue(CounterIncremented(value=1))
    subscription.cancel()
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from core.errors import CueMasterDisposedError
from observability.logging import get_logger

logger = get_logger("cues.cue_master")

C = TypeVar("C")

CueHandler = Callable[[C], Any]


@dataclass
class Cue:
    """Optional base class for cue payloads."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc), kw_only=True)


class CueSubscription(Generic[C]):
    """Handle for one listener; cancel it to stop receiving cues."""

    def __init__(self, master: "RingCueMaster", cue_type: Type[C], handler: CueHandler) -> None:
        self.cue_type = cue_type
        self.handler = handler
        self._master: Optional[RingCueMaster] = master

    @property
    def active(self) -> bool:
        return self._master is not None

    def cancel(self) -> None:
        master, self._master = self._master, None
        if master is not None:
            master._detach(self)

    def _close(self) -> None:
        self._master = None

    def __repr__(self) -> str:
        state = "active" if self.active else "cancelled"
        return f"<CueSubscription {self.cue_type.__name__} {state}>"


class CueMaster(ABC):
    """Interface for typed cue dispatchers."""

    @abstractmethod
    def on(self, cue_type: Type[C]) -> Callable[[CueHandler], CueSubscription[C]]:
        """Decorator form of listen."""

    @abstractmethod
    def send_cue(self, cue: Any) -> bool:
        """Deliver a cue; returns whether any listener received it."""

    @abstractmethod
    def listen(self, cue_type: Type[C], handler: CueHandler) -> CueSubscription[C]:
        """Subscribe ``handler`` to cues of exactly ``cue_type``."""

    @abstractmethod
    def has_listeners(self, cue_type: Type[Any]) -> bool:
        ...

    @abstractmethod
    def reset(self, cue_type: Type[Any]) -> bool:
        """Drop every listener of ``cue_type``; returns whether there were any."""

    @abstractmethod
    def dispose(self) -> None:
        ...


class RingCueMaster(CueMaster):
    """
    Default cue master.

    Keeps a listener list per cue type. A listener that raises is logged
    and the cue still reaches the remaining listeners.
    """

    def __init__(self) -> None:
        self._listeners: Dict[type, List[CueSubscription[Any]]] = {}
        self._lock = threading.RLock()
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def on(self, cue_type: Type[C]) -> Callable[[CueHandler], CueSubscription[C]]:
        def decorator(handler: CueHandler) -> CueSubscription[C]:
            return self.listen(cue_type, handler)
        return decorator

    def listen(self, cue_type: Type[C], handler: CueHandler) -> CueSubscription[C]:
        with self._lock:
            if self._disposed:
                raise CueMasterDisposedError()
            subscription: CueSubscription[C] = CueSubscription(self, cue_type, handler)
            self._listeners.setdefault(cue_type, []).append(subscription)
        return subscription

    def send_cue(self, cue: Any) -> bool:
        with self._lock:
            if self._disposed:
                return False
            subscriptions = list(self._listeners.get(type(cue), ()))

        for subscription in subscriptions:
            try:
                subscription.handler(cue)
            except Exception as exc:
                logger.error(
                    "Cue listener failed",
                    cue_type=type(cue).__name__,
                    handler=getattr(subscription.handler, "__qualname__", repr(subscription.handler)),
                    error=exc,
                )
        return bool(subscriptions)

    def has_listeners(self, cue_type: Type[Any]) -> bool:
        with self._lock:
            return bool(self._listeners.get(cue_type))

    def reset(self, cue_type: Type[Any]) -> bool:
        with self._lock:
            subscriptions = self._listeners.pop(cue_type, [])
        for subscription in subscriptions:
            subscription._close()
        return bool(subscriptions)

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            listeners, self._listeners = self._listeners, {}
        for subscriptions in listeners.values():
            for subscription in subscriptions:
                subscription._close()

    def _detach(self, subscription: CueSubscription[Any]) -> None:
        with self._lock:
            subscriptions = self._listeners.get(subscription.cue_type)
            if not subscriptions:
                return
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                del self._listeners[subscription.cue_type]
