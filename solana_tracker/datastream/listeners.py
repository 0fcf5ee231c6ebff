from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional

from .telemetry import telemetry

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class ListenerHandle:
    """Disposer for one listener registration. Calling it twice is harmless."""

    def __init__(self, owner: "ListenerMap", name: str, listener: Listener) -> None:
        self._owner = owner
        self.name = name
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._owner.remove(self)

    def __call__(self) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"ListenerHandle(name={self.name!r}, active={self.active})"


class ListenerMap:
    """
    Explicit name -> ordered listener handles mapping.
    notify() runs every listener to completion; one failing listener never
    prevents its siblings from running.
    """

    def __init__(self, label: str = "listeners") -> None:
        self._label = label
        self._handles: Dict[str, List[ListenerHandle]] = {}

    def add(self, name: str, listener: Listener) -> ListenerHandle:
        if not callable(listener):
            raise TypeError("listener must be callable")
        handle = ListenerHandle(self, name, listener)
        self._handles.setdefault(name, []).append(handle)
        return handle

    def remove(self, handle: ListenerHandle) -> bool:
        handle.active = False
        handles = self._handles.get(handle.name)
        if not handles or handle not in handles:
            return False
        handles.remove(handle)
        if not handles:
            del self._handles[handle.name]
        return True

    def count(self, name: Optional[str] = None) -> int:
        if name is not None:
            return len(self._handles.get(name, ()))
        return sum(len(h) for h in self._handles.values())

    def notify(self, name: str, *args: Any) -> int:
        # snapshot: listeners may dispose themselves while running
        handles = list(self._handles.get(name, ()))
        called = 0
        for handle in handles:
            if not handle.active:
                continue
            called += 1
            try:
                handle.listener(*args)
            except Exception:
                logger.exception("%s: listener for %s failed", self._label, name)
                telemetry.incr("datastream_listener_errors_total", 1)
        return called
