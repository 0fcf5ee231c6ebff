from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .listeners import Listener, ListenerHandle, ListenerMap
from .telemetry import telemetry

logger = logging.getLogger(__name__)

CONNECTED = "connected"
DISCONNECTED = "disconnected"
RECONNECTING = "reconnecting"
ERROR = "error"
LIFECYCLE_EVENTS = (CONNECTED, DISCONNECTED, RECONNECTING, ERROR)

# disconnected(scope) values
SCOPE_MAIN = "main"
SCOPE_TRANSACTION = "transaction"
SCOPE_ALL = "all"


@dataclass
class LifecycleEvent:
    ts: float
    type: str
    scope: Optional[str] = None
    attempt: Optional[int] = None
    error: Optional[BaseException] = None


class EventHub:
    """
    Lifecycle notifications for a Datastream.

    Handlers registered with on() are called synchronously with the event
    arguments: connected(), disconnected(scope), reconnecting(attempt), error(cause).
    stream() hands out an asyncio.Queue of LifecycleEvent records; a full queue
    drops its oldest item.
    """

    def __init__(self, queue_maxsize: int = 1000) -> None:
        self._handlers = ListenerMap("EventHub")
        self._streams: Dict[str, asyncio.Queue] = {}
        self._maxsize = queue_maxsize

    def on(self, event: str, handler: Listener) -> ListenerHandle:
        if event not in LIFECYCLE_EVENTS:
            raise ValueError(f"unknown event {event!r}; expected one of {', '.join(LIFECYCLE_EVENTS)}")
        return self._handlers.add(event, handler)

    def stream(self, name: str) -> asyncio.Queue:
        if name in self._streams:
            return self._streams[name]
        q: asyncio.Queue = asyncio.Queue(maxsize=self._maxsize)
        self._streams[name] = q
        logger.info("EventHub: stream registered %s", name)
        return q

    def close_stream(self, name: str) -> None:
        q = self._streams.pop(name, None)
        if q:
            logger.info("EventHub: stream removed %s", name)

    def emit(self, event: str, *args: Any) -> None:
        record = LifecycleEvent(ts=time.time(), type=event)
        if event == DISCONNECTED and args:
            record.scope = args[0]
        elif event == RECONNECTING and args:
            record.attempt = args[0]
        elif event == ERROR and args:
            record.error = args[0]

        if event == ERROR and not self._handlers.count(ERROR):
            logger.warning("Datastream error (no error handler registered): %s", args[0] if args else None)

        self._handlers.notify(event, *args)

        for name, q in list(self._streams.items()):
            try:
                q.put_nowait(record)
            except asyncio.QueueFull:
                try:
                    q.get_nowait()  # drop oldest
                except asyncio.QueueEmpty:
                    pass
                try:
                    q.put_nowait(record)
                except asyncio.QueueFull:
                    logger.warning("EventHub: failed to enqueue for %s", name)
                telemetry.incr("datastream_events_dropped_total", 1)
