from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Coroutine, Dict, Optional, Set

from ..exceptions import DatastreamError
from .backoff import ReconnectBackoff
from .config import DatastreamConfig
from .dedup import DeliveryDeduplicator
from .events import (
    CONNECTED,
    DISCONNECTED,
    ERROR,
    RECONNECTING,
    SCOPE_ALL,
    SCOPE_MAIN,
    SCOPE_TRANSACTION,
    EventHub,
)
from .listeners import Listener, ListenerHandle
from .registry import SubscriptionRegistry
from .rooms import TopicKind
from .router import TopicRouter
from .schema import Envelope
from .subscriptions import SubscribeResponse, SubscriptionMethods
from .telemetry import telemetry
from .transport import ChannelState, TransportConnection

logger = logging.getLogger(__name__)

JOIN = "join"
LEAVE = "leave"

_CHANNEL_NAMES = {
    TopicKind.GENERAL: SCOPE_MAIN,
    TopicKind.TRANSACTION: SCOPE_TRANSACTION,
}


class DatastreamState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Datastream:
    """
    Live-update client for the Solana Tracker Datastream.

    Two WebSocket channels are kept to the same endpoint: ``main`` for general
    rooms and ``transaction`` for token transaction rooms. The set of desired rooms
    lives in ``registry`` and is replayed whenever both channels are open again, so
    subscriptions survive reconnects. Failures are reported through the ``error``
    event and never raised out of background work.

    Example:
        async with Datastream(DatastreamConfig(ws_url=url)) as ds:
            ds.on("disconnected", lambda scope: print("lost", scope))
            ds.subscribe.price.token(mint).on(print)
            await asyncio.sleep(60)
    """

    def __init__(
        self,
        config: Optional[DatastreamConfig] = None,
        *,
        connector: Optional[Callable[..., Any]] = None,
        rng: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or DatastreamConfig.from_settings()
        self.registry = SubscriptionRegistry()
        self.deduplicator = DeliveryDeduplicator(max_entries=self.config.dedup_max_entries)
        self.router = TopicRouter(self.deduplicator)
        self.events = EventHub()
        self.backoff = ReconnectBackoff(
            base_delay=self.config.reconnect_delay,
            max_delay=self.config.reconnect_delay_max,
            randomization_factor=self.config.randomization_factor,
            rng=rng,
        )
        self.subscribe = SubscriptionMethods(self)
        self._connector = connector
        self._channels: Dict[TopicKind, Optional[TransportConnection]] = {
            TopicKind.GENERAL: None,
            TopicKind.TRANSACTION: None,
        }
        self._connecting = False
        # bumped by disconnect(); work started under an older session is discarded
        self._session = 0
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "Datastream":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------ state

    def is_connected(self) -> bool:
        return all(c is not None and c.is_open for c in self._channels.values())

    @property
    def state(self) -> DatastreamState:
        if self.is_connected():
            return DatastreamState.CONNECTED
        if self._connecting or self._reconnect_handle is not None:
            return DatastreamState.CONNECTING
        return DatastreamState.DISCONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def channel(self, kind: TopicKind) -> Optional[TransportConnection]:
        return self._channels.get(kind)

    def get_status(self) -> Dict[str, Any]:
        channels = {}
        for kind, conn in self._channels.items():
            channels[_CHANNEL_NAMES[kind]] = conn.state.value if conn else ChannelState.ABSENT.value
        return {
            "state": self.state.value,
            "connected": self.is_connected(),
            "channels": channels,
            "subscriptions": len(self.registry),
            "listeners": self.router.listener_count(),
            "reconnect_attempts": self.backoff.attempts,
            "reconnect_pending": self.reconnect_pending,
            "dedup_entries": len(self.deduplicator),
            "telemetry": telemetry.get_snapshot(),
        }

    # ------------------------------------------------------------ connection

    async def connect(self) -> None:
        if self.is_connected() or self._connecting:
            return
        self._cancel_reconnect()
        self._connecting = True
        session = self._session

        # a channel that survived its peer's failure is reopened together with it
        await self._close_channels()
        if session != self._session:
            return

        opening = {kind: self._new_channel(kind) for kind in self._channels}
        self._channels.update(opening)
        results = await asyncio.gather(*(c.open() for c in opening.values()), return_exceptions=True)

        if session != self._session:
            # disconnect() ran meanwhile and already closed these channels
            return

        failure: Optional[BaseException] = next(
            (r for r in results if isinstance(r, BaseException)), None
        )
        if failure is None and not self.is_connected():
            failure = DatastreamError("channel closed before both channels were open")

        if failure is not None:
            logger.warning("Datastream connect failed: %s", failure)
            await self._close_channels()
            if session != self._session:
                return
            self._connecting = False
            self._update_gauges()
            self.events.emit(ERROR, failure)
            self._schedule_reconnect()
            return

        self._connecting = False
        self.backoff.reset()
        self._update_gauges()
        logger.info("Datastream connected (%d desired room(s))", len(self.registry))
        self._replay()
        self.events.emit(CONNECTED)

    async def disconnect(self) -> None:
        """Close both channels and forget every desired room. Terminal for the session."""
        self._session += 1
        self._cancel_reconnect()
        self._connecting = False
        self.registry.clear()
        self.deduplicator.clear()
        await self._close_channels()
        self._update_gauges()
        logger.info("Datastream disconnected")
        self.events.emit(DISCONNECTED, SCOPE_ALL)

    def _new_channel(self, kind: TopicKind) -> TransportConnection:
        return TransportConnection(
            _CHANNEL_NAMES[kind],
            self.config.ws_url,
            on_message=self._on_envelope,
            on_close=self._on_channel_close,
            on_error=self._on_channel_error,
            connector=self._connector,
            ping_interval=self.config.ping_interval,
            ping_timeout=self.config.ping_timeout,
        )

    async def _close_channels(self) -> None:
        channels = [c for c in self._channels.values() if c is not None]
        for kind in self._channels:
            self._channels[kind] = None
        if channels:
            await asyncio.gather(*(c.close() for c in channels), return_exceptions=True)

    def _kind_of(self, conn: TransportConnection) -> Optional[TopicKind]:
        for kind, current in self._channels.items():
            if current is conn:
                return kind
        return None

    # ------------------------------------------------------------- reconnect

    def _schedule_reconnect(self) -> None:
        if not self.config.auto_reconnect or self._reconnect_handle is not None:
            return
        attempt = self.backoff.attempts
        delay = self.backoff.next_delay()
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(delay, self._fire_reconnect, self._session)
        telemetry.incr("datastream_reconnect_total", 1)
        logger.info(
            "Datastream reconnecting in %.2fs (attempt %d, ceiling %.2fs)",
            delay,
            attempt,
            self.backoff.upper_bound(),
        )
        self.events.emit(RECONNECTING, attempt)

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _fire_reconnect(self, session: int) -> None:
        self._reconnect_handle = None
        if session != self._session:
            return
        self.backoff.record_attempt()
        self._spawn(self.connect())

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("no running event loop; deferring until connect() is awaited")
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Datastream background task failed: %s", exc)
            self.events.emit(ERROR, exc)

    # --------------------------------------------------------- subscriptions

    def subscribe_topic(self, topic: str) -> SubscribeResponse:
        """
        Mark a room as desired. The join goes out now when its channel is open,
        otherwise it is sent by the replay that follows the next successful connect.
        While a reconnect is scheduled the room is only recorded; the timer keeps
        its backoff delay.
        """
        added = self.registry.add(topic)
        self._update_gauges()
        conn = self._channels[self.registry.kind_of(topic)]
        if conn is not None and conn.is_open and not self._connecting:
            if added:
                self._post(topic, JOIN)
        elif not self._connecting and self._reconnect_handle is None:
            self._spawn(self.connect())
        return SubscribeResponse(topic, self)

    def unsubscribe(self, topic: str) -> "Datastream":
        if not self.registry.discard(topic):
            return self
        self._update_gauges()
        self._post(topic, LEAVE)
        return self

    def listen(self, topic: str, listener: Listener) -> ListenerHandle:
        return self.router.add(topic, listener)

    def on(self, event: str, handler: Listener) -> ListenerHandle:
        """Register a lifecycle handler: connected, disconnected, reconnecting or error."""
        return self.events.on(event, handler)

    def _post(self, topic: str, message_type: str) -> bool:
        conn = self._channels[self.registry.kind_of(topic)]
        if conn is None or not conn.is_open:
            return False
        sent = conn.post({"type": message_type, "room": topic})
        if sent:
            telemetry.incr(f"datastream_{message_type}_sent_total", 1)
        return sent

    def _replay(self) -> int:
        if not self.is_connected():
            return 0
        sent = 0
        for topic in self.registry:
            if self._post(topic, JOIN):
                sent += 1
        if sent:
            logger.info("Datastream replayed %d room(s)", sent)
        return sent

    # ------------------------------------------------------ channel callbacks

    def _on_envelope(self, conn: TransportConnection, envelope: Envelope) -> None:
        if self._kind_of(conn) is None:
            return
        if not envelope.is_data:
            logger.debug("%s: ignoring %r frame", conn.name, envelope.kind)
            return
        telemetry.incr("datastream_messages_total", 1)
        self.router.dispatch(envelope)

    def _on_channel_close(self, conn: TransportConnection) -> None:
        kind = self._kind_of(conn)
        if kind is None:
            return
        self._channels[kind] = None
        self._update_gauges()
        logger.warning("Datastream %s channel disconnected", conn.name)
        self.events.emit(DISCONNECTED, conn.name)
        if not self._connecting:
            self._schedule_reconnect()

    def _on_channel_error(self, conn: TransportConnection, error: BaseException) -> None:
        if self._kind_of(conn) is None:
            return
        self.events.emit(ERROR, error)

    def _update_gauges(self) -> None:
        open_count = sum(1 for c in self._channels.values() if c is not None and c.is_open)
        telemetry.set_gauge("datastream_channels_open", float(open_count))
        telemetry.set_gauge("datastream_active_subscriptions", float(len(self.registry)))
