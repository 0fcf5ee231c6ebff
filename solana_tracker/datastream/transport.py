from __future__ import annotations
import asyncio
import json
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from ..exceptions import MalformedMessageError
from .schema import Envelope
from .telemetry import telemetry

logger = logging.getLogger(__name__)


class ChannelState(Enum):
    ABSENT = "absent"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


MessageHandler = Callable[["TransportConnection", Envelope], None]
CloseHandler = Callable[["TransportConnection"], None]
ErrorHandler = Callable[["TransportConnection", BaseException], None]


class TransportConnection:
    """
    One persistent WebSocket connection.

    Inbound frames are decoded into Envelopes and handed to ``on_message`` in
    arrival order. Outbound control messages go through post(), which queues them
    for a single writer task so they leave in posting order. ``on_close`` fires only
    when the transport goes away on its own, never after close().
    """

    def __init__(
        self,
        name: str,
        url: str,
        on_message: MessageHandler,
        on_close: Optional[CloseHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        connector: Optional[Callable[..., Any]] = None,
        ping_interval: Optional[float] = 20.0,
        ping_timeout: Optional[float] = 20.0,
    ) -> None:
        self.name = name
        self.url = url
        self.on_message = on_message
        self.on_close = on_close
        self.on_error = on_error
        self.state = ChannelState.ABSENT
        self._connector = connector or websockets.connect
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._ws = None
        self._outbox: Optional[asyncio.Queue] = None
        self._reader: Optional[asyncio.Task] = None
        self._writer: Optional[asyncio.Task] = None
        self._closing = False

    @property
    def is_open(self) -> bool:
        return self.state is ChannelState.OPEN and self._ws is not None

    async def open(self) -> None:
        if self.state in (ChannelState.CONNECTING, ChannelState.OPEN):
            raise RuntimeError(f"{self.name} channel is already {self.state.value}")
        self._closing = False
        self.state = ChannelState.CONNECTING
        logger.info("Connecting %s channel to %s", self.name, self.url)
        try:
            ws = await self._connector(
                self.url,
                ping_interval=self._ping_interval,
                ping_timeout=self._ping_timeout,
            )
        except BaseException:
            self.state = ChannelState.CLOSED
            raise

        if self._closing:
            # close() won the race against the handshake
            self.state = ChannelState.CLOSED
            try:
                await ws.close()
            except Exception as e:
                logger.debug("%s: close after aborted handshake failed: %s", self.name, e)
            raise ConnectionAbortedError(f"{self.name} channel closed during handshake")

        self._ws = ws
        self._outbox = asyncio.Queue()
        # handlers are in place before open() returns
        self._reader = asyncio.create_task(self._read_loop(ws))
        self._writer = asyncio.create_task(self._write_loop(ws, self._outbox))
        self.state = ChannelState.OPEN
        logger.info("%s channel open", self.name)

    def post(self, message: Dict[str, Any]) -> bool:
        if not self.is_open or self._outbox is None:
            return False
        self._outbox.put_nowait(message)
        return True

    async def close(self) -> None:
        self._closing = True
        ws = self._ws
        self._ws = None
        self._outbox = None
        self.state = ChannelState.CLOSED

        current = asyncio.current_task()
        tasks = [t for t in (self._reader, self._writer) if t is not None and t is not current]
        self._reader = None
        self._writer = None
        for t in tasks:
            t.cancel()

        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                logger.debug("%s: websocket close failed: %s", self.name, e)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _write_loop(self, ws, outbox: asyncio.Queue) -> None:
        while True:
            message = await outbox.get()
            try:
                await ws.send(json.dumps(message))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # control messages are fire-and-forget; the registry stays authoritative
                logger.warning("%s: send of %s failed: %s", self.name, message.get("type"), e)

    async def _read_loop(self, ws) -> None:
        try:
            async for raw in ws:
                self._handle_raw(raw)
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            logger.info("%s channel closed by transport: %s", self.name, e)
        except Exception as e:
            logger.warning("%s channel read failed: %s", self.name, e)
            self._report_error(e)
        self._handle_transport_close(ws)

    def _handle_raw(self, raw: Any) -> None:
        telemetry.incr("datastream_raw_messages_total", 1)
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            envelope = Envelope.from_raw(json.loads(raw))
        except (ValueError, TypeError) as e:
            telemetry.incr("datastream_parse_errors_total", 1)
            self._report_error(MalformedMessageError(f"Error processing message: {e}"))
            return
        telemetry.set_last_msg_ts(time.time())
        try:
            self.on_message(self, envelope)
        except Exception:
            logger.exception("%s: message handler failed", self.name)

    def _handle_transport_close(self, ws) -> None:
        if self._closing or self._ws is not ws:
            return
        self._ws = None
        self._outbox = None
        self.state = ChannelState.CLOSED
        if self._writer is not None:
            self._writer.cancel()
            self._writer = None
        self._reader = None
        if self.on_close:
            try:
                self.on_close(self)
            except Exception:
                logger.exception("%s: close handler failed", self.name)

    def _report_error(self, error: BaseException) -> None:
        if self.on_error:
            try:
                self.on_error(self, error)
            except Exception:
                logger.exception("%s: error handler failed", self.name)
        else:
            logger.warning("%s: %s", self.name, error)
