import asyncio

import pytest

from solana_tracker.datastream.transport import ChannelState, TransportConnection
from solana_tracker.exceptions import MalformedMessageError
from ws_fakes import WS_URL, FakeConnector, message, settle


class Recorder:
    def __init__(self):
        self.messages = []
        self.closed = []
        self.errors = []

    def on_message(self, conn, envelope):
        self.messages.append(envelope)

    def on_close(self, conn):
        self.closed.append(conn.name)

    def on_error(self, conn, err):
        self.errors.append(err)


def make_conn(connector, rec):
    return TransportConnection(
        "main",
        WS_URL,
        on_message=rec.on_message,
        on_close=rec.on_close,
        on_error=rec.on_error,
        connector=connector,
        ping_interval=5.0,
        ping_timeout=3.0,
    )


def test_open_passes_keepalive_and_sends_in_order():
    async def run():
        connector = FakeConnector()
        conn = make_conn(connector, Recorder())
        await conn.open()
        assert conn.state is ChannelState.OPEN
        assert conn.post({"type": "join", "room": "a"})
        assert conn.post({"type": "join", "room": "b"})
        await settle()
        ws = connector.sockets[0]
        await conn.close()
        return connector, ws

    connector, ws = asyncio.run(run())
    assert connector.kwargs[0] == {"ping_interval": 5.0, "ping_timeout": 3.0}
    assert [m["room"] for m in ws.sent] == ["a", "b"]
    assert ws.closed


def test_malformed_frame_is_reported_and_stream_continues():
    async def run():
        rec = Recorder()
        connector = FakeConnector()
        conn = make_conn(connector, rec)
        await conn.open()
        ws = connector.sockets[0]
        ws.push("{not json")
        ws.push("[1, 2]")
        ws.push(message("latest", {"ok": True}))
        await settle()
        still_open = conn.is_open
        await conn.close()
        return rec, still_open

    rec, still_open = asyncio.run(run())
    assert still_open
    assert len(rec.errors) == 2
    assert all(isinstance(e, MalformedMessageError) for e in rec.errors)
    assert str(rec.errors[0]).startswith("Error processing message:")
    assert [e.payload for e in rec.messages] == [{"ok": True}]


def test_bytes_frames_are_decoded():
    async def run():
        rec = Recorder()
        connector = FakeConnector()
        conn = make_conn(connector, rec)
        await conn.open()
        connector.sockets[0].push(b'{"type": "message", "room": "latest", "data": 1}')
        await settle()
        await conn.close()
        return rec

    rec = asyncio.run(run())
    assert rec.messages[0].payload == 1


def test_remote_close_fires_on_close():
    async def run():
        rec = Recorder()
        connector = FakeConnector()
        conn = make_conn(connector, rec)
        await conn.open()
        connector.sockets[0].drop()
        await settle()
        return rec, conn

    rec, conn = asyncio.run(run())
    assert rec.closed == ["main"]
    assert conn.state is ChannelState.CLOSED
    assert not conn.post({"type": "join", "room": "a"})


def test_caller_close_does_not_fire_on_close():
    async def run():
        rec = Recorder()
        conn = make_conn(FakeConnector(), rec)
        await conn.open()
        await conn.close()
        await settle()
        return rec

    rec = asyncio.run(run())
    assert rec.closed == []


def test_handshake_failure_leaves_channel_closed():
    async def run():
        conn = make_conn(FakeConnector(fail=1), Recorder())
        with pytest.raises(OSError):
            await conn.open()
        return conn

    conn = asyncio.run(run())
    assert conn.state is ChannelState.CLOSED
    assert not conn.is_open


def test_open_twice_is_rejected():
    async def run():
        conn = make_conn(FakeConnector(), Recorder())
        await conn.open()
        with pytest.raises(RuntimeError):
            await conn.open()
        await conn.close()

    asyncio.run(run())


def test_invalid_utf8_frame_is_malformed_and_dropped():
    async def run():
        rec = Recorder()
        connector = FakeConnector()
        conn = make_conn(connector, rec)
        await conn.open()
        ws = connector.sockets[0]
        ws.push(b'{"type": "message", "room": "latest", "data": "\xff\xfe"}')
        ws.push(b'{"type": "message", "room": "latest", "data": "ok"}')
        await settle()
        still_open = conn.is_open
        await conn.close()
        return rec, still_open

    rec, still_open = asyncio.run(run())
    assert still_open
    assert len(rec.errors) == 1
    assert isinstance(rec.errors[0], MalformedMessageError)
    assert [e.payload for e in rec.messages] == ["ok"]
