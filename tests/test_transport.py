"""Websocket transport against an in-memory fake connection."""

from __future__ import annotations

import asyncio
import json

import pytest
import websockets

from antenna.commands import Comment, Queue
from antenna.errors import TransportError
from antenna.transport import WebSocketTransport, channel_url


class _FakeWebSocket:
    def __init__(self, frames: list[str]) -> None:
        self._frames = list(frames)
        self.sent: list[str] = []
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        # Let the writer task drain queued frames between reads.
        await asyncio.sleep(0)
        if not self._frames or self.closed:
            raise StopAsyncIteration
        return self._frames.pop(0)

    async def send(self, frame: str) -> None:
        self.sent.append(frame)

    async def close(self) -> None:
        self.closed = True


def _connector(websocket: _FakeWebSocket, calls: list):
    async def _connect(url, **kwargs):
        calls.append((url, kwargs))
        return websocket

    return _connect


def test_channel_url_follows_api_scheme() -> None:
    assert channel_url("http://localhost:10405", 3) == "ws://localhost:10405/room/3/channel"
    assert channel_url("https://game.example/api/", 12) == "wss://game.example/api/room/12/channel"
    with pytest.raises(ValueError):
        channel_url("ftp://game.example", 1)


def test_send_before_connect_raises() -> None:
    transport = WebSocketTransport("ws://localhost/room/1/channel")

    with pytest.raises(TransportError):
        transport.send(Queue())


def test_connect_send_and_iterate_frames() -> None:
    websocket = _FakeWebSocket(['{"type":"log","log":[]}', '{"type":"queue"}'])
    calls: list = []
    transport = WebSocketTransport(
        "ws://localhost/room/1/channel",
        headers={"Cookie": "auth=t"},
        connect=_connector(websocket, calls),
    )

    async def _scenario() -> list:
        await transport.connect()
        transport.send(Comment(text="hello"))
        received = [frame async for frame in transport.frames()]
        return received

    received = asyncio.run(_scenario())

    assert calls[0][0] == "ws://localhost/room/1/channel"
    assert calls[0][1]["additional_headers"] == {"Cookie": "auth=t"}
    assert len(received) == 2
    assert [json.loads(frame) for frame in websocket.sent] == [{"type": "comment", "text": "hello"}]
    assert not transport.connected


def test_failed_connect_raises_transport_error() -> None:
    async def _refuse(url, **kwargs):
        raise OSError("connection refused")

    transport = WebSocketTransport("ws://localhost/room/1/channel", connect=_refuse)

    with pytest.raises(TransportError):
        asyncio.run(transport.connect())
    assert not transport.connected


class _ClosedWebSocket(_FakeWebSocket):
    async def send(self, frame: str) -> None:
        raise websockets.exceptions.ConnectionClosed(None, None)


def test_send_after_writer_sees_closed_channel_raises() -> None:
    websocket = _ClosedWebSocket([])
    transport = WebSocketTransport("ws://localhost/room/1/channel", connect=_connector(websocket, []))

    async def _scenario() -> None:
        await transport.connect()
        transport.send(Comment(text="lost"))
        for _ in range(3):
            await asyncio.sleep(0)
        try:
            with pytest.raises(TransportError):
                transport.send(Comment(text="also lost"))
        finally:
            await transport.close()

    asyncio.run(_scenario())
    assert websocket.closed
