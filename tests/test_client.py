"""GameClient orchestration with stubbed context and transport."""

from __future__ import annotations

import asyncio
import json

import pytest

from antenna.client import GameClient
from antenna.config import ClientConfig
from antenna.context import RoomContext, UserInfo
from antenna.errors import TransportError
from antenna.snapshot import Connectivity
from antenna.status import Phase, RoomInfo


class _ScriptedTransport:
    def __init__(self, url: str, headers: dict, frames: list[str], refuse: bool = False) -> None:
        self.url = url
        self.headers = headers
        self._frames = frames
        self._refuse = refuse
        self.sent: list = []
        self.closed = False

    async def connect(self) -> None:
        if self._refuse:
            raise TransportError("refused")

    def send(self, command) -> None:
        self.sent.append(command)

    async def frames(self):
        for frame in self._frames:
            yield frame

    async def close(self) -> None:
        self.closed = True


def _context(config, room_id) -> RoomContext:
    return RoomContext(user=UserInfo(user_id=1, nickname="ana"), room=RoomInfo(room_id=room_id, title="Harbor"))


def _client(frames: list[str], refuse: bool = False) -> GameClient:
    return GameClient(
        ClientConfig(api_url="https://game.example", auth_token="tok", room_id=4),
        context_fetcher=_context,
        transport_factory=lambda url, headers: _ScriptedTransport(url, headers, frames, refuse),
    )


def test_run_feeds_frames_and_reports_connectivity() -> None:
    frames = [
        json.dumps({"type": "assembly_update", "players": [{"id": None, "creator": {"id": 1, "nickname": "ana"}}]}),
        json.dumps({"type": "start", "holder": 0}),
    ]
    client = _client(frames)

    async def _scenario() -> list:
        session = await client.join()
        states: list = []
        session.subscribe(lambda snapshot: states.append((snapshot.connectivity, snapshot.phase)))
        await client.run()
        await client.close()
        return states

    states = asyncio.run(_scenario())

    assert client.transport.url == "wss://game.example/room/4/channel"
    assert client.transport.headers == {"Cookie": "auth=tok"}
    assert (Connectivity.CONNECTED, Phase.APPOINTMENT) in states
    assert states[-1] == (Connectivity.DISCONNECTED, Phase.APPOINTMENT)
    assert client.transport.closed


def test_refused_connection_marks_session_disconnected() -> None:
    client = _client([], refuse=True)

    async def _scenario() -> None:
        await client.join()
        await client.run()

    with pytest.raises(TransportError):
        asyncio.run(_scenario())
    assert client.session.connectivity is Connectivity.DISCONNECTED


def test_run_requires_join() -> None:
    with pytest.raises(RuntimeError):
        asyncio.run(_client([]).run())
