"""Wire context fetch, session, router and transport together for one room."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from .cards import CardTable, load_card_table
from .config import ClientConfig
from .context import RoomContext, fetch_context
from .errors import TransportError
from .http_utils import auth_headers
from .router import MessageRouter
from .session import Session
from .snapshot import Connectivity
from .transport import WebSocketTransport, channel_url

log = structlog.get_logger(__name__)

ContextFetcher = Callable[[ClientConfig, int | None], RoomContext]
TransportFactory = Callable[[str, dict[str, str]], Any]


def _default_transport(url: str, headers: dict[str, str]) -> WebSocketTransport:
    return WebSocketTransport(url, headers=headers)


class GameClient:
    """One joined room: owns the session and the channel feeding it."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        context_fetcher: ContextFetcher = fetch_context,
        transport_factory: TransportFactory = _default_transport,
    ):
        self.config = config
        self._context_fetcher = context_fetcher
        self._transport_factory = transport_factory
        self.context: RoomContext | None = None
        self.session: Session | None = None
        self.router: MessageRouter | None = None
        self.transport: Any = None

    @property
    def room_id(self) -> int:
        if self.session is None:
            raise RuntimeError("Client has not joined a room yet.")
        return self.session.room_id

    async def join(self, room_id: int | None = None) -> Session:
        """Fetch initial context and build the session. Does not open the channel."""
        room_id = room_id if room_id is not None else self.config.require_room_id()
        self.context = await asyncio.to_thread(self._context_fetcher, self.config, room_id)
        cards: CardTable | None = None
        if self.config.cards_path is not None:
            cards = load_card_table(self.config.cards_path)

        loop = asyncio.get_running_loop()
        headers = auth_headers(self.config.require_auth_token())
        self.transport = self._transport_factory(channel_url(self.config.api_url, room_id), headers)
        self.session = Session(
            self_id=self.context.user.user_id,
            room_id=room_id,
            scheduler=loop,
            send=self.transport.send,
            clock=loop.time,
            room=self.context.room,
            own_profile_ids=self.context.own_profile_ids,
            cards=cards,
        )
        self.router = MessageRouter(self.session)
        log.info("room_joined", room_id=room_id, user_id=self.context.user.user_id)
        return self.session

    async def run(self) -> None:
        """Open the channel and feed every frame to the router until it drops."""
        if self.session is None or self.router is None:
            raise RuntimeError("Call join() before run().")
        session = self.session
        session.set_connectivity(Connectivity.CONNECTING)
        try:
            await self.transport.connect()
        except TransportError:
            session.set_connectivity(Connectivity.DISCONNECTED)
            raise
        session.set_connectivity(Connectivity.CONNECTED)
        try:
            async for raw in self.transport.frames():
                self.router.dispatch(raw)
        finally:
            session.set_connectivity(Connectivity.DISCONNECTED)

    async def close(self) -> None:
        if self.transport is not None:
            await self.transport.close()
        if self.session is not None:
            self.session.teardown()
