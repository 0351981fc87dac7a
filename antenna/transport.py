"""Persistent websocket channel to one room."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import structlog
import websockets

from .commands import Command
from .errors import TransportError
from .serialize import encode_frame

log = structlog.get_logger(__name__)

DEFAULT_OPEN_TIMEOUT_SEC = 10.0


def channel_url(api_url: str, room_id: int) -> str:
    """Derive `ws(s)://host/room/{id}/channel` from the REST base URL."""
    parts = urlsplit(api_url)
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"API URL must be http(s), got {api_url!r}")
    scheme = "wss" if parts.scheme == "https" else "ws"
    path = f"{parts.path.rstrip('/')}/room/{room_id}/channel"
    return urlunsplit((scheme, parts.netloc, path, "", ""))


class WebSocketTransport:
    """Websocket channel with a non-blocking send queue drained by a writer task.

    The transport never reconnects on its own; when the channel drops,
    `frames()` simply ends and the owner decides what to do next.
    """

    def __init__(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT_SEC,
        connect: Callable[..., Any] = websockets.connect,
    ):
        self.url = url
        self._headers = dict(headers or {})
        self._open_timeout = open_timeout
        self._connect = connect
        self._websocket: Any = None
        self._outbound: asyncio.Queue[str] | None = None
        self._writer: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self._websocket is not None

    async def connect(self) -> None:
        if self._websocket is not None:
            return
        try:
            self._websocket = await self._connect(
                self.url,
                additional_headers=self._headers,
                open_timeout=self._open_timeout,
            )
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
            raise TransportError(f"Cannot open channel {self.url}: {exc}") from exc
        self._outbound = asyncio.Queue()
        self._writer = asyncio.create_task(self._write_loop())
        log.info("channel_opened", url=self.url)

    def send(self, command: Command) -> None:
        """Enqueue one command frame. Raises `TransportError` when the channel is not open."""
        if self._outbound is None or self._websocket is None:
            raise TransportError(f"Channel {self.url} is not connected.")
        self._outbound.put_nowait(encode_frame(command.to_dict()))

    async def frames(self) -> AsyncIterator[str | bytes]:
        """Yield raw inbound frames until the channel closes."""
        if self._websocket is None:
            raise TransportError(f"Channel {self.url} is not connected.")
        websocket = self._websocket
        try:
            async for raw in websocket:
                yield raw
        except websockets.exceptions.ConnectionClosed as exc:
            log.warning("channel_dropped", url=self.url, code=exc.rcvd.code if exc.rcvd else None)
        finally:
            await self._shutdown()

    async def close(self) -> None:
        websocket = self._websocket
        await self._shutdown()
        if websocket is not None:
            await websocket.close()
            log.info("channel_closed", url=self.url)

    async def _write_loop(self) -> None:
        assert self._outbound is not None
        queue = self._outbound
        websocket = self._websocket
        while True:
            frame = await queue.get()
            try:
                await websocket.send(frame)
            except websockets.exceptions.ConnectionClosed:
                log.warning("command_not_delivered", url=self.url)
                if self._outbound is queue:
                    self._outbound = None
                return

    async def _shutdown(self) -> None:
        writer = self._writer
        self._writer = None
        self._outbound = None
        self._websocket = None
        if writer is not None and not writer.done():
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
