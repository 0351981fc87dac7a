"""In-memory registry of joined rooms and their channel pump tasks."""

from __future__ import annotations

import asyncio

import structlog

from antenna.client import GameClient

log = structlog.get_logger(__name__)


class ClientStore:
    """Joined clients keyed by room ID."""

    def __init__(self) -> None:
        self._clients: dict[int, GameClient] = {}
        self._tasks: dict[int, asyncio.Task[None]] = {}

    def add(self, client: GameClient) -> GameClient:
        self._clients[client.room_id] = client
        return client

    def get(self, room_id: int) -> GameClient:
        if room_id not in self._clients:
            raise KeyError(room_id)
        return self._clients[room_id]

    def room_ids(self) -> list[int]:
        return sorted(self._clients)

    def start(self, room_id: int) -> asyncio.Task[None]:
        """Run the client's channel loop in the background."""
        client = self.get(room_id)
        task = asyncio.create_task(client.run(), name=f"room-{room_id}")
        task.add_done_callback(lambda done: self._on_run_finished(room_id, done))
        self._tasks[room_id] = task
        return task

    async def remove(self, room_id: int) -> None:
        client = self._clients.pop(room_id)
        task = self._tasks.pop(room_id, None)
        await client.close()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def close_all(self) -> None:
        for room_id in list(self._clients):
            await self.remove(room_id)

    def _on_run_finished(self, room_id: int, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error("room_loop_failed", room_id=room_id, error=str(error))
        else:
            log.info("room_loop_finished", room_id=room_id)
