"""FastAPI bridge exposing joined rooms to a local presentation layer."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from antenna.client import GameClient
from antenna.commands import CommandType, command_from_dict
from antenna.config import load_config
from antenna.errors import AntennaError, MessageDecodeError, NotYourTurnError, TransportError
from antenna.observability import configure_logging
from bridge.schemas import CommandRequest, SelectionRequest
from bridge.store import ClientStore

log = structlog.get_logger(__name__)

store = ClientStore()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Join the configured room (if any) on startup and tear every room down on shutdown."""
    config = load_config()
    configure_logging(config.log_level, config.log_format)
    if config.room_id is not None:
        client = GameClient(config)
        await client.join(config.room_id)
        store.add(client)
        store.start(config.room_id)
    try:
        yield
    finally:
        await store.close_all()


app = FastAPI(title="Antenna Local Bridge", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotYourTurnError):
        return HTTPException(status_code=409, detail=exc.to_dict())
    if isinstance(exc, TransportError):
        return HTTPException(status_code=503, detail=exc.to_dict())
    if isinstance(exc, AntennaError):
        return HTTPException(status_code=400, detail=exc.to_dict())
    return HTTPException(status_code=400, detail=str(exc))


def _client(room_id: int) -> GameClient:
    try:
        return store.get(room_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown room_id: {room_id}") from exc


@app.get("/api/health")
async def health() -> dict[str, str]:
    """Healthcheck endpoint."""
    return {"status": "ok"}


@app.get("/api/rooms")
async def list_rooms() -> dict[str, list[int]]:
    return {"rooms": store.room_ids()}


@app.get("/api/rooms/{room_id}/snapshot")
async def get_snapshot(room_id: int) -> dict[str, Any]:
    """Current reconciled snapshot of one room."""
    session = _client(room_id).session
    return session.snapshot().to_dict()


@app.get("/api/rooms/{room_id}/log")
async def get_log(room_id: int, limit: int | None = Query(default=None, ge=1)) -> dict[str, Any]:
    """Room log in arrival order, optionally only the most recent `limit` entries."""
    session = _client(room_id).session
    entries = session.log.latest(limit) if limit is not None else session.log.entries
    return {"log": [dict(entry.to_dict(), clock=entry.clock_label) for entry in entries]}


@app.post("/api/rooms/{room_id}/selection")
async def choose(room_id: int, request: SelectionRequest) -> dict[str, Any]:
    """Record one pick; when it completes the triple the action is sent immediately."""
    session = _client(room_id).session
    try:
        with session.batch():
            if request.slot == "target":
                action = session.choose_target(request.index)
            elif request.index is None:
                raise ValueError(f"`index` is required for slot {request.slot!r}.")
            elif request.slot == "arena":
                action = session.choose_arena(request.index)
            else:
                action = session.choose_hand(request.index)
    except (AntennaError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {
        "action": action.to_dict() if action is not None else None,
        "snapshot": session.snapshot().to_dict(),
    }


@app.post("/api/rooms/{room_id}/commands")
async def send_command(room_id: int, request: CommandRequest) -> dict[str, Any]:
    """Send one outbound command other than `action`."""
    session = _client(room_id).session
    payload = request.model_dump()
    if payload.get("type") == CommandType.ACTION.value:
        raise HTTPException(status_code=400, detail="Actions are sent through /selection.")
    try:
        command = command_from_dict(payload)
        session.send(command)
    except (MessageDecodeError, TransportError) as exc:
        raise _http_error(exc) from exc
    return {"sent": command.to_dict(), "snapshot": session.snapshot().to_dict()}


if __name__ == "__main__":
    import uvicorn

    settings = load_config()
    uvicorn.run("bridge.main:app", host=settings.bridge_host, port=settings.bridge_port)
