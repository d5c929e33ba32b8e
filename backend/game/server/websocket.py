"""Live room feed: pushes every committed room value to a WebSocket."""

from __future__ import annotations

import asyncio
import contextlib
import json
import re
from typing import TYPE_CHECKING

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from game.server.types import room_payload
from shared.logging import bind_participant
from shared.store.exceptions import StoreError

if TYPE_CHECKING:
    from game.logic.state import Room
    from game.rooms.manager import RoomManager

logger = structlog.get_logger()

_ROOM_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
_MAX_ROOM_ID_LENGTH = 64

ROOM_STATE_MESSAGE = "room_state"


async def room_feed_endpoint(websocket: WebSocket, manager: RoomManager) -> None:
    room_id = websocket.path_params["room_id"]
    if not _ROOM_ID_PATTERN.match(room_id) or len(room_id) > _MAX_ROOM_ID_LENGTH:
        await websocket.close(code=4000, reason="invalid_room_id")
        return

    await websocket.accept()
    bind_participant(room_id=room_id)
    logger.info("room feed connected")

    # Store callbacks only enqueue; _drain owns every send.
    outbox: asyncio.Queue[str] = asyncio.Queue()

    def on_change(room: Room | None) -> None:
        outbox.put_nowait(json.dumps({"type": ROOM_STATE_MESSAGE, **room_payload(room)}))

    try:
        unsubscribe = await manager.watch_room(room_id, on_change)
    except StoreError as e:
        logger.warning("room feed subscription failed", error=str(e))
        await websocket.close(code=1011, reason="store_unavailable")
        return

    sender = asyncio.create_task(_drain(websocket, outbox))
    try:
        while True:
            text = await websocket.receive_text()
            if text == "ping":
                outbox.put_nowait(json.dumps({"type": "pong"}))
    except (WebSocketDisconnect, RuntimeError):
        pass
    finally:
        unsubscribe()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        logger.info("room feed disconnected")
        structlog.contextvars.clear_contextvars()


async def _drain(websocket: WebSocket, outbox: asyncio.Queue[str]) -> None:
    while True:
        payload = await outbox.get()
        try:
            await websocket.send_text(payload)
        except (WebSocketDisconnect, RuntimeError):
            return
