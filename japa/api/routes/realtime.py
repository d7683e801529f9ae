"""
japa.api.routes.realtime — WebSocket notification transport
=============================================================

Protocol::

    client → {"type": "authenticate", "token": "<jwt>"}
    server → {"type": "authenticated", "account_id": "42"}
    server → {"type": "balance_changed", ...}          (after each jap)
    server → {"type": "achievements_unlocked", ...}    (when any unlock)

Sockets that never authenticate receive nothing but protocol replies.
All outbound frames go through one writer task per socket; if either the
writer or the reader stops, the session ends and both are reaped.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from jwt.exceptions import InvalidTokenError

from japa.api.deps import decode_account_id, get_hub
from japa.services.notifier import AsyncQueueSink, NotificationHub

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


async def _writer(websocket: WebSocket, queue: asyncio.Queue[dict[str, Any]]) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _reader(
    websocket: WebSocket,
    hub: NotificationHub,
    session_id: str,
    outbox: asyncio.Queue[dict[str, Any]],
) -> None:
    """Handle inbound frames until the client disconnects."""
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await outbox.put({"type": "error", "detail": "Malformed JSON"})
                continue
            if not isinstance(message, dict) or message.get("type") != "authenticate":
                continue

            try:
                account_id = decode_account_id(str(message.get("token", "")))
            except InvalidTokenError:
                await outbox.put({"type": "error", "detail": "Invalid or expired token"})
                continue

            hub.subscribe(session_id, account_id)
            await outbox.put({"type": "authenticated", "account_id": str(account_id)})
    except WebSocketDisconnect:
        logger.info("Socket disconnected: %s", session_id)


@router.websocket("/ws")
async def notifications(
    websocket: WebSocket,
    hub: NotificationHub = Depends(get_hub),
):
    await websocket.accept()
    session_id = uuid4().hex
    sink = AsyncQueueSink(asyncio.get_running_loop())
    hub.connect(session_id, sink)
    writer = asyncio.create_task(_writer(websocket, sink.queue), name=f"ws-out-{session_id}")
    reader = asyncio.create_task(
        _reader(websocket, hub, session_id, sink.queue), name=f"ws-in-{session_id}",
    )
    logger.info("Socket connected: %s", session_id)

    try:
        # Whichever side ends first ends the session
        await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        hub.unsubscribe(session_id)
        for task in (reader, writer):
            task.cancel()
        for task in (reader, writer):
            with contextlib.suppress(asyncio.CancelledError):
                try:
                    await task
                except Exception:
                    logger.exception("Socket %s task %s failed", session_id, task.get_name())
