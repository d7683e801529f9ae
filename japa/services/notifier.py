"""
japa.services.notifier — Per-Account Real-Time Notification Channel
=====================================================================

Every account owns one logical channel keyed by its id.  Live sessions
(WebSocket connections) register a delivery handle with :meth:`connect`
and join an account's channel with :meth:`subscribe` once they have
authenticated.  Publishing is fire-and-forget and at-most-once: no
queuing for absent subscribers, no replay, and a failing handle never
affects the publisher or the other subscribers.

Publishing happens on worker threads (the recording pipeline runs in a
threadpool) while sockets live on the event loop, so :class:`AsyncQueueSink`
bridges the two with ``loop.call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

Deliver = Callable[[dict[str, Any]], None]

BALANCE_CHANGED = "balance_changed"
ACHIEVEMENTS_UNLOCKED = "achievements_unlocked"


# ---------------------------------------------------------------------------
# Message shapes
# ---------------------------------------------------------------------------
def balance_changed(coins: int, total_japs: int, timestamp: datetime) -> dict[str, Any]:
    return {
        "type": BALANCE_CHANGED,
        "coins": coins,
        "total_japs": total_japs,
        "timestamp": timestamp.isoformat(),
    }


def achievements_unlocked(achievements: Iterable[dict[str, Any]]) -> dict[str, Any]:
    return {"type": ACHIEVEMENTS_UNLOCKED, "achievements": list(achievements)}


# ---------------------------------------------------------------------------
# Hub
# ---------------------------------------------------------------------------
class NotificationHub:
    """Maps account id → set of live session handles.

    Thread-safe; :meth:`publish` never raises.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, Deliver] = {}
        self._channels: dict[int, set[str]] = defaultdict(set)
        self._bound: dict[str, int] = {}

    # -------------------------------------------------------------------
    # Session lifecycle (transport side)
    # -------------------------------------------------------------------
    def connect(self, session_id: str, deliver: Deliver) -> None:
        """Register a live session.  It receives nothing until subscribed."""
        with self._lock:
            self._handles[session_id] = deliver

    def subscribe(self, session_id: str, account_id: int) -> None:
        """Bind a connected session to *account_id*'s channel.

        Re-subscribing moves the session to the new channel.

        Raises
        ------
        LookupError
            If *session_id* was never connected (or already left).
        """
        with self._lock:
            if session_id not in self._handles:
                raise LookupError(f"Unknown session: {session_id}")
            self._leave(session_id)
            self._channels[account_id].add(session_id)
            self._bound[session_id] = account_id
        logger.info("Session %s joined channel %d", session_id, account_id)

    def unsubscribe(self, session_id: str) -> None:
        """Drop a session from its channel and forget its handle."""
        with self._lock:
            self._leave(session_id)
            self._handles.pop(session_id, None)

    def _leave(self, session_id: str) -> None:
        account_id = self._bound.pop(session_id, None)
        if account_id is None:
            return
        members = self._channels.get(account_id)
        if members is not None:
            members.discard(session_id)
            if not members:
                del self._channels[account_id]

    def subscriber_count(self, account_id: int) -> int:
        with self._lock:
            return len(self._channels.get(account_id, ()))

    # -------------------------------------------------------------------
    # Publishing (core side)
    # -------------------------------------------------------------------
    def publish(self, account_id: int, message: dict[str, Any]) -> int:
        """Deliver *message* to every session on *account_id*'s channel.

        Returns the number of handles that accepted the message.
        """
        with self._lock:
            targets = [
                (sid, self._handles[sid])
                for sid in self._channels.get(account_id, ())
                if sid in self._handles
            ]

        delivered = 0
        for session_id, deliver in targets:
            try:
                deliver(message)
                delivered += 1
            except Exception:
                logger.exception(
                    "Failed to deliver %s to session %s",
                    message.get("type"), session_id,
                )
        return delivered


# ---------------------------------------------------------------------------
# Thread → event loop bridge
# ---------------------------------------------------------------------------
class AsyncQueueSink:
    """Delivery handle that forwards messages onto an asyncio queue.

    Callable from any thread.  A writer task on *loop* drains
    :attr:`queue` to the socket.  When the queue is full the message is
    dropped, matching the channel's at-most-once contract.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 100) -> None:
        self._loop = loop
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)

    def __call__(self, message: dict[str, Any]) -> None:
        self._loop.call_soon_threadsafe(self._put, message)

    def _put(self, message: dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Notification queue full — dropping %s", message.get("type"))


# Module-level hub shared by the API process
_default_hub = NotificationHub()


def get_default_hub() -> NotificationHub:
    return _default_hub
