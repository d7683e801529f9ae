"""
japa.engine.locks — Per-Key Mutual Exclusion
==============================================

Recording runs on worker threads (``run_db``).  Japs for the *same* account
must not interleave their counter update and achievement dedup; japs for
different accounts must never wait on each other.  :class:`KeyedLock`
hands out one ``threading.Lock`` per key and frees it once nobody holds or
waits on it.

:class:`AsyncKeyedLock` is the event-loop twin: requests queue on an
``asyncio.Lock`` per account *before* taking a worker thread, so waiters
cost nothing but a suspended coroutine.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Hashable, Iterator
from contextlib import asynccontextmanager, contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock:
    """Registry of reference-counted locks keyed by account id.

    Usage::

        locks = KeyedLock()
        with locks.hold(account_id):
            ...  # serialized per account_id
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        """Number of keys currently held or awaited."""
        with self._guard:
            return len(self._entries)


class AsyncKeyedLock:
    """Per-key ``asyncio.Lock`` registry, freed when a key goes idle.

    Only touched from the event loop thread, so no guard is needed.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


# Module-level instances shared by every recording in this process
_default_locks = KeyedLock()
_default_async_locks = AsyncKeyedLock()


def get_default_locks() -> KeyedLock:
    return _default_locks


def get_default_async_locks() -> AsyncKeyedLock:
    return _default_async_locks
