"""
tests/test_locks.py — Per-Key Lock Tests
=========================================
"""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from japa.engine.locks import AsyncKeyedLock, KeyedLock


class TestKeyedLock:
    def test_same_key_is_serialized(self):
        locks = KeyedLock()
        active = 0
        peak = 0
        guard = threading.Lock()

        def work():
            nonlocal active, peak
            with locks.hold(1):
                with guard:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.005)
                with guard:
                    active -= 1

        threads = [threading.Thread(target=work) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert peak == 1

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other():
            with locks.hold(2):
                entered.set()

        with locks.hold(1):
            worker = threading.Thread(target=other)
            worker.start()
            assert entered.wait(timeout=1)
            worker.join()

    def test_entries_freed_after_release(self):
        locks = KeyedLock()
        with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_released_on_exception(self):
        locks = KeyedLock()
        try:
            with locks.hold(1):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        with locks.hold(1):
            pass
        assert len(locks) == 0


class TestAsyncKeyedLock:
    def test_same_key_is_serialized(self):
        locks = AsyncKeyedLock()
        order = []

        async def work(n):
            async with locks.hold("a"):
                order.append(("in", n))
                await asyncio.sleep(0.001)
                order.append(("out", n))

        async def scenario():
            await asyncio.gather(*(work(n) for n in range(5)))

        asyncio.run(scenario())
        # Every "in" is immediately followed by its own "out"
        assert all(order[i][1] == order[i + 1][1] for i in range(0, len(order), 2))
        assert len(locks) == 0

    def test_held_key_does_not_block_other_keys(self):
        locks = AsyncKeyedLock()

        async def scenario():
            async with locks.hold(1):
                waiter = asyncio.create_task(_hold_briefly(locks, 1))
                await asyncio.wait_for(_hold_briefly(locks, 2), timeout=1)
                assert not waiter.done()
            await waiter

        asyncio.run(scenario())
        assert len(locks) == 0

    def test_released_on_exception(self):
        locks = AsyncKeyedLock()

        async def scenario():
            with pytest.raises(RuntimeError):
                async with locks.hold(1):
                    raise RuntimeError("boom")
            async with locks.hold(1):
                pass

        asyncio.run(scenario())
        assert len(locks) == 0


async def _hold_briefly(locks: AsyncKeyedLock, key) -> None:
    async with locks.hold(key):
        await asyncio.sleep(0)
