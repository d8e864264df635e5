import asyncio

import pytest

from tutorchat.errors import ConflictError
from tutorchat.utils.concurrency import KeyedLock, StaleWriteError, retry_on_conflict


async def test_keyed_lock_serialises_same_key():
    locks = KeyedLock()
    events = []

    async def worker(name):
        async with locks.hold("c1", timeout=1):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
    assert "c1" not in locks


async def test_keyed_lock_does_not_block_other_keys():
    locks = KeyedLock()
    async with locks.hold("c1", timeout=1):
        async with locks.hold("c2", timeout=0.1):
            assert "c2" in locks


async def test_keyed_lock_times_out_with_conflict():
    locks = KeyedLock()
    async with locks.hold("c1", timeout=1):
        with pytest.raises(ConflictError):
            async with locks.hold("c1", timeout=0.01):
                pass
    assert "c1" not in locks


async def test_retry_returns_first_fresh_result():
    calls = []

    async def attempt():
        calls.append(1)
        if len(calls) < 3:
            raise StaleWriteError("c1")
        return "done"

    assert await retry_on_conflict("c1", attempt, max_attempts=3) == "done"
    assert len(calls) == 3


async def test_retry_gives_up_with_conflict():
    async def attempt():
        raise StaleWriteError("c1")

    with pytest.raises(ConflictError) as info:
        await retry_on_conflict("c1", attempt, max_attempts=2)
    assert info.value.conversation_id == "c1"
