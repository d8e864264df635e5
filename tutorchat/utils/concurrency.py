import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, TypeVar

from tutorchat.errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StaleWriteError(Exception):
    """A conditional write found a different version than the one it read."""


class KeyedLock:
    """One asyncio.Lock per key, dropped again once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str, timeout: float) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                raise ConflictError(
                    f"Timed out waiting to write conversation {key}", conversation_id=key
                ) from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __contains__(self, key: str) -> bool:
        return key in self._locks


# shared by every request handler in this process
conversation_locks = KeyedLock()


async def retry_on_conflict(
    conversation_id: str,
    attempt: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
) -> T:
    """Run ``attempt`` until it stops raising StaleWriteError, at most ``max_attempts`` times."""
    for number in range(1, max_attempts + 1):
        try:
            return await attempt()
        except StaleWriteError:
            logger.warning(
                "Stale write on conversation %s (attempt %d/%d)", conversation_id, number, max_attempts
            )
    raise ConflictError(
        f"Conversation {conversation_id} kept changing, gave up after {max_attempts} attempts",
        conversation_id=conversation_id,
    )
