"""Concurrency control utilities.

Provides keyed asyncio locks so that work on one key (an address) is
serialized while work on different keys proceeds in parallel.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


async def acquire_with_timeout(
    lock: asyncio.Lock,
    timeout: Optional[float],
    description: str,
) -> None:
    """Acquire ``lock``, waiting at most ``timeout`` seconds (None = forever).

    Raises:
        LockTimeoutError: If the lock was not acquired in time
    """
    if not timeout:
        await lock.acquire()
        return

    try:
        await asyncio.wait_for(lock.acquire(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Lock timeout after {timeout}s: {description}")
        raise LockTimeoutError(f"Could not acquire lock for {description} within {timeout}s")


class KeyedLockRegistry:
    """Registry of one asyncio.Lock per key.

    A key's lock exists only while someone holds or waits for it, so the
    registry does not grow with the number of distinct keys ever seen.

    Example:
        locks = KeyedLockRegistry()
        async with locks.hold(address, operation="withdraw"):
            # Check-then-act on this address only
            ...
    """

    def __init__(self, timeout: Optional[float] = 30.0):
        """Initialize the registry.

        Args:
            timeout: Maximum time to wait for a key's lock (None = wait forever)
        """
        self.timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}
        self._registry_lock = asyncio.Lock()

    async def _checkout(self, key: str) -> asyncio.Lock:
        """Get or create the lock for ``key`` and count the caller as a user."""
        async with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = asyncio.Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    async def _checkin(self, key: str) -> None:
        """Drop the caller's use of ``key``; forget the lock when unused."""
        async with self._registry_lock:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold(self, key: str, operation: str = "operation") -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Raises:
            LockTimeoutError: If the lock could not be acquired in time
        """
        lock = await self._checkout(key)
        try:
            await acquire_with_timeout(lock, self.timeout, f"{key} ({operation})")
            logger.debug(f"Lock acquired for {key}: {operation}")

            try:
                yield
            finally:
                lock.release()
                logger.debug(f"Lock released for {key}: {operation}")
        finally:
            await self._checkin(key)

    def is_locked(self, key: str) -> bool:
        """Check whether ``key`` is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
