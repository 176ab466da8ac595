"""Per-(owner, day) critical sections for capacity-gated writes."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date


class DayLockRegistry:
    """Registry of asyncio locks keyed by (owner, day).

    Serializes the read-total, decide, write sequence for a single owner's
    day within one process. Entries are dropped once no task holds or waits
    on them, so the registry only grows with in-flight work.

    Usage:
        async with day_locks.hold(owner, day):
            total = await service.day_total(owner, day)
            ...
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._locks: dict[tuple[str, date], asyncio.Lock] = {}
        self._users: dict[tuple[str, date], int] = {}

    def __len__(self) -> int:
        """Number of (owner, day) keys currently in use."""
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, owner: str, day: date) -> AsyncIterator[None]:
        """Hold the lock for one owner's day."""
        key = (owner, day)
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


# Process-wide registry shared by all ActivityService instances
day_locks = DayLockRegistry()
