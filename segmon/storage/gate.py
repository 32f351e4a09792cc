from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class ConcurrencyGate:
    """
    Per-collection write serialization.

    Each collection name gets its own FIFO lock, created on first use and
    dropped again once nobody holds or waits for it. Names never block each
    other.
    """

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    async def acquire(self, name: str) -> Callable[[], None]:
        """Wait for earlier operations on `name`; returns the release callable."""
        entry = self._entries.get(name)
        if entry is None:
            entry = self._entries[name] = _Entry()
        entry.users += 1
        try:
            await entry.lock.acquire()
        except BaseException:
            self._leave(name, entry)
            raise

        released = False

        def release():
            nonlocal released
            if released:
                return
            released = True
            entry.lock.release()
            self._leave(name, entry)

        return release

    def _leave(self, name: str, entry: _Entry):
        entry.users -= 1
        if entry.users == 0 and self._entries.get(name) is entry:
            del self._entries[name]

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        release = await self.acquire(name)
        try:
            yield
        finally:
            release()
