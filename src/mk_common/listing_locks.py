"""Per-listing serialization units shared by the bid and offer ledgers.

One asyncio.Lock per listing id: writers on the same listing queue in
admission order, writers on different listings never touch each other's lock.
An entry lives only while some coroutine holds or waits on it, so the map is
bounded by in-flight writers, not by how many listing ids were ever seen.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0  # holder + waiters


class ListingLockRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    @asynccontextmanager
    async def for_listing(self, listing_id: str) -> AsyncIterator[None]:
        entry = self._entries.get(listing_id)
        if entry is None:
            entry = self._entries[listing_id] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[listing_id]

    def __len__(self) -> int:
        return len(self._entries)
