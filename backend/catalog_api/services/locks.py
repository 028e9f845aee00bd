"""Per-collection serialization of structural catalog mutations."""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..errors import ConflictError


class CollectionLocks:
    """Hand out one ``asyncio.Lock`` per collection id.

    Every create, delete and aggregate recomputation below a collection runs
    while holding that collection's lock.
    """

    def __init__(self, *, timeout: float = 10.0) -> None:
        self._timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, collection_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(collection_id, asyncio.Lock())
        try:
            # A cancelled Lock.acquire never leaves the lock held.
            async with asyncio.timeout(self._timeout):
                await lock.acquire()
        except TimeoutError as exc:
            raise ConflictError(
                f"Timed out waiting for collection {collection_id} to settle"
            ) from exc
        try:
            yield
        finally:
            lock.release()

    def discard(self, collection_id: str) -> None:
        """Forget the lock of a deleted collection when nobody is waiting on it."""

        lock = self._locks.get(collection_id)
        if lock is not None and not lock.locked():
            del self._locks[collection_id]
