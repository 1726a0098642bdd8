from __future__ import annotations

from asyncio import Lock
from collections.abc import Hashable, Iterable
from contextlib import asynccontextmanager
from typing import AsyncIterator


class KeyedLocks:
    """A table of asyncio locks, one per key, created on demand.

    Entries are dropped once nobody holds or waits for them, so the table
    only grows with the number of keys in use at the same time.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, tuple[Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: Hashable) -> Lock:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = Lock()
        self._locks[key] = (lock, users + 1)
        return lock

    def _release(self, key: Hashable) -> None:
        lock, users = self._locks[key]
        if users <= 1:
            del self._locks[key]
        else:
            self._locks[key] = (lock, users - 1)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._checkout(key)
        try:
            async with lock:
                yield
        finally:
            self._release(key)

    @asynccontextmanager
    async def hold_many(self, keys: Iterable[Hashable]) -> AsyncIterator[None]:
        """Hold several keys at once, acquired in sorted order."""
        ordered = sorted(set(keys), key=repr)
        checked_out: list[Hashable] = []
        held: list[Lock] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                await lock.acquire()
                held.append(lock)
            yield
        finally:
            for lock in reversed(held):
                lock.release()
            for key in reversed(checked_out):
                self._release(key)


def game_key(game_id: str) -> tuple[str, str]:
    """Held by every writer of a game's weights or of its players' scores."""
    return ("game", game_id)


def match_key(match_id: str) -> tuple[str, str]:
    return ("match", match_id)


def stats_key(player_id: str, game_id: str) -> tuple[str, str, str]:
    return ("player_stats", player_id, game_id)


entity_locks = KeyedLocks()
