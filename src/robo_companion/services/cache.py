from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from robo_companion.enums import CacheStateEnum

logger = logging.getLogger(__name__)

T = TypeVar("T")
CacheKey = tuple[Hashable, ...]


@dataclass
class CacheEntry(Generic[T]):
    value: list[T] = field(default_factory=list)
    state: CacheStateEnum = CacheStateEnum.EMPTY
    pending: asyncio.Task[list[T]] | None = None
    # start sequence of the fetch whose value is stored
    written_seq: int = 0


class MultiKeyCache(Generic[T]):
    """
    Keyed list store with lazy, single-flight population.

    - `get` never fetches.
    - `preload` fetches at most once per key at a time; concurrent callers share the
      in-flight result (or its error). Failures are not cached.
    - `force_refresh` always fetches and overwrites on success.
    - Whichever fetch started last wins; an older fetch finishing later does not write.
    - `clear` forgets everything; fetches started before it do not write back.
    """

    def __init__(
        self, fetch: Callable[[CacheKey], Awaitable[list[T]]], *, name: str = "cache"
    ) -> None:
        self._fetch = fetch
        self._entries: dict[CacheKey, CacheEntry[T]] = {}
        self._generation = 0
        self._seq = 0
        self.name = name
        self.fetch_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def state(self, key: CacheKey) -> CacheStateEnum:
        entry = self._entries.get(key)
        return entry.state if entry is not None else CacheStateEnum.EMPTY

    def is_loading(self, key: CacheKey) -> bool:
        return self.state(key) is CacheStateEnum.POPULATING

    def get(self, key: CacheKey) -> list[T]:
        entry = self._entries.get(key)
        if entry is None or entry.state is not CacheStateEnum.POPULATED:
            return []
        return entry.value

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    async def _run_fetch(self, key: CacheKey) -> list[T]:
        self.fetch_count += 1
        return list(await self._fetch(key))

    def _store(self, key: CacheKey, entry: CacheEntry[T], value: list[T], seq: int) -> bool:
        if self._entries.get(key) is not entry or seq < entry.written_seq:
            return False
        entry.value = value
        entry.state = CacheStateEnum.POPULATED
        entry.written_seq = seq
        return True

    def _abandon(self, key: CacheKey, entry: CacheEntry[T], task: asyncio.Task | None) -> None:
        # Revert to EMPTY unless a refresh already populated the entry.
        if (
            self._entries.get(key) is entry
            and entry.pending is task
            and entry.state is CacheStateEnum.POPULATING
        ):
            del self._entries[key]

    async def _fill(
        self, key: CacheKey, entry: CacheEntry[T], generation: int, seq: int
    ) -> list[T]:
        task = asyncio.current_task()
        try:
            value = await self._run_fetch(key)
        except asyncio.CancelledError:
            self._abandon(key, entry, task)
            raise
        except Exception as e:
            self._abandon(key, entry, task)
            logger.warning("[%s] fill failed for %s: %s", self.name, key, e)
            raise
        finally:
            if entry.pending is task:
                entry.pending = None

        if generation != self._generation:
            logger.debug("[%s] discarding fill for %s started before clear", self.name, key)
        elif self._store(key, entry, value, seq):
            logger.info("[%s] filled %s (%d items)", self.name, key, len(value))
        else:
            logger.debug("[%s] discarding fill for %s superseded by a refresh", self.name, key)
        return value

    @staticmethod
    def _retrieve(task: asyncio.Task[list[T]]) -> None:
        # Every waiter may have gone; mark the outcome retrieved.
        if not task.cancelled():
            task.exception()

    async def preload(self, key: CacheKey) -> list[T]:
        entry = self._entries.get(key)
        if entry is not None:
            if entry.state is CacheStateEnum.POPULATED:
                logger.debug("[%s] hit %s", self.name, key)
                return entry.value
            if entry.state is CacheStateEnum.POPULATING and entry.pending is not None:
                logger.debug("[%s] awaiting in-flight fill for %s", self.name, key)
                return await asyncio.shield(entry.pending)

        if entry is None:
            entry = CacheEntry()
            self._entries[key] = entry

        entry.state = CacheStateEnum.POPULATING
        task = asyncio.ensure_future(self._fill(key, entry, self._generation, self._next_seq()))
        task.add_done_callback(self._retrieve)
        entry.pending = task
        # A cancelled caller leaves the fill running for the others.
        return await asyncio.shield(task)

    async def force_refresh(self, key: CacheKey) -> list[T]:
        generation = self._generation
        seq = self._next_seq()
        value = await self._run_fetch(key)

        if generation != self._generation:
            logger.debug("[%s] discarding refresh for %s started before clear", self.name, key)
            return value

        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry()
            self._entries[key] = entry
        if self._store(key, entry, value, seq):
            logger.info("[%s] refreshed %s (%d items)", self.name, key, len(value))
        else:
            logger.debug(
                "[%s] discarding refresh for %s superseded by a newer fetch", self.name, key
            )
        return value

    def clear(self) -> None:
        self._generation += 1
        self._entries.clear()
        logger.info("[%s] cleared", self.name)

    def invalidate_where(self, predicate: Callable[[CacheKey], bool]) -> int:
        doomed = [k for k in self._entries if predicate(k)]
        for k in doomed:
            del self._entries[k]
        if doomed:
            logger.info("[%s] invalidated %d entries", self.name, len(doomed))
        return len(doomed)
