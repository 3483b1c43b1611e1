from __future__ import annotations

import asyncio

import pytest

from robo_companion.enums import CacheStateEnum
from robo_companion.services.cache import MultiKeyCache


@pytest.mark.asyncio
async def test_get_on_empty_key_returns_empty_without_fetching() -> None:
    calls: list[tuple] = []

    async def fetch(key: tuple) -> list[str]:
        calls.append(key)
        return ["x"]

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    assert cache.get((2024, 1, "High School")) == []
    assert calls == []
    assert cache.state((2024, 1, "High School")) is CacheStateEnum.EMPTY


@pytest.mark.asyncio
async def test_concurrent_preloads_share_one_fetch() -> None:
    calls = 0
    gate = asyncio.Event()

    async def fetch(key: tuple) -> list[str]:
        nonlocal calls
        calls += 1
        await gate.wait()
        return ["a", "b"]

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    key = (181, 1, "Middle School")

    first = asyncio.create_task(cache.preload(key))
    second = asyncio.create_task(cache.preload(key))
    await asyncio.sleep(0)
    assert cache.is_loading(key)

    gate.set()
    assert await first == ["a", "b"]
    assert await second == ["a", "b"]
    assert calls == 1
    assert cache.state(key) is CacheStateEnum.POPULATED
    assert cache.get(key) == ["a", "b"]

    # Populated entries are served without another fetch.
    assert await cache.preload(key) == ["a", "b"]
    assert calls == 1


@pytest.mark.asyncio
async def test_distinct_keys_do_not_merge() -> None:
    async def fetch(key: tuple) -> list[int]:
        return [key[0]]

    cache: MultiKeyCache[int] = MultiKeyCache(fetch)
    await asyncio.gather(cache.preload((1,)), cache.preload((2,)))
    assert cache.get((1,)) == [1]
    assert cache.get((2,)) == [2]
    assert cache.fetch_count == 2


@pytest.mark.asyncio
async def test_failed_preload_propagates_to_waiters_and_is_not_cached() -> None:
    attempts = 0
    gate = asyncio.Event()

    async def fetch(key: tuple) -> list[str]:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            await gate.wait()
            raise RuntimeError("upstream down")
        return ["ok"]

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    key = ("team", 42)

    first = asyncio.create_task(cache.preload(key))
    second = asyncio.create_task(cache.preload(key))
    await asyncio.sleep(0)
    gate.set()

    results = await asyncio.gather(first, second, return_exceptions=True)
    assert all(isinstance(r, RuntimeError) for r in results)
    assert cache.state(key) is CacheStateEnum.EMPTY
    assert cache.get(key) == []

    assert await cache.preload(key) == ["ok"]
    assert attempts == 2


@pytest.mark.asyncio
async def test_force_refresh_overwrites_value() -> None:
    versions = iter([["v1"], ["v2"]])

    async def fetch(key: tuple) -> list[str]:
        return next(versions)

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    key = (1,)

    assert await cache.preload(key) == ["v1"]
    assert await cache.force_refresh(key) == ["v2"]
    assert cache.get(key) == ["v2"]


@pytest.mark.asyncio
async def test_failed_force_refresh_keeps_previous_value() -> None:
    fail = False

    async def fetch(key: tuple) -> list[str]:
        if fail:
            raise RuntimeError("nope")
        return ["kept"]

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    await cache.preload((1,))

    fail = True
    with pytest.raises(RuntimeError):
        await cache.force_refresh((1,))
    assert cache.get((1,)) == ["kept"]


@pytest.mark.asyncio
async def test_clear_discards_in_flight_result() -> None:
    gate = asyncio.Event()

    async def fetch(key: tuple) -> list[str]:
        await gate.wait()
        return ["stale"]

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    task = asyncio.create_task(cache.preload((1,)))
    await asyncio.sleep(0)

    cache.clear()
    gate.set()

    # The caller still gets its value; the cache does not keep it.
    assert await task == ["stale"]
    assert cache.get((1,)) == []
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_invalidate_where_drops_matching_keys() -> None:
    async def fetch(key: tuple) -> list[tuple]:
        return [key]

    cache: MultiKeyCache[tuple] = MultiKeyCache(fetch)
    for key in [(181, 1, "HS"), (181, 41, "MS"), (190, 1, "HS")]:
        await cache.preload(key)

    removed = cache.invalidate_where(lambda k: k[1] == 1)
    assert removed == 2
    assert cache.get((181, 41, "MS")) == [(181, 41, "MS")]
    assert cache.get((190, 1, "HS")) == []


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_fail_other_waiters() -> None:
    calls = 0
    gate = asyncio.Event()

    async def fetch(key: tuple) -> list[str]:
        nonlocal calls
        calls += 1
        await gate.wait()
        return ["v"]

    cache: MultiKeyCache[str] = MultiKeyCache(fetch)
    first = asyncio.create_task(cache.preload((1,)))
    second = asyncio.create_task(cache.preload((1,)))
    while cache.fetch_count == 0:
        await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    gate.set()
    assert await second == ["v"]
    assert calls == 1
    assert cache.get((1,)) == ["v"]


def _gated_first_fetch(gate: asyncio.Event):
    calls: list[str] = []

    async def fetch(key: tuple) -> list[str]:
        if not calls:
            calls.append("preload")
            await gate.wait()
            return ["preloaded"]
        calls.append("refresh")
        return ["refreshed"]

    return fetch, calls


@pytest.mark.asyncio
async def test_force_refresh_does_not_wait_for_in_flight_preload() -> None:
    gate = asyncio.Event()
    fetch, calls = _gated_first_fetch(gate)
    cache: MultiKeyCache[str] = MultiKeyCache(fetch)

    loading = asyncio.create_task(cache.preload((1,)))
    while cache.fetch_count == 0:
        await asyncio.sleep(0)
    assert cache.is_loading((1,))

    assert await cache.force_refresh((1,)) == ["refreshed"]
    assert calls == ["preload", "refresh"]
    assert cache.fetch_count == 2

    gate.set()
    assert await loading == ["preloaded"]


@pytest.mark.asyncio
async def test_older_preload_does_not_overwrite_newer_refresh() -> None:
    gate = asyncio.Event()
    fetch, _ = _gated_first_fetch(gate)
    cache: MultiKeyCache[str] = MultiKeyCache(fetch)

    loading = asyncio.create_task(cache.preload((1,)))
    while cache.fetch_count == 0:
        await asyncio.sleep(0)
    await cache.force_refresh((1,))
    assert cache.get((1,)) == ["refreshed"]

    gate.set()
    await loading
    assert cache.get((1,)) == ["refreshed"]
    assert cache.state((1,)) is CacheStateEnum.POPULATED
