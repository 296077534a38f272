"""
Tests for the shared daily challenge set
"""
import asyncio

import pytest

from progress_service.schemas import DailyChallenge
from progress_service.services.daily_challenge_cache import DailyChallengeCache


def challenge(problem_id: str) -> DailyChallenge:
    return DailyChallenge(
        id=1,
        problemId=problem_id,
        contestId=1,
        problemIndex="A",
        title=problem_id,
        difficulty="Easy",
        problemUrl="https://codeforces.com/problemset/problem/1/A",
        xpReward=50,
    )


class CountingLoader:

    def __init__(self, results):
        self.results = results
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        return self.results[min(self.calls, len(self.results)) - 1]


@pytest.mark.asyncio
async def test_loads_once_per_day():
    loader = CountingLoader([[challenge("CF-1-A")], [challenge("CF-2-B")]])
    day = {"value": "2025-11-18"}
    cache = DailyChallengeCache(loader, today=lambda: day["value"])

    first = await cache.get()
    second = await cache.get()
    assert loader.calls == 1
    assert first == second
    assert cache.cached_date == "2025-11-18"

    day["value"] = "2025-11-19"
    third = await cache.get()
    assert loader.calls == 2
    assert third[0].problemId == "CF-2-B"


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_load():
    loader = CountingLoader([[challenge("CF-1-A")]])
    cache = DailyChallengeCache(loader, today=lambda: "2025-11-18")

    results = await asyncio.gather(*(cache.get() for _ in range(5)))

    assert loader.calls == 1
    assert all(r == results[0] for r in results)


@pytest.mark.asyncio
async def test_empty_set_is_reloaded():
    loader = CountingLoader([[], [challenge("CF-1-A")]])
    cache = DailyChallengeCache(loader, today=lambda: "2025-11-18")

    assert await cache.get() == []
    assert len(await cache.get()) == 1
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_find_and_invalidate():
    loader = CountingLoader([[challenge("CF-1-A")]])
    cache = DailyChallengeCache(loader, today=lambda: "2025-11-18")

    assert (await cache.find("CF-1-A")).problemId == "CF-1-A"
    assert await cache.find("CF-9-Z") is None

    cache.invalidate()
    assert cache.cached_date is None
    await cache.get()
    assert loader.calls == 2


def test_cache_built_outside_event_loop():
    # Same shape as the cached dependency: created before any loop is running
    loader = CountingLoader([[challenge("CF-1-A")]])
    cache = DailyChallengeCache(loader, today=lambda: "2025-11-18")

    async def burst():
        return await asyncio.gather(*(cache.get() for _ in range(5)))

    results = asyncio.run(burst())

    assert loader.calls == 1
    assert all(r == results[0] for r in results)
