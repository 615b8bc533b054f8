"""
Unit tests for single-flight request deduplication
"""
import asyncio
import pytest
from backoffice.cache.dedup import RequestDeduplicator
from backoffice.cache.decorators import deduplicated

@pytest.mark.asyncio
async def test_concurrent_calls_share_one_execution():
    deduplicator = RequestDeduplicator()
    calls = 0
    release = asyncio.Event()

    async def operation():
        nonlocal calls
        calls += 1
        await release.wait()
        return {"value": 42}

    first = asyncio.create_task(deduplicator.deduplicate("k", operation))
    second = asyncio.create_task(deduplicator.deduplicate("k", operation))
    await asyncio.sleep(0)
    assert deduplicator.is_pending("k")

    release.set()
    results = await asyncio.gather(first, second)

    assert calls == 1
    assert results[0] is results[1]
    assert not deduplicator.is_pending("k")
    assert deduplicator.pending_count() == 0

@pytest.mark.asyncio
async def test_failure_reaches_every_caller_and_releases_key():
    deduplicator = RequestDeduplicator()
    release = asyncio.Event()

    async def failing():
        await release.wait()
        raise ValueError("boom")

    tasks = [asyncio.create_task(deduplicator.deduplicate("k", failing)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(isinstance(result, ValueError) for result in results)
    assert results[0] is results[1] is results[2]
    assert deduplicator.pending_count() == 0

@pytest.mark.asyncio
async def test_settled_key_runs_fresh_operation():
    deduplicator = RequestDeduplicator()

    async def first():
        return 1

    async def second():
        return 2

    assert await deduplicator.deduplicate("k", first) == 1
    assert await deduplicator.deduplicate("k", second) == 2

@pytest.mark.asyncio
async def test_different_keys_run_independently():
    deduplicator = RequestDeduplicator()
    calls = []

    async def operation(name):
        calls.append(name)
        await asyncio.sleep(0)
        return name

    results = await asyncio.gather(
        deduplicator.deduplicate("a", lambda: operation("a")),
        deduplicator.deduplicate("b", lambda: operation("b"))
    )
    assert results == ["a", "b"]
    assert sorted(calls) == ["a", "b"]

@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_operation():
    deduplicator = RequestDeduplicator()
    release = asyncio.Event()

    async def operation():
        await release.wait()
        return "done"

    cancelled = asyncio.create_task(deduplicator.deduplicate("k", operation))
    survivor = asyncio.create_task(deduplicator.deduplicate("k", operation))
    await asyncio.sleep(0)

    cancelled.cancel()
    await asyncio.sleep(0)
    release.set()

    assert await survivor == "done"
    with pytest.raises(asyncio.CancelledError):
        await cancelled

@pytest.mark.asyncio
async def test_deduplicated_decorator_uses_key_func():
    deduplicator = RequestDeduplicator()
    calls = []

    @deduplicated(deduplicator, key_func=lambda org, query: f"{org}:{query}")
    async def search(org, query):
        calls.append((org, query))
        await asyncio.sleep(0)
        return f"{org}-{query}"

    results = await asyncio.gather(
        search("o1", "farm"),
        search("o1", "farm"),
        search("o2", "farm")
    )

    assert results == ["o1-farm", "o1-farm", "o2-farm"]
    assert calls == [("o1", "farm"), ("o2", "farm")]
