import asyncio

import pytest

from app.core.inflight import InflightRequests


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_call():
    inflight = InflightRequests()
    calls = 0
    gate = asyncio.Event()

    async def work():
        nonlocal calls
        calls += 1
        await gate.wait()
        return {"price": 10}

    tasks = [asyncio.create_task(inflight.run("url", work)) for _ in range(5)]
    await asyncio.sleep(0)
    assert "url" in inflight
    gate.set()
    results = await asyncio.gather(*tasks)
    assert calls == 1
    assert all(r == {"price": 10} for r in results)
    assert len(inflight) == 0


@pytest.mark.asyncio
async def test_settled_entries_are_not_retained():
    inflight = InflightRequests()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        return calls

    assert await inflight.run("k", work) == 1
    assert await inflight.run("k", work) == 2
    assert "k" not in inflight


@pytest.mark.asyncio
async def test_failures_reach_every_waiter_and_clear_the_entry():
    inflight = InflightRequests()
    gate = asyncio.Event()

    async def boom():
        await gate.wait()
        raise RuntimeError("upstream down")

    tasks = [asyncio.create_task(inflight.run("k", boom)) for _ in range(3)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert all(isinstance(r, RuntimeError) for r in results)
    assert len(inflight) == 0

    async def ok():
        return "fresh"

    assert await inflight.run("k", ok) == "fresh"


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_work():
    inflight = InflightRequests()
    gate = asyncio.Event()

    async def work():
        await gate.wait()
        return "done"

    first = asyncio.create_task(inflight.run("k", work))
    second = asyncio.create_task(inflight.run("k", work))
    await asyncio.sleep(0)
    first.cancel()
    gate.set()
    assert await second == "done"
    with pytest.raises(asyncio.CancelledError):
        await first
