import asyncio

import pytest

from tourney_rank.locks import KeyedLocks, game_key, match_key, stats_key


@pytest.mark.anyio
async def test_same_key_is_serialized():
    locks = KeyedLocks()
    events = []

    async def worker(name):
        async with locks.hold(stats_key("p1", "g1")):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )
    assert len(locks) == 0


@pytest.mark.anyio
async def test_different_keys_run_concurrently():
    locks = KeyedLocks()
    inside = asyncio.Event()

    async def first():
        async with locks.hold(stats_key("p1", "g1")):
            await asyncio.wait_for(inside.wait(), timeout=1)

    async def second():
        async with locks.hold(stats_key("p2", "g1")):
            inside.set()

    await asyncio.gather(first(), second())


@pytest.mark.anyio
async def test_hold_many_in_any_order_does_not_deadlock():
    locks = KeyedLocks()
    a, b = stats_key("p1", "g1"), stats_key("p2", "g1")
    done = []

    async def worker(keys, name):
        async with locks.hold_many(keys):
            await asyncio.sleep(0.01)
            done.append(name)

    await asyncio.wait_for(
        asyncio.gather(worker([a, b], "x"), worker([b, a], "y")), timeout=2
    )
    assert sorted(done) == ["x", "y"]
    assert len(locks) == 0


@pytest.mark.anyio
async def test_hold_many_releases_on_error():
    locks = KeyedLocks()
    with pytest.raises(RuntimeError):
        async with locks.hold_many([stats_key("p1", "g1"), stats_key("p1", "g1")]):
            raise RuntimeError("boom")
    assert len(locks) == 0
    async with locks.hold(stats_key("p1", "g1")):
        pass


@pytest.mark.anyio
async def test_game_lock_blocks_verification_keys():
    locks = KeyedLocks()
    order = []

    async def rerank():
        async with locks.hold(game_key("g1")):
            order.append("rerank-start")
            await asyncio.sleep(0.02)
            order.append("rerank-end")

    async def verify():
        await asyncio.sleep(0.005)
        keys = [stats_key("p9", "g1"), match_key("m1"), game_key("g1")]
        async with locks.hold_many(keys):
            order.append("verify")

    await asyncio.wait_for(asyncio.gather(rerank(), verify()), timeout=2)
    assert order == ["rerank-start", "rerank-end", "verify"]
    assert len(locks) == 0
