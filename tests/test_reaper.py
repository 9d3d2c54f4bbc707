import asyncio
import contextlib

from surrogat.reaper import reap_stale, run_reaper
from surrogat.state import ClientRecord, Role

from .conftest import FakeSocket

NOW = 1_700_000_000_000
TIMEOUT = 45_000


async def add(registry, id, role, idle_ms, fail=False):
    ws = FakeSocket(fail=fail)
    record = ClientRecord(id=id, name=id, role=role, last_activity=NOW - idle_ms)
    await registry.insert(ws, record)
    return ws


async def test_stale_streamer_evicted_with_single_broadcast(registry):
    a = await add(registry, "A", Role.STREAMER, 50_000)
    fresh = await add(registry, "C", Role.VIEWER, 1_000)

    removed = await reap_stale(registry, TIMEOUT, now=NOW)

    assert [r.id for r in removed] == ["A"]
    assert a.closed
    assert a not in registry
    assert fresh.messages == [{"type": "users", "users": []}]


async def test_stale_viewer_evicted_without_broadcast(registry):
    b = await add(registry, "B", Role.VIEWER, 50_000)
    fresh = await add(registry, "C", Role.STREAMER, 1_000)

    removed = await reap_stale(registry, TIMEOUT, now=NOW)

    assert [r.id for r in removed] == ["B"]
    assert b.closed
    assert fresh.sent == []


async def test_many_stale_streamers_batched_into_one_broadcast(registry):
    for i in range(4):
        await add(registry, f"S{i}", Role.STREAMER, 60_000)
    survivor = await add(registry, "K", Role.STREAMER, 0)
    observer = await add(registry, "V", Role.VIEWER, 0)

    removed = await reap_stale(registry, TIMEOUT, now=NOW)

    assert len(removed) == 4
    assert observer.messages == [{"type": "users", "users": [{"id": "K", "name": "K"}]}]
    assert len(survivor.sent) == 1


async def test_timeout_boundary_is_exclusive(registry):
    ws = await add(registry, "edge", Role.STREAMER, TIMEOUT)

    assert await reap_stale(registry, TIMEOUT, now=NOW) == []
    assert ws in registry


async def test_close_failure_still_evicts(registry):
    ws = await add(registry, "dead", Role.VIEWER, 90_000, fail=True)

    removed = await reap_stale(registry, TIMEOUT, now=NOW)

    assert [r.id for r in removed] == ["dead"]
    assert ws not in registry


async def test_run_reaper_scans_periodically(registry):
    ws = FakeSocket()
    await registry.insert(ws, ClientRecord(id="old", name="old", last_activity=0))

    task = asyncio.create_task(run_reaper(registry, interval_ms=10, timeout_ms=TIMEOUT))
    try:
        for _ in range(100):
            if ws not in registry:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    assert ws not in registry
    assert ws.closed
