"""
Background task that evicts idle connections
"""
import asyncio
import contextlib
import logging
from typing import List, Optional

from aiohttp import web

from .broadcast import broadcast_users, safe_close
from .settings import SETTINGS
from .state import REGISTRY, ClientRecord, ClientRegistry
from .utils import now_ms

logger = logging.getLogger("surrogat")

REAPER_TASK = web.AppKey("reaper_task", asyncio.Task)


async def reap_stale(
    registry: ClientRegistry, timeout_ms: int, now: Optional[int] = None
) -> List[ClientRecord]:
    """
    Evict every connection idle for longer than timeout_ms

    Evicted sockets are closed best-effort. At most one presence broadcast is
    sent per scan, and only when a streamer was among the evicted.
    """
    if now is None:
        now = now_ms()

    def is_stale(record: ClientRecord) -> bool:
        return now - record.last_activity > timeout_ms

    removed = []
    stale_sockets = []
    for ws in await registry.all_handles():
        record = await registry.remove_if(ws, is_stale)
        if record is None:
            continue
        logger.info("🧹 Removing stale client: %s (%s)", record.id, record.role.value)
        removed.append(record)
        stale_sockets.append(ws)

    await asyncio.gather(*(safe_close(ws) for ws in stale_sockets))

    if any(record.is_streamer for record in removed):
        await broadcast_users(registry)
    return removed


async def run_reaper(registry: ClientRegistry, interval_ms: int, timeout_ms: int):
    """Scan the registry every interval_ms until cancelled"""
    while True:
        await asyncio.sleep(interval_ms / 1000)
        try:
            await reap_stale(registry, timeout_ms)
        except Exception as e:
            logger.error("Cleanup task error: %s", e)


async def start_reaper(app: web.Application):
    settings = app[SETTINGS]
    app[REAPER_TASK] = asyncio.create_task(
        run_reaper(app[REGISTRY], settings.cleanup_interval_ms, settings.activity_timeout_ms)
    )


async def stop_reaper(app: web.Application):
    task = app[REAPER_TASK]
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
