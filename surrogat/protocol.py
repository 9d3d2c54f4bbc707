"""
Session protocol: inbound JSON messages -> registry mutations and replies
"""
import json
import logging
from typing import Any, Dict, Optional

from .broadcast import broadcast_users, drop_client, safe_close, safe_send
from .presence import compute_presence
from .settings import Settings
from .state import ClientRecord, ClientRegistry, Role
from .utils import now_ms

logger = logging.getLogger("surrogat")


def parse_safe(raw: Any) -> Optional[Dict[str, Any]]:
    """Decode a JSON object; anything else yields None"""
    if not isinstance(raw, str):
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _touch(record: ClientRecord) -> None:
    record.last_activity = now_ms()


async def handle_message(
    registry: ClientRegistry, ws, raw: Any, settings: Settings
) -> None:
    """Dispatch one inbound text frame from ws"""
    data = parse_safe(raw)
    if data is None:
        return

    client = await registry.mutate(ws, _touch)
    if client is None:
        return

    msg_type = data.get("type")
    handler = HANDLERS.get(msg_type) if isinstance(msg_type, str) else None
    if handler is not None:
        await handler(registry, ws, data, settings)


async def on_join(registry, ws, data, settings):
    def join(record: ClientRecord) -> None:
        record.id = str(data.get("roomId") or record.id)
        record.name = str(data.get("name") or settings.streamer_name)
        record.set_role(Role.STREAMER)

    client = await registry.mutate(ws, join)
    if client is None:
        return
    logger.info("🎙️ Streamer joined: %s (%s)", client.name, client.id)
    await safe_send(ws, {"type": "joined", "roomId": client.id, "name": client.name})
    await broadcast_users(registry)


async def on_leave(registry, ws, data, settings):
    await drop_client(registry, ws)
    await safe_close(ws)


async def on_viewer_join(registry, ws, data, settings):
    def viewer_join(record: ClientRecord) -> None:
        record.name = str(data.get("name") or settings.viewer_name)
        record.set_role(Role.VIEWER)

    client = await registry.mutate(ws, viewer_join)
    if client is None:
        return
    logger.info("👀 Viewer joined: %s", client.name)
    await safe_send(ws, {"type": "viewer_ack", "name": client.name})
    await safe_send(ws, await compute_presence(registry))


async def on_list(registry, ws, data, settings):
    await safe_send(ws, await compute_presence(registry))


async def on_ping(registry, ws, data, settings):
    await safe_send(ws, {"type": "pong", "t": now_ms()})


HANDLERS = {
    "join": on_join,
    "leave": on_leave,
    "viewer_join": on_viewer_join,
    "viewer_leave": on_leave,
    "list": on_list,
    "ping": on_ping,
}
