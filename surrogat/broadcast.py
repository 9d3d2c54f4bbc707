"""
Best-effort delivery to WebSocket clients
Sends are attempted once; failures are logged and reported, never raised
"""
import json
import logging
from typing import Any, Dict, Optional, Union

from .presence import compute_presence
from .state import ClientRecord, ClientRegistry

logger = logging.getLogger("surrogat")


async def safe_send(ws, payload: Union[str, Dict[str, Any]]) -> bool:
    """Send a text frame if the socket is open; True when it was written"""
    if ws.closed:
        return False
    message = payload if isinstance(payload, str) else json.dumps(payload)
    try:
        await ws.send_str(message)
    except Exception as e:
        logger.debug("Failed to send to WebSocket: %s", e)
        return False
    return True


async def safe_close(ws, **kwargs) -> bool:
    """Close the socket, ignoring transport errors"""
    try:
        await ws.close(**kwargs)
    except Exception as e:
        logger.debug("Failed to close WebSocket: %s", e)
        return False
    return True


async def broadcast_users(registry: ClientRegistry) -> int:
    """Push the current streamer list to every registered connection"""
    message = json.dumps(await compute_presence(registry))
    delivered = 0
    for ws in await registry.all_handles():
        if await safe_send(ws, message):
            delivered += 1
    logger.debug("📡 Presence pushed to %d/%d clients", delivered, len(registry))
    return delivered


async def drop_client(registry: ClientRegistry, ws) -> Optional[ClientRecord]:
    """Remove a connection; streamers leaving trigger a presence broadcast"""
    record = await registry.remove(ws)
    if record is None:
        return None
    logger.info(
        "👋 %s (%s) disconnected (remaining: %d)",
        record.name, record.role.value, len(registry)
    )
    if record.is_streamer:
        await broadcast_users(registry)
    return record
