"""
HTTP and WebSocket handlers for the SURROGAT presence relay
"""
import logging

from aiohttp import WSCloseCode, WSMsgType, web

from .broadcast import drop_client, safe_close, safe_send
from .presence import compute_presence
from .protocol import handle_message
from .settings import SETTINGS
from .state import REGISTRY, ClientRecord, Role
from .utils import generate_client_id, now_ms

logger = logging.getLogger("surrogat")

BANNER = "SURROGAT WebSocket server"

# ============================================================
# WEBSOCKET SESSION
# ============================================================

async def ws_session(request: web.Request) -> web.StreamResponse:
    """WebSocket endpoint: one session per streamer or viewer"""
    ws = web.WebSocketResponse()
    if not ws.can_prepare(request).ok:
        return web.Response(status=400, text="expected websocket")
    await ws.prepare(request)

    registry = request.app[REGISTRY]
    settings = request.app[SETTINGS]

    record = ClientRecord(
        id=generate_client_id(),
        name=settings.streamer_name,
        role=Role.UNKNOWN,
        last_activity=now_ms(),
    )
    await registry.insert(ws, record)
    logger.info("📡 WebSocket client connected: %s (total: %d)", record.id, len(registry))
    await safe_send(ws, {"type": "welcome", "msg": "ws ok"})

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                await handle_message(registry, ws, msg.data, settings)
            elif msg.type == WSMsgType.ERROR:
                logger.debug("WebSocket error: %s", ws.exception())
                break
    finally:
        await drop_client(registry, ws)

    return ws


async def close_all_sockets(app: web.Application):
    """Close every open session on shutdown"""
    registry = app[REGISTRY]
    for ws in await registry.all_handles():
        await safe_close(ws, code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")

# ============================================================
# HTTP ENDPOINTS
# ============================================================

async def health(request: web.Request) -> web.Response:
    return web.Response(text="OK")


async def list_users(request: web.Request) -> web.Response:
    """Current streamer list"""
    presence = await compute_presence(request.app[REGISTRY])
    return web.json_response(presence)


async def banner(request: web.Request) -> web.Response:
    return web.Response(text=BANNER)
