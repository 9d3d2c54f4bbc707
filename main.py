#!/usr/bin/env python3
"""
SURROGAT - presence relay entry point
WebSocket signalling + streamer directory + idle connection cleanup
"""
import logging
import socket
from typing import Optional

from aiohttp import web

from surrogat.api import banner, close_all_sockets, health, list_users, ws_session
from surrogat.reaper import start_reaper, stop_reaper
from surrogat.settings import SETTINGS, Settings
from surrogat.state import REGISTRY, ClientRegistry

logger = logging.getLogger("surrogat")


def create_app(settings: Optional[Settings] = None) -> web.Application:
    """Create and configure the aiohttp application"""
    app = web.Application()
    app[SETTINGS] = settings or Settings.from_env()
    app[REGISTRY] = ClientRegistry()

    app.router.add_get("/ws", ws_session)
    app.router.add_get("/health", health)
    app.router.add_get("/list", list_users)
    app.router.add_route("*", "/{tail:.*}", banner)

    # Idle connection reaper
    app.on_startup.append(start_reaper)
    app.on_shutdown.append(close_all_sockets)
    app.on_cleanup.append(stop_reaper)

    logger.info("🎥 SURROGAT relay ready • WebSocket at /ws")
    return app


def advertised_host(settings: Settings) -> str:
    """Address clients should dial; wildcard binds resolve to the LAN address"""
    if settings.host not in ("0.0.0.0", ""):
        return settings.host
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            # UDP connect sends nothing, it only picks the outbound interface
            sock.connect(("8.8.8.8", 80))
        except OSError:
            return "localhost"
        return sock.getsockname()[0]


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    app = create_app(settings)
    local_ip = advertised_host(settings)

    logger.info("🚀 Starting server on %s:%d", settings.host, settings.port)
    logger.info("💡 Access at: ws://%s:%d/ws", local_ip, settings.port)
    logger.info(
        "🧹 Cleanup every %d ms, timeout %d ms",
        settings.cleanup_interval_ms, settings.activity_timeout_ms
    )

    web.run_app(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
