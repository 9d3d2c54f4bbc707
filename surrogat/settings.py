"""
Environment-backed configuration for the presence relay
"""
import os
from dataclasses import dataclass

from aiohttp import web

CLEANUP_INTERVAL_MS = 15_000
ACTIVITY_TIMEOUT_MS = 45_000


def _int_env(name: str, default: int) -> int:
    """Parse an integer env var with a fallback"""
    raw = os.environ.get(name, "")
    if raw == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    """Relay configuration, fixed at start time"""
    host: str = "0.0.0.0"
    port: int = 3000
    cleanup_interval_ms: int = CLEANUP_INTERVAL_MS
    activity_timeout_ms: int = ACTIVITY_TIMEOUT_MS
    streamer_name: str = "Anonymous"
    viewer_name: str = "Viewer"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.cleanup_interval_ms <= 0:
            raise ValueError("cleanup interval must be positive")
        if self.activity_timeout_ms <= 0:
            raise ValueError("activity timeout must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.environ.get("SERVER_HOST", "0.0.0.0"),
            port=_int_env("PORT", 3000),
            cleanup_interval_ms=_int_env("SURROGAT_CLEANUP_INTERVAL_MS", CLEANUP_INTERVAL_MS),
            activity_timeout_ms=_int_env("SURROGAT_ACTIVITY_TIMEOUT_MS", ACTIVITY_TIMEOUT_MS),
            streamer_name=os.environ.get("SURROGAT_STREAMER_NAME", "Anonymous"),
            viewer_name=os.environ.get("SURROGAT_VIEWER_NAME", "Viewer"),
            log_level=os.environ.get("SURROGAT_LOG_LEVEL", "INFO").upper(),
        )


SETTINGS = web.AppKey("settings", Settings)
