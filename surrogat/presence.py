"""
Presence view derived from the registry
"""
from typing import Any, Dict

from .state import ClientRegistry


async def compute_presence(registry: ClientRegistry) -> Dict[str, Any]:
    """Current streamer list as a users message (never cached)"""
    return {"type": "users", "users": await registry.snapshot_streamers()}
