"""
In-memory connection registry - the single source of truth for presence
Keyed by the live connection object, not by the client-chosen ID
"""
import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Optional

from aiohttp import web


class Role(str, Enum):
    UNKNOWN = "unknown"
    STREAMER = "streamer"
    VIEWER = "viewer"


# Re-joining with another role overwrites identity; nothing goes back to UNKNOWN
ROLE_TRANSITIONS = {
    Role.UNKNOWN: {Role.STREAMER, Role.VIEWER},
    Role.STREAMER: {Role.STREAMER, Role.VIEWER},
    Role.VIEWER: {Role.STREAMER, Role.VIEWER},
}


@dataclass
class ClientRecord:
    """State kept for one open connection"""
    id: str
    name: str
    role: Role = Role.UNKNOWN
    last_activity: int = 0

    @property
    def is_streamer(self) -> bool:
        return self.role is Role.STREAMER

    def set_role(self, role: Role) -> None:
        """Move to a new role, rejecting transitions that are not defined"""
        role = Role(role)
        if role not in ROLE_TRANSITIONS[self.role]:
            raise ValueError(f"illegal role transition {self.role.value} -> {role.value}")
        self.role = role

    def as_user(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


class ClientRegistry:
    """
    Table of connection handle -> ClientRecord

    Every read and write goes through one asyncio.Lock. Readers get copies,
    so nothing outside the registry ever holds a live record.
    """

    def __init__(self) -> None:
        self._clients: Dict[Hashable, ClientRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, handle: Any) -> bool:
        return handle in self._clients

    async def insert(self, handle: Hashable, record: ClientRecord) -> None:
        async with self._lock:
            if handle in self._clients:
                raise ValueError("connection already registered")
            self._clients[handle] = record

    async def get(self, handle: Hashable) -> Optional[ClientRecord]:
        async with self._lock:
            record = self._clients.get(handle)
            return replace(record) if record is not None else None

    async def mutate(
        self, handle: Hashable, fn: Callable[[ClientRecord], None]
    ) -> Optional[ClientRecord]:
        """Apply fn to the record in place; absent handles are ignored"""
        async with self._lock:
            record = self._clients.get(handle)
            if record is None:
                return None
            fn(record)
            return replace(record)

    async def remove(self, handle: Hashable) -> Optional[ClientRecord]:
        async with self._lock:
            return self._clients.pop(handle, None)

    async def remove_if(
        self, handle: Hashable, predicate: Callable[[ClientRecord], bool]
    ) -> Optional[ClientRecord]:
        """Remove the record only if predicate still holds for it"""
        async with self._lock:
            record = self._clients.get(handle)
            if record is None or not predicate(record):
                return None
            return self._clients.pop(handle)

    async def snapshot_streamers(self) -> List[Dict[str, str]]:
        async with self._lock:
            return [c.as_user() for c in self._clients.values() if c.is_streamer]

    async def all_handles(self) -> List[Hashable]:
        async with self._lock:
            return list(self._clients)


REGISTRY = web.AppKey("registry", ClientRegistry)
