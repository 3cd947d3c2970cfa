from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

from .rooms import RoomStore

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything the router can push a text frame to (a FastAPI `WebSocket` in production)."""

    async def send_text(self, data: str) -> None: ...


@dataclass
class ConnectionEntry:
    identity: str
    conn: Connection
    room_id: Optional[str] = None


class ConnectionRegistry:
    """
    Live connections and their current room.

    Membership is mirrored into the RoomStore; the registry itself never sends anything.
    """

    def __init__(self, store: RoomStore) -> None:
        self._store = store
        self._entries: dict[str, ConnectionEntry] = {}

    def __contains__(self, identity: str) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, conn: Connection) -> str:
        identity = uuid.uuid4().hex
        self._entries[identity] = ConnectionEntry(identity=identity, conn=conn)
        return identity

    def connection(self, identity: str) -> Optional[Connection]:
        entry = self._entries.get(identity)
        return entry.conn if entry is not None else None

    def room_of(self, identity: str) -> Optional[str]:
        entry = self._entries.get(identity)
        return entry.room_id if entry is not None else None

    def set_room(self, identity: str, room_id: str) -> Optional[str]:
        """Move `identity` into `room_id`. Returns the room it left, if any."""
        entry = self._entries[identity]
        previous = entry.room_id
        if previous is not None and previous != room_id:
            self._store.discard_member(previous, identity)
        entry.room_id = room_id
        self._store.add_member(room_id, identity)
        return previous if previous != room_id else None

    def remove(self, identity: str) -> Optional[str]:
        """Forget `identity`. Returns the room it was in, if any. Safe to call twice."""
        entry = self._entries.pop(identity, None)
        if entry is None:
            return None
        if entry.room_id is not None:
            self._store.discard_member(entry.room_id, identity)
        logger.debug("removed %s from room %r", identity, entry.room_id)
        return entry.room_id
