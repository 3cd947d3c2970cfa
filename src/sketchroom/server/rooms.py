from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

from sketchroom.protocol.messages import StrokeData


class StrokeHistory(Protocol):
    """Retention strategy for a room's stroke sequence (insertion order = drawing order)."""

    def append(self, stroke: StrokeData) -> None: ...

    def clear(self) -> None: ...

    def snapshot(self) -> tuple[StrokeData, ...]: ...

    def __len__(self) -> int: ...


class UnboundedHistory:
    """Keeps every stroke until the room is cleared."""

    def __init__(self) -> None:
        self._strokes: list[StrokeData] = []

    def append(self, stroke: StrokeData) -> None:
        self._strokes.append(stroke)

    def clear(self) -> None:
        self._strokes.clear()

    def snapshot(self) -> tuple[StrokeData, ...]:
        return tuple(self._strokes)

    def __len__(self) -> int:
        return len(self._strokes)


class RingHistory:
    """Keeps the newest `max_strokes` strokes; older ones fall off the front."""

    def __init__(self, max_strokes: int) -> None:
        if max_strokes <= 0:
            raise ValueError("max_strokes must be positive")
        self._strokes: deque[StrokeData] = deque(maxlen=max_strokes)

    @property
    def max_strokes(self) -> int:
        return self._strokes.maxlen or 0

    def append(self, stroke: StrokeData) -> None:
        self._strokes.append(stroke)

    def clear(self) -> None:
        self._strokes.clear()

    def snapshot(self) -> tuple[StrokeData, ...]:
        return tuple(self._strokes)

    def __len__(self) -> int:
        return len(self._strokes)


HistoryFactory = Callable[[], StrokeHistory]


def history_factory(policy: str, max_strokes: int) -> HistoryFactory:
    if policy == "unbounded":
        return UnboundedHistory
    if policy == "ring":
        return lambda: RingHistory(max_strokes)
    raise ValueError(f"unknown history policy: {policy!r}")


@dataclass
class Room:
    room_id: str
    history: StrokeHistory = field(default_factory=UnboundedHistory)
    members: set[str] = field(default_factory=set)
    # Held across mutation + fan-out so members see this room's events in arrival order.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class RoomStore:
    """
    Room id -> Room.

    Rooms are created on first reference and live for the lifetime of the store.
    Every mutator is synchronous, so on a single event loop append and clear can
    never interleave.
    """

    def __init__(self, history: HistoryFactory = UnboundedHistory) -> None:
        self._history = history
        self._rooms: dict[str, Room] = {}

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id, history=self._history())
            self._rooms[room_id] = room
        return room

    def append_stroke(self, room_id: str, stroke: StrokeData) -> None:
        self.get_or_create(room_id).history.append(stroke)

    def clear(self, room_id: str) -> None:
        self.get_or_create(room_id).history.clear()

    def history(self, room_id: str) -> tuple[StrokeData, ...]:
        room = self._rooms.get(room_id)
        return room.history.snapshot() if room is not None else ()

    def members(self, room_id: str) -> frozenset[str]:
        room = self._rooms.get(room_id)
        return frozenset(room.members) if room is not None else frozenset()

    def add_member(self, room_id: str, identity: str) -> None:
        self.get_or_create(room_id).members.add(identity)

    def discard_member(self, room_id: str, identity: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None:
            room.members.discard(identity)

    def stats(self, room_ids: Iterable[str] | None = None) -> list[dict[str, object]]:
        ids = self.room_ids() if room_ids is None else [r for r in room_ids if r in self._rooms]
        return [
            {
                "roomId": rid,
                "strokes": len(self._rooms[rid].history),
                "members": len(self._rooms[rid].members),
            }
            for rid in ids
        ]
