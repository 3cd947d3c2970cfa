"""Pytest configuration and shared fixtures."""

import asyncio
import json
from typing import Any, Optional

import pytest

from sketchroom.protocol.messages import StrokeData
from sketchroom.server.registry import ConnectionRegistry
from sketchroom.server.rooms import RoomStore
from sketchroom.server.router import EventRouter


class FakeConnection:
    """Stands in for a WebSocket; records every frame the server sends."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def send_text(self, data: str) -> None:
        if self.closed:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(data))

    def events(self, t: Optional[str] = None) -> list[dict[str, Any]]:
        return [m for m in self.sent if t is None or m["t"] == t]

    def types(self) -> list[str]:
        return [m["t"] for m in self.sent]

    def clear(self) -> None:
        self.sent.clear()


class GatedConnection(FakeConnection):
    """Holds every send until `gate` is set, once a gate is installed."""

    def __init__(self) -> None:
        super().__init__()
        self.gate: Optional[asyncio.Event] = None
        self.waiting = False

    async def send_text(self, data: str) -> None:
        if self.gate is not None and not self.gate.is_set():
            self.waiting = True
            await self.gate.wait()
            self.waiting = False
        await super().send_text(data)


class FlakyConnection(FakeConnection):
    """Fails the next `failures` sends, then behaves normally."""

    def __init__(self, failures: int = 0) -> None:
        super().__init__()
        self.failures = failures

    async def send_text(self, data: str) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionResetError("transient send failure")
        await super().send_text(data)


class StalledConnection(FakeConnection):
    """A send that never completes."""

    async def send_text(self, data: str) -> None:
        await asyncio.Event().wait()


def make_stroke(x1=0, y1=0, x2=10, y2=10, color="#fff", width=5) -> dict[str, Any]:
    return {"x1": x1, "y1": y1, "x2": x2, "y2": y2, "color": color, "width": width}


def frame(t: str, data: Any = None) -> str:
    return json.dumps({"t": t, "data": data})


@pytest.fixture
def store() -> RoomStore:
    return RoomStore()


@pytest.fixture
def registry(store: RoomStore) -> ConnectionRegistry:
    return ConnectionRegistry(store)


@pytest.fixture
def router(store: RoomStore, registry: ConnectionRegistry) -> EventRouter:
    return EventRouter(store, registry)


@pytest.fixture
def stroke() -> StrokeData:
    return StrokeData(**make_stroke())


@pytest.fixture
def connect(router: EventRouter):
    """Connect a fake client; returns (identity, connection) with the hello frame drained."""

    async def _connect() -> tuple[str, FakeConnection]:
        conn = FakeConnection()
        identity = await router.connect(conn)
        conn.clear()
        return identity, conn

    return _connect


@pytest.fixture
def join(router: EventRouter, connect):
    """Connect a fake client and join it to a room, draining hello + load-history."""

    async def _join(room_id: str) -> tuple[str, FakeConnection]:
        identity, conn = await connect()
        await router.dispatch(identity, frame("join-board", room_id))
        conn.clear()
        return identity, conn

    return _join
