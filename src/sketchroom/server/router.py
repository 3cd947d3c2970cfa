from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from sketchroom.protocol.constants import (
    CLIENT_EVENTS,
    E_INVALID_JSON,
    E_MALFORMED_PAYLOAD,
    E_UNKNOWN_EVENT,
    T_CLEAR_BOARD,
    T_CURSOR_MOVE,
    T_DRAW_STROKE,
    T_ERROR,
    T_HELLO,
    T_JOIN_BOARD,
    T_LOAD_HISTORY,
    T_USER_LEFT,
)
from sketchroom.protocol.messages import (
    CursorMove,
    CursorUpdate,
    DrawStroke,
    Envelope,
    ErrorInfo,
    RoomId,
    frame,
)

from .registry import Connection, ConnectionRegistry
from .rooms import RoomStore

logger = logging.getLogger(__name__)

_room_id = TypeAdapter(RoomId)


class ProtocolError(Exception):
    """An inbound frame that is rejected before it touches any room state."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        event: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.event = event
        self.errors = errors or []

    def to_frame(self) -> dict[str, Any]:
        info = ErrorInfo(event=self.event, code=self.code, message=self.message, errors=self.errors)
        return frame(T_ERROR, info)


def _validation_errors(e: ValidationError) -> list[dict[str, Any]]:
    # `input`/`ctx` may hold arbitrary client data or exception objects; keep it JSON-safe.
    return [{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()]


def _encode(msg: dict[str, Any]) -> str:
    return json.dumps(msg, separators=(",", ":"), ensure_ascii=False)


Handler = Callable[[str, Any], Awaitable[None]]


class EventRouter:
    """
    Protocol state machine for the four client events.

    The only component that sends anything. Room state is mutated under the
    room's lock and fanned out before the lock is released, so the order in
    which members see a room's events matches the order the room changed.
    """

    def __init__(
        self,
        store: RoomStore,
        registry: ConnectionRegistry,
        *,
        debug_log_msgs: bool = False,
        send_timeout_s: Optional[float] = 5.0,
    ) -> None:
        self.store = store
        self.registry = registry
        self.debug_log_msgs = debug_log_msgs
        # Bounds how long one slow member can hold a room's lock per event.
        self.send_timeout_s = send_timeout_s
        self._handlers: dict[str, Handler] = {
            T_JOIN_BOARD: self.on_join_board,
            T_DRAW_STROKE: self.on_draw_stroke,
            T_CURSOR_MOVE: self.on_cursor_move,
            T_CLEAR_BOARD: self.on_clear_board,
        }

    # ---- connection lifecycle ----

    async def connect(self, conn: Connection) -> str:
        identity = self.registry.register(conn)
        logger.info("user connected: %s", identity)
        await self.send(identity, frame(T_HELLO, {"userId": identity}))
        return identity

    async def disconnect(self, identity: str) -> None:
        room_id = self.registry.remove(identity)
        logger.info("user disconnected: %s", identity)
        if room_id is not None:
            await self._announce_left(room_id, identity)

    # ---- inbound ----

    async def dispatch(self, identity: str, raw: str | bytes) -> None:
        """Handle one inbound text frame. Rejections go back to the sender only."""
        try:
            t, data = self._decode(raw)
            if self.debug_log_msgs:
                logger.debug("[ws:%s] in t=%s", identity, t)
            await self.handle(identity, t, data)
        except ProtocolError as e:
            logger.debug("[ws:%s] rejected frame: %s %s", identity, e.code, e.message)
            await self.send(identity, e.to_frame())

    async def handle(self, identity: str, t: str, data: Any) -> None:
        if t not in CLIENT_EVENTS:
            raise ProtocolError(E_UNKNOWN_EVENT, f"unknown event type: {t!r}", event=t)
        await self._handlers[t](identity, data)

    def _decode(self, raw: str | bytes) -> tuple[str, Any]:
        try:
            obj = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise ProtocolError(E_INVALID_JSON, f"frame is not valid JSON: {e}") from e
        try:
            env = Envelope.model_validate(obj)
        except ValidationError as e:
            raise ProtocolError(
                E_INVALID_JSON,
                'frame must be an object of the form {"t": <event>, "data": <payload>}',
                errors=_validation_errors(e),
            ) from e
        return env.t, env.data

    @staticmethod
    def _parse(event: str, model: Any, data: Any) -> Any:
        try:
            if isinstance(model, TypeAdapter):
                return model.validate_python(data)
            return model.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(
                E_MALFORMED_PAYLOAD,
                f"malformed {event} payload",
                event=event,
                errors=_validation_errors(e),
            ) from e

    # ---- handlers ----

    async def on_join_board(self, identity: str, data: Any) -> None:
        room_id: str = self._parse(T_JOIN_BOARD, _room_id, data)
        room = self.store.get_or_create(room_id)
        async with room.lock:
            left = self.registry.set_room(identity, room_id)
            history = [s.model_dump() for s in room.history.snapshot()]
            await self.send(identity, frame(T_LOAD_HISTORY, history))
        logger.info("user %s joined room %r (%d strokes)", identity, room_id, len(history))
        if left is not None:
            await self._announce_left(left, identity)

    async def on_draw_stroke(self, identity: str, data: Any) -> None:
        # roomId is trusted as sent; membership is not checked.
        msg: DrawStroke = self._parse(T_DRAW_STROKE, DrawStroke, data)
        room = self.store.get_or_create(msg.room_id)
        async with room.lock:
            self.store.append_stroke(msg.room_id, msg.stroke_data)
            await self.broadcast(msg.room_id, frame(T_DRAW_STROKE, msg.stroke_data), exclude=identity)

    async def on_cursor_move(self, identity: str, data: Any) -> None:
        msg: CursorMove = self._parse(T_CURSOR_MOVE, CursorMove, data)
        update = CursorUpdate(
            user_id=identity,
            x=msg.cursor_data.x,
            y=msg.cursor_data.y,
            name=msg.cursor_data.name,
        )
        # Cursors never create rooms.
        if msg.room_id not in self.store:
            return
        room = self.store.get_or_create(msg.room_id)
        async with room.lock:
            await self.broadcast(msg.room_id, frame(T_CURSOR_MOVE, update), exclude=identity)

    async def on_clear_board(self, identity: str, data: Any) -> None:
        room_id: str = self._parse(T_CLEAR_BOARD, _room_id, data)
        room = self.store.get_or_create(room_id)
        async with room.lock:
            self.store.clear(room_id)
            await self.broadcast(room_id, frame(T_CLEAR_BOARD))
        logger.info("user %s cleared room %r", identity, room_id)

    async def _announce_left(self, room_id: str, identity: str) -> None:
        room = self.store.get_or_create(room_id)
        async with room.lock:
            await self.broadcast(room_id, frame(T_USER_LEFT, {"userId": identity}), exclude=identity)

    # ---- outbound ----

    async def _deliver(self, conn: Connection, data: str) -> None:
        if self.send_timeout_s is None:
            await conn.send_text(data)
        else:
            await asyncio.wait_for(conn.send_text(data), timeout=self.send_timeout_s)

    async def send(self, identity: str, msg: dict[str, Any]) -> bool:
        """Best-effort unicast. Returns False if the target is gone or the send failed."""
        conn = self.registry.connection(identity)
        if conn is None:
            return False
        data = _encode(msg)
        try:
            await self._deliver(conn, data)
        except Exception as e:
            logger.debug("send to %s failed: %s", identity, e)
            return False
        return True

    async def broadcast(self, room_id: str, msg: dict[str, Any], exclude: Optional[str] = None) -> int:
        """
        Send `msg` to every member of `room_id` except `exclude`.

        Targets that vanish, fail or time out mid-broadcast are skipped; the rest
        still receive the event. Membership is only released by `disconnect`.
        Returns the delivery count.
        """
        data = _encode(msg)
        sent = 0
        for identity in self.store.members(room_id):
            if identity == exclude:
                continue
            conn = self.registry.connection(identity)
            if conn is None:
                continue
            try:
                await self._deliver(conn, data)
                sent += 1
            except Exception as e:
                logger.debug("broadcast to %s in room %r failed: %s", identity, room_id, e)
        if self.debug_log_msgs:
            logger.debug("[room:%s] out t=%s -> %d", room_id, msg.get("t"), sent)
        return sent
