from __future__ import annotations

from typing import Any, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictStr

# Coordinates are canvas pixels as reported by the client (not normalized).
# Strict fields: "5" is not a number and 5 is not a color.
RoomId: TypeAlias = StrictStr


class Envelope(BaseModel):
    """Outer frame: `{"t": <event>, "data": <payload>}`."""

    model_config = ConfigDict(extra="ignore")

    t: StrictStr
    data: Any = None


class StrokeData(BaseModel):
    """One line segment of a freehand path. Immutable once appended to a room."""

    model_config = ConfigDict(allow_inf_nan=False, extra="ignore", frozen=True)

    x1: StrictFloat
    y1: StrictFloat
    x2: StrictFloat
    y2: StrictFloat
    color: StrictStr
    width: StrictFloat = Field(ge=0)


class CursorData(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False, extra="ignore")

    x: StrictFloat
    y: StrictFloat
    name: StrictStr


class DrawStroke(BaseModel):
    room_id: RoomId = Field(alias="roomId")
    stroke_data: StrokeData = Field(alias="strokeData")


class CursorMove(BaseModel):
    room_id: RoomId = Field(alias="roomId")
    cursor_data: CursorData = Field(alias="cursorData")


# server -> client payloads


class CursorUpdate(BaseModel):
    user_id: str = Field(serialization_alias="userId")
    x: float
    y: float
    name: str


class ErrorInfo(BaseModel):
    event: Optional[str] = None
    code: str
    message: str
    errors: list[dict[str, Any]] = Field(default_factory=list)


def frame(t: str, data: Any = None) -> dict[str, Any]:
    """Build an outbound envelope; `data` is omitted for payload-less events."""
    if data is None:
        return {"t": t}
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    return {"t": t, "data": data}
