from __future__ import annotations

import io
from typing import Iterable

from PIL import Image, ImageColor, ImageDraw

from sketchroom.protocol.messages import StrokeData

FALLBACK_COLOR = (0, 0, 0, 255)


def _rgba(color: str) -> tuple[int, int, int, int]:
    try:
        rgb = ImageColor.getcolor(color, "RGBA")
    except ValueError:
        return FALLBACK_COLOR
    return rgb  # type: ignore[return-value]


def render_room_png(
    *,
    strokes: Iterable[StrokeData],
    width: int,
    height: int,
    background: str = "white",
) -> bytes:
    """
    Render a room's stroke history as a PNG.

    - **strokes**: segments in client canvas pixels, painted in history order
    - **width**, **height**: output image size; segments outside are clipped
    - **background**: any PIL color string
    """
    img = Image.new("RGBA", (width, height), background)
    draw = ImageDraw.Draw(img)

    for s in strokes:
        w = max(1, int(round(s.width)))
        col = _rgba(s.color)
        a = (s.x1, s.y1)
        b = (s.x2, s.y2)
        draw.line([a, b], fill=col, width=w)
        # round caps, as the canvas client draws them
        if w > 2:
            r = w / 2
            for x, y in (a, b):
                draw.ellipse([x - r, y - r, x + r, y + r], fill=col)

    bio = io.BytesIO()
    img.save(bio, format="PNG", optimize=True)
    return bio.getvalue()
