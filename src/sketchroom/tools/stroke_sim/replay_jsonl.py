from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

import websockets

from sketchroom.protocol.constants import (
    T_CLEAR_BOARD,
    T_DRAW_STROKE,
    T_JOIN_BOARD,
    T_LOAD_HISTORY,
)


def _draw(room_id: str, stroke: Any) -> dict:
    return {"t": T_DRAW_STROKE, "data": {"roomId": room_id, "strokeData": stroke}}


def client_frames(msg: dict, room_id: str, *, include_clears: bool = False) -> list[dict]:
    """
    Turn one recorded frame into the client frames that reproduce it in `room_id`.

    Accepts both what `record_jsonl` captures (server -> client frames) and raw
    client frames. Everything that is not stroke data is dropped.
    """
    t = msg.get("t")
    data = msg.get("data")
    if t == T_LOAD_HISTORY and isinstance(data, list):
        return [_draw(room_id, s) for s in data if isinstance(s, dict)]
    if t == T_DRAW_STROKE and isinstance(data, dict):
        # client frame {roomId, strokeData} or broadcast strokeData
        stroke = data.get("strokeData", data)
        return [_draw(room_id, stroke)] if isinstance(stroke, dict) else []
    if t == T_CLEAR_BOARD and include_clears:
        return [{"t": T_CLEAR_BOARD, "data": room_id}]
    return []


def load_events(jsonl_path: Path) -> list[tuple[int | None, dict]]:
    """
    Expected JSONL format:
      - record_jsonl.py output: {"ts": <ms>, "msg": {...}}
      - or raw frames per line: {...}
    """
    events: list[tuple[int | None, dict]] = []
    for line in jsonl_path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        obj = json.loads(line)
        if isinstance(obj, dict) and "msg" in obj and isinstance(obj["msg"], dict):
            ts = obj.get("ts")
            events.append((int(ts) if isinstance(ts, (int, float)) else None, obj["msg"]))
        elif isinstance(obj, dict):
            events.append((None, obj))
    return events


async def replay(
    ws_url: str,
    jsonl_path: Path,
    room_id: str,
    *,
    speed: float = 1.0,
    default_dt_ms: int = 0,
    include_clears: bool = False,
) -> None:
    """Replay previously-recorded JSONL into a room."""
    events = load_events(jsonl_path)

    async with websockets.connect(ws_url, max_size=2**22) as ws:
        await ws.send(json.dumps({"t": T_JOIN_BOARD, "data": room_id}))
        prev_ts: int | None = None
        for ts, msg in events:
            frames = client_frames(msg, room_id, include_clears=include_clears)
            if not frames:
                continue

            if ts is not None and prev_ts is not None:
                dt_ms = max(0, ts - prev_ts)
            else:
                dt_ms = default_dt_ms

            prev_ts = ts if ts is not None else prev_ts
            if dt_ms:
                await asyncio.sleep((dt_ms / 1000.0) / max(0.01, speed))

            for f in frames:
                await ws.send(json.dumps(f, ensure_ascii=False, separators=(",", ":")))


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay recorded strokes into a room.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:3000/ws")
    ap.add_argument("--in", dest="inp", required=True, help="Input JSONL path")
    ap.add_argument("--room", default="general", help="Target room")
    ap.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (2.0 = 2x faster)")
    ap.add_argument("--default-dt-ms", type=int, default=0, help="Delay between messages if no timestamps")
    ap.add_argument("--with-clears", action="store_true", help="Also replay recorded clear-board events")
    args = ap.parse_args()

    asyncio.run(
        replay(
            args.ws,
            Path(args.inp),
            args.room,
            speed=args.speed,
            default_dt_ms=args.default_dt_ms,
            include_clears=args.with_clears,
        )
    )


if __name__ == "__main__":
    main()
