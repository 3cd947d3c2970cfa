from __future__ import annotations

import argparse
import asyncio
import json
import time
from pathlib import Path

import websockets

from sketchroom.protocol.constants import T_JOIN_BOARD


def _now_ms() -> int:
    return int(time.time() * 1000)


async def record(ws_url: str, room_id: str, out_path: Path, *, echo: bool) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("a", encoding="utf-8") as f:
        async with websockets.connect(ws_url, max_size=2**22) as ws:
            await ws.send(json.dumps({"t": T_JOIN_BOARD, "data": room_id}))
            while True:
                raw = await ws.recv()
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                msg = json.loads(raw)
                if echo:
                    t = msg.get("t") if isinstance(msg, dict) else None
                    print(f"[record:{room_id}] t={t} msg={msg}")
                f.write(json.dumps({"ts": _now_ms(), "msg": msg}, ensure_ascii=False) + "\n")
                f.flush()


def main() -> None:
    ap = argparse.ArgumentParser(description="Join a room and record its traffic to a JSONL file.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:3000/ws")
    ap.add_argument("--room", default="general", help="Room to join")
    ap.add_argument("--out", required=True, help="Output JSONL path")
    ap.add_argument("--print", action="store_true", help="Print received messages to stdout")
    args = ap.parse_args()

    asyncio.run(record(args.ws, args.room, Path(args.out), echo=args.print))


if __name__ == "__main__":
    main()
