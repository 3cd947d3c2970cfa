from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from .config import Settings, get_settings
from .registry import ConnectionRegistry
from .rendering import render_room_png
from .rooms import RoomStore, history_factory
from .router import EventRouter
from .viewer_page import render_board_html

DEFAULT_ROOM = "general"
MAX_SNAPSHOT_PX = 8192


def build_router(settings: Settings) -> EventRouter:
    store = RoomStore(history_factory(settings.history_policy, settings.history_max_strokes))
    registry = ConnectionRegistry(store)
    return EventRouter(
        store,
        registry,
        debug_log_msgs=settings.debug_log_msgs,
        send_timeout_s=settings.send_timeout_s,
    )


def _router(request: Request) -> EventRouter:
    return request.app.state.router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="sketchroom")
    app.state.settings = settings
    # One store/registry/router per app instance; nothing room-related is module-global.
    app.state.router = build_router(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_credentials=True,
    )

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.get("/")
    def index():
        return RedirectResponse(f"/board/{DEFAULT_ROOM}")

    @app.get("/board/{room_id}", response_class=HTMLResponse)
    def board(room_id: str):
        return HTMLResponse(render_board_html(room_id))

    @app.get("/rooms")
    def list_rooms(request: Request):
        router = _router(request)
        return {"rooms": router.store.stats(), "connections": len(router.registry)}

    @app.get("/rooms/{room_id}")
    def get_room(room_id: str, request: Request):
        stats = _router(request).store.stats([room_id])
        if not stats:
            raise HTTPException(status_code=404, detail=f"unknown room: {room_id}")
        return stats[0]

    @app.get("/rooms/{room_id}/snapshot.png")
    def room_snapshot(
        room_id: str,
        request: Request,
        w: Optional[int] = Query(None, gt=0, le=MAX_SNAPSHOT_PX),
        h: Optional[int] = Query(None, gt=0, le=MAX_SNAPSHOT_PX),
    ):
        store = _router(request).store
        if room_id not in store:
            raise HTTPException(status_code=404, detail=f"unknown room: {room_id}")
        width = w or settings.snapshot_width
        height = h or settings.snapshot_height
        png = render_room_png(strokes=store.history(room_id), width=width, height=height)
        return Response(content=png, media_type="image/png")

    @app.websocket("/ws")
    async def ws_endpoint(ws: WebSocket):
        await ws.accept()
        router: EventRouter = ws.app.state.router
        identity = await router.connect(ws)
        try:
            while True:
                raw = await ws.receive_text()
                await router.dispatch(identity, raw)
        except WebSocketDisconnect:
            pass
        finally:
            await router.disconnect(identity)

    return app


app = create_app()
