"""Starlette app: LINE webhook + WebSocket relay + health + static files."""
import asyncio
import contextlib
import json
import logging
import uuid
from pathlib import Path
from typing import Optional

from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute, Mount
from starlette.staticfiles import StaticFiles
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..config import (
    APP_VERSION,
    DEFAULT_TRACK_ID,
    DEFAULT_TRACK_KIND,
    DEFAULT_TRACK_LABEL,
    PUBLIC_DIR,
)
from ..engine import RelayEngine
from ..errors import format_error
from ..line import LineClient
from ..models import DefaultTrack, Origin, Outcome, OutcomeKind, TrackKind
from ..replies import reply_text
from ..resolver import Resolver
from ..youtube import YouTubeClient
from .state import RelayState
from .webhook import callback

logger = logging.getLogger(__name__)

# Outcomes the requester can't already see in the broadcast stream.
_NOTIFY_KINDS = {
    OutcomeKind.DEFAULT_SHOWN,
    OutcomeKind.NOT_FOUND,
    OutcomeKind.SEARCH_UNAVAILABLE,
    OutcomeKind.SEARCH_FAILED,
    OutcomeKind.PLAYLIST_QUEUED,
    OutcomeKind.PLAYLIST_EMPTY,
}


# ── Health ───────────────────────────────────────────────────────────────────

async def health(request):
    state: RelayState = request.app.state.relay
    youtube: YouTubeClient = request.app.state.youtube
    line: LineClient = request.app.state.line
    checks = {
        "search": {"ok": youtube.configured},
        "line_reply": {"ok": line.can_reply},
        "line_signature": {"ok": bool(line.channel_secret)},
    }
    all_ok = all(c["ok"] for c in checks.values())
    return JSONResponse({
        "status": "ok" if all_ok else "degraded",
        "version": APP_VERSION,
        "clients": state.client_count,
        "defaultTrack": state.default_track.get().to_dict(),
        "checks": checks,
    })


# ── WebSocket ────────────────────────────────────────────────────────────────

async def websocket_endpoint(websocket: WebSocket):
    state: RelayState = websocket.app.state.relay
    engine: RelayEngine = websocket.app.state.engine

    await websocket.accept()
    client_id = str(uuid.uuid4())
    queue = state.subscribe(client_id)
    # Queued before any later broadcast, so a late joiner never sees a stale default
    await state.send_initial_state(client_id)
    logger.info("WS connected: %s (%d clients)", client_id, state.client_count)

    # One task per inbound frame: a slow search must not block the next frame
    in_flight: set[asyncio.Task] = set()

    async def _reader():
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(frame.get("code", 1000))
                raw = frame.get("text")
                if raw is None:
                    logger.warning("WS %s sent binary frame", client_id)
                    continue
                try:
                    message = json.loads(raw)
                except ValueError:
                    logger.warning("WS %s sent non-JSON frame", client_id)
                    continue
                if not isinstance(message, dict):
                    continue
                task = asyncio.create_task(_handle_ws_message(engine, state, client_id, message))
                in_flight.add(task)
                task.add_done_callback(in_flight.discard)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error("WS reader error: %s", e)

    async def _writer():
        try:
            while True:
                event, data = await queue.get()
                await websocket.send_json({"type": event, "data": data})
        except Exception as e:
            logger.debug("WS writer stopped: %s", e)

    reader_task = asyncio.create_task(_reader())
    writer_task = asyncio.create_task(_writer())

    try:
        done, pending = await asyncio.wait(
            [reader_task, writer_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
    finally:
        state.unsubscribe(client_id)
        for task in list(in_flight):
            task.cancel()
        logger.info("WS disconnected: %s", client_id)


async def _handle_ws_message(engine: RelayEngine, state: RelayState, client_id: str, message: dict):
    """Route one inbound frame. Failures become a toast, never a dropped socket."""
    msg_type = message.get("type", "")
    data = message.get("data")

    try:
        if msg_type == "client-input":
            text = data if isinstance(data, str) else ""
            outcome = await engine.submit_text(text, Origin.WEB)

        elif msg_type == "select-video":
            data = data if isinstance(data, dict) else {}
            outcome = await engine.select_video(
                str(data.get("videoId") or "").strip(),
                str(data.get("title") or "").strip(),
                Origin.WEB,
                kind=TrackKind.parse(data.get("kind")),
                favorite=bool(data.get("favorite")),
            )

        elif msg_type == "select-default":
            data = data if isinstance(data, dict) else {}
            outcome = await engine.select_default(
                str(data.get("videoId") or "").strip(),
                str(data.get("title") or "").strip(),
                TrackKind.parse(data.get("kind")),
            )

        elif msg_type == "search-default":
            query = data.strip() if isinstance(data, str) else ""
            outcome = await engine.search(query, for_default=True)

        else:
            logger.warning("Unknown WS message type: %s", msg_type)
            return

        await _answer(state, client_id, outcome)

    except Exception as e:
        msg = format_error("ws_message", str(data)[:200], {"type": msg_type}, repr(e))
        await state.notify(client_id, msg)


async def _answer(state: RelayState, client_id: str, outcome: Outcome):
    if outcome.kind == OutcomeKind.SEARCH_RESULTS:
        await state.unicast_search_results(client_id, outcome.items, for_default=outcome.for_default)
        return
    if outcome.kind in _NOTIFY_KINDS:
        text = reply_text(outcome)
        if text:
            await state.notify(client_id, text)


# ── App factory ──────────────────────────────────────────────────────────────

def initial_default_track() -> DefaultTrack:
    return DefaultTrack(
        id=DEFAULT_TRACK_ID,
        kind=TrackKind.parse(DEFAULT_TRACK_KIND),
        label=DEFAULT_TRACK_LABEL,
    )


def create_app(
    youtube: Optional[YouTubeClient] = None,
    line: Optional[LineClient] = None,
    initial_default: Optional[DefaultTrack] = None,
    public_dir: Optional[Path] = PUBLIC_DIR,
) -> Starlette:
    youtube = youtube or YouTubeClient()
    line = line or LineClient()
    state = RelayState(initial_default or initial_default_track())
    engine = RelayEngine(state, Resolver(youtube))

    routes = [
        Route("/api/health", health),
        Route("/callback", callback, methods=["POST"]),
        WebSocketRoute("/ws", websocket_endpoint),
    ]

    # Static player page, if present, must be mounted last
    if public_dir and Path(public_dir).is_dir():
        routes.append(Mount("/", app=StaticFiles(directory=str(public_dir), html=True), name="public"))

    @contextlib.asynccontextmanager
    async def lifespan(app):
        logger.info(
            "Relay ready (search %s, default %s)",
            "on" if youtube.configured else "off",
            state.default_track.get().id,
        )
        yield
        logger.info("Relay stopped")

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.relay = state
    app.state.engine = engine
    app.state.youtube = youtube
    app.state.line = line
    return app
