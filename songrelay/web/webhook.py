"""LINE webhook adapter: one isolated task per event, joined per batch."""
import asyncio
import json
import logging
from urllib.parse import parse_qs

import httpx
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..engine import RelayEngine
from ..errors import format_error
from ..line import LineClient
from ..models import Origin, TrackKind
from ..replies import line_messages, text_message

logger = logging.getLogger(__name__)


async def callback(request: Request):
    engine: RelayEngine = request.app.state.engine
    line: LineClient = request.app.state.line

    body = await request.body()
    if not line.check_signature(body, request.headers.get("x-line-signature")):
        logger.warning("Rejected webhook with bad signature")
        return JSONResponse({"error": "invalid signature"}, status_code=400)

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        return JSONResponse({"error": "invalid body"}, status_code=400)

    events = payload.get("events") if isinstance(payload, dict) else None
    if not isinstance(events, list):
        return JSONResponse({"error": "missing events"}, status_code=400)

    results = await asyncio.gather(*(handle_event_isolated(engine, line, e) for e in events))
    return JSONResponse({"results": list(results)})


async def handle_event_isolated(engine: RelayEngine, line: LineClient, event) -> dict:
    """Never raises: a failing event apologises to its own sender and that's it."""
    try:
        return await handle_event(engine, line, event)
    except Exception as e:
        msg = format_error("webhook_event", _event_input(event), raw=repr(e))
        reply_token = event.get("replyToken") if isinstance(event, dict) else None
        if reply_token:
            try:
                await line.reply(reply_token, [text_message(f"🙇 {msg}")])
            except Exception as reply_err:
                format_error("line_reply", raw=repr(reply_err))
        return {"status": "error"}


async def handle_event(engine: RelayEngine, line: LineClient, event: dict) -> dict:
    event_type = event.get("type")

    if event_type == "message" and event.get("message", {}).get("type") == "text":
        outcome = await engine.submit_text(event["message"].get("text", ""), Origin.BOT)

    elif event_type == "postback":
        data = parse_qs(event.get("postback", {}).get("data", ""))
        video_id = _first(data, "videoId")
        title = _first(data, "title")
        kind = TrackKind.parse(_first(data, "kind"))
        if _first(data, "mode") == "default":
            outcome = await engine.select_default(video_id, title, kind)
        else:
            outcome = await engine.select_video(video_id, title, Origin.BOT, kind=kind)

    else:
        return {"status": "ignored"}

    messages = line_messages(outcome)
    if messages:
        # Engine side effects already happened; a lost reply is only logged
        try:
            await line.reply(event.get("replyToken", ""), messages)
        except httpx.HTTPError as e:
            format_error("line_reply", _event_input(event), raw=repr(e))
    return {"status": outcome.kind.value}


def _first(data: dict, key: str) -> str:
    values = data.get(key) or [""]
    return values[0].strip()


def _event_input(event) -> str:
    if not isinstance(event, dict):
        return repr(event)[:200]
    if event.get("type") == "postback":
        return event.get("postback", {}).get("data", "")
    return (event.get("message") or {}).get("text", "")
