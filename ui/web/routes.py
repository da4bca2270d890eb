"""
Web Routes - Chat socket, page and API endpoints
================================================

This module defines all web routes for the Reihtuag chat interface.
"""

from typing import Any, Tuple

from fastapi import APIRouter, Request, HTTPException, WebSocket
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ValidationError

from core.logging import get_logger, set_log_context, clear_log_context
from services.channel import new_connection_id

logger = get_logger("web.routes")

router = APIRouter()

SOCKET_PATH = "/socket"


class ChannelEvent(BaseModel):
    """A JSON frame exchanged over the chat socket."""
    event: str
    data: Any = None


class RespondRequest(BaseModel):
    message: str = ""


def parse_frame(raw: str, default_event: str) -> Tuple[str, Any]:
    """
    Split a socket frame into (event, data).

    Frames that are not {"event": ..., "data": ...} objects are taken
    as a bare utterance for default_event.
    """
    try:
        frame = ChannelEvent.model_validate_json(raw)
    except ValidationError:
        return default_event, raw
    return frame.event, frame.data


# === Page Routes ===

@router.get("/", response_class=HTMLResponse)
async def chat_page(request: Request):
    """Render the chat page."""
    templates = request.app.state.templates
    config = request.app.state.config

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "app_name": config.app_name,
            "socket_path": SOCKET_PATH,
            "inbound_event": config.channel.inbound_event,
            "outbound_event": config.channel.outbound_event,
        }
    )


# === Chat Socket ===

@router.websocket(SOCKET_PATH)
async def chat_socket(websocket: WebSocket):
    """
    Relay utterances to the channel until the client goes away.

    Each text frame is dispatched as one event; replies are broadcast
    by the channel to every connected client.
    """
    channel = websocket.app.state.channel

    await websocket.accept()
    connection_id = new_connection_id()
    set_log_context(connection=connection_id)

    try:
        await channel.connect(websocket, connection_id)

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")

            event, data = parse_frame(raw, channel.inbound_event)
            await channel.dispatch(event, data, connection_id)
    except Exception as e:
        logger.error(f"Socket handler failed: {e}", exc_info=True)
    finally:
        await channel.disconnect(connection_id)
        clear_log_context()


# === API Routes ===

@router.post("/api/respond")
async def respond(request: Request, body: RespondRequest):
    """Generate a reply without broadcasting it."""
    engine = request.app.state.engine

    try:
        category = engine.classify(body.message)
        reply = engine.respond(body.message)
    except Exception as e:
        logger.error(f"Reply simulation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "reply": reply,
        "category": category.name if category else None,
    }


@router.get("/api/status")
async def get_status(request: Request):
    """Get server status."""
    config = request.app.state.config
    engine = request.app.state.engine
    channel = request.app.state.channel

    return {
        "app_name": config.app_name,
        "version": config.version,
        "connected_clients": channel.connection_count,
        "categories": engine.category_names(),
        "fallback": config.engine.fallback,
    }
