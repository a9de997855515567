"""Health check and the collaboration WebSocket."""

from __future__ import annotations

import json
import logging
import uuid

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

from collabide import config
from collabide.exceptions import CollabValidationError
from collabide.web.schemas import HealthResponse

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["collab"])


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    state = request.app.state
    return HealthResponse(
        version=config.APP_VERSION,
        rooms=len(state.registry),
        active_batches=state.run_queue.active_count(),
        persist=state.sync.persist_enabled,
    )


@router.websocket("/ws/collab")
async def collab_socket(websocket: WebSocket) -> None:
    """Presence channel; frames are ``{"event": name, "data": {...}}`` both ways."""
    await websocket.accept()
    hub = websocket.app.state.hub
    presence = websocket.app.state.presence
    connection_id = uuid.uuid4().hex
    hub.register(connection_id, websocket)
    LOGGER.info("Client connected | connection=%s", connection_id)
    presence.connect(connection_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
                if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                    raise CollabValidationError("Frames must be objects with an event name.")
                presence.handle(connection_id, frame["event"], frame.get("data") or {})
            except (json.JSONDecodeError, CollabValidationError) as exc:
                LOGGER.info("Rejected frame | connection=%s | error=%s", connection_id, exc)
                hub.send(connection_id, "error", {"message": getattr(exc, "message", "Malformed JSON frame.")})
    except WebSocketDisconnect:
        LOGGER.info("Client disconnected | connection=%s", connection_id)
    finally:
        presence.disconnect(connection_id)
        await hub.unregister(connection_id)
