"""
WebSocket endpoint for live seat counts and admin dashboard updates.

Client frames (JSON text):
    {"action": "joinEvent", "eventId": 3}
    {"action": "leaveEvent", "eventId": 3}

Server frames: {"event": <kind>, "data": {...}} as published by EventPublisher.
"""

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ticketing.core.logging import get_logger
from ticketing.realtime import get_registry

logger = get_logger(__name__)
router = APIRouter(tags=["Realtime"])

ACTIONS = {"joinEvent", "leaveEvent"}


def _parse_frame(raw: str):
    try:
        frame = json.loads(raw)
        action = frame["action"]
        event_id = int(frame["eventId"])
    except (ValueError, TypeError, KeyError):
        return None
    if not isinstance(action, str) or action not in ACTIONS:
        return None
    return action, event_id


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    registry = get_registry()
    connection = await registry.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            parsed = _parse_frame(raw)
            if parsed is None:
                logger.warning("ws_frame_ignored", connection_id=connection.id, frame=raw[:200])
                continue

            action, event_id = parsed
            if action == "joinEvent":
                registry.join(connection, event_id)
            else:
                registry.leave(connection, event_id)
    except WebSocketDisconnect:
        pass
    finally:
        registry.disconnect(connection)
