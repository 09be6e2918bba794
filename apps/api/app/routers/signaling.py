"""WebSocket channel carrying signaling frames between browsers and the relay."""
from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..schemas.signaling import Ack, ClientFrame
from ..services.errors import InvalidMessage
from ..services.registry import SignalingConnection
from ..services.signaling import EVENT_ACK, SignalingGateway

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_frame(raw: str | None) -> ClientFrame | None:
    """Return the frame, or None for binary or malformed input."""

    if raw is None:
        return None
    try:
        return ClientFrame.model_validate_json(raw)
    except ValidationError:
        return None


@router.websocket("/ws")
async def signaling_endpoint(websocket: WebSocket) -> None:
    """Accept a connection and dispatch its frames until it goes away."""

    gateway: SignalingGateway = websocket.app.state.gateway
    connection_id = str(uuid4())
    await websocket.accept()
    await gateway.connect(SignalingConnection(connection_id=connection_id, send=websocket.send_json))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            frame = _parse_frame(message.get("text"))
            if frame is None:
                logger.warning("Discarding malformed frame from %s", connection_id)
                ack = Ack.failure("Malformed frame.", InvalidMessage.code)
                await websocket.send_json({"event": EVENT_ACK, "id": None, "data": ack.to_payload()})
                continue

            ack = await gateway.dispatch(connection_id, frame.event, frame.data)
            if frame.id is not None:
                await websocket.send_json({"event": EVENT_ACK, "id": frame.id, "data": ack.to_payload()})
    except WebSocketDisconnect:
        pass
    finally:
        await gateway.disconnect(connection_id)
