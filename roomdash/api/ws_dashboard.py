from __future__ import annotations

import json
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from roomdash.schemas.ws import ClientFrameIn
from roomdash.services.lifecycle import ConnectionLifecycle


logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard-ws"])


async def _dispatch(lifecycle: ConnectionLifecycle, conn_id: str, raw: str) -> None:
    try:
        data = json.loads(raw)
        frame = ClientFrameIn.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        logger.debug("Ignoring malformed frame from %s", conn_id)
        return

    if frame.event == "join-room":
        if not frame.data:
            return
        await lifecycle.join(conn_id, frame.data)
    elif frame.event == "leave-room":
        await lifecycle.leave(conn_id)
    else:
        logger.debug("Ignoring unknown event %r from %s", frame.event, conn_id)


@router.websocket("/ws")
async def dashboard_ws(websocket: WebSocket):
    lifecycle: ConnectionLifecycle = websocket.app.state.lifecycle

    await websocket.accept()
    conn_id = str(uuid.uuid4())

    try:
        await lifecycle.connect(websocket, conn_id)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                logger.debug("Ignoring binary frame from %s", conn_id)
                continue
            await _dispatch(lifecycle, conn_id, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await lifecycle.disconnect(conn_id)
