# wordrace/transport/ws.py
from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from wordrace.settings import get_settings
from wordrace.domain.lifecycle.handlers import handle_disconnect
from wordrace.transport.dispatcher import dispatch_message
from wordrace.transport.protocols import OutError

logger = logging.getLogger(__name__)

router = APIRouter()


async def _check_origin_or_close(websocket: WebSocket) -> bool:
    settings = get_settings()
    allowed = {o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()}

    origin = websocket.headers.get("origin")
    if origin is None or "*" in allowed or origin in allowed:
        return True
    logger.warning("Rejecting websocket from origin %s", origin)
    await websocket.close(code=1008)
    return False


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    conn_id = uuid.uuid4().hex[:12]
    wsman = websocket.app.state.wsman

    try:
        while True:
            try:
                raw = await websocket.receive_json()
            except ValueError:
                err = OutError(code="BAD_MESSAGE", message="Invalid JSON").model_dump()
                await websocket.send_json(err)
                continue

            to_sender, to_room = await dispatch_message(
                app=websocket.app,
                conn_id=conn_id,
                raw=raw,
            )

            # unicast; entering or leaving a room moves the socket between channels
            for e in to_sender:
                await websocket.send_json(e)
                if e.get("type") == "room_snapshot" and raw.get("type") in ("create_room", "join", "rejoin"):
                    await wsman.join(e["room_id"], conn_id, websocket)
                elif e.get("type") == "left_room":
                    await wsman.leave(e["room_id"], conn_id)

            # room channel, sender included
            await wsman.publish(to_room)

    except WebSocketDisconnect:
        logger.debug("Connection %s closed", conn_id)

    finally:
        # any exit from the loop counts as a transport loss
        _, to_room = await handle_disconnect(app=websocket.app, conn_id=conn_id)
        await wsman.leave_all(conn_id)
        await wsman.publish([e.model_dump() for e in to_room])
