from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from wordrace.domain.lifecycle.handlers import destroy_room

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/rooms")
async def list_rooms(request: Request):
    """
    List all live rooms (debug/admin).
    """
    registry = request.app.state.registry

    rooms = []
    for room in sorted(registry.list_rooms(), key=lambda r: r.created_at):
        connected = [p for p in room.players.values() if p.status == "active"]
        rooms.append(
            {
                "room_id": room.room_id,
                "join_code": room.join_code,
                "host_id": room.host_id,
                "phase": room.phase,
                "max_players": room.max_players,
                "current_round": room.current_round,
                "total_rounds": room.total_rounds,
                "players": len(room.players),
                "connected": len(connected),
                "last_activity": room.last_activity,
                "created_at": room.created_at,
            }
        )

    return {"rooms": rooms}


@router.get("/sessions")
async def recent_sessions(request: Request, limit: int = 20):
    """
    Most recently updated session records from the history store.
    """
    repo = request.app.state.repo
    sessions = []
    for room_id in await repo.recent_room_ids(limit=limit):
        record = await repo.get_session(room_id)
        # index entries outlive expired records
        if record is None:
            continue
        sessions.append(
            {
                "room_id": record.room_id,
                "join_code": record.join_code,
                "status": record.status,
                "players": len(record.players),
                "winner": record.winner.model_dump() if record.winner else None,
                "updated_at": record.updated_at,
            }
        )
    return {"sessions": sessions}


@router.post("/rooms/{room_id}/close")
async def close_room(room_id: str, request: Request):
    """
    Force close a room (debug/admin). Marks the session abandoned,
    tells subscribers and closes their websockets.
    """
    registry = request.app.state.registry
    wsman = request.app.state.wsman

    if registry.get(room_id) is None:
        raise HTTPException(status_code=404, detail="Room not found")

    async with registry.lock(room_id):
        events = destroy_room(app=request.app, room_id=room_id, reason="closed_by_admin")

    if not events:
        raise HTTPException(status_code=404, detail="Room not found")

    for e in events:
        await wsman.broadcast(room_id, e.model_dump())
    await wsman.close_room(room_id, code=4000)

    logger.warning("Room %s closed by admin", room_id)
    return {"ok": True, "room_id": room_id}
