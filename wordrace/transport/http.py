# wordrace/transport/http.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request

from wordrace.domain.rounds.generator import display_name
from wordrace.transport.dispatcher import dispatch_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["rooms"])

_STATUS_BY_CODE = {
    "NOT_FOUND": 404,
    "UNAUTHORIZED": 401,
    "BAD_REQUEST": 400,
    "BAD_MESSAGE": 400,
    "INTERNAL_ERROR": 500,
}


async def _call(request: Request, msg_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run one domain operation for a REST caller.
    Room events are fanned out to websocket subscribers just like socket calls.
    """
    raw = {**payload, "type": msg_type}
    to_sender, to_room = await dispatch_message(app=request.app, conn_id=None, raw=raw)

    if to_sender and to_sender[0].get("type") == "error":
        err = to_sender[0]
        raise HTTPException(
            status_code=_STATUS_BY_CODE.get(err["code"], 400),
            detail={"code": err["code"], "reason": err["reason"], "message": err["message"]},
        )

    wsman = getattr(request.app.state, "wsman", None)
    if wsman is not None and to_room:
        await wsman.publish(to_room)

    if to_sender:
        return to_sender[0]
    return {"ok": True, "events": to_room}


# ----------------------------
# Lifecycle
# ----------------------------

@router.post("/rooms")
async def create_room(request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "create_room", body)


@router.post("/rooms/join")
async def join_room(request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "join", body)


@router.post("/rooms/rejoin")
async def rejoin_room(request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "rejoin", body)


@router.get("/rooms/{room_id}")
async def room_state(room_id: str, request: Request, username: Optional[str] = Query(default=None)):
    return await _call(request, "room_state", {"room_id": room_id, "username": username})


@router.post("/rooms/{room_id}/leave")
async def leave_room(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "leave", {**body, "room_id": room_id})


@router.post("/rooms/{room_id}/chat")
async def send_chat(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "chat_message", {**body, "room_id": room_id})


# ----------------------------
# Lobby
# ----------------------------

@router.put("/rooms/{room_id}/config")
async def update_config(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "update_config", {**body, "room_id": room_id})


@router.post("/rooms/{room_id}/start")
async def start_game(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "start_game", {**body, "room_id": room_id})


# ----------------------------
# Game
# ----------------------------

@router.post("/rooms/{room_id}/answers")
async def submit_answers(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "submit_answers", {**body, "room_id": room_id})


@router.get("/rooms/{room_id}/results")
async def round_results(
    room_id: str,
    request: Request,
    username: str = Query(...),
    round_number: Optional[int] = Query(default=None),
):
    return await _call(
        request,
        "round_results",
        {"room_id": room_id, "username": username, "round_number": round_number},
    )


@router.post("/rooms/{room_id}/next")
async def next_round(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "next_round", {**body, "room_id": room_id})


@router.post("/rooms/{room_id}/end")
async def end_game(room_id: str, request: Request, body: Dict[str, Any] = Body(...)):
    return await _call(request, "end_game", {**body, "room_id": room_id})


@router.get("/rooms/{room_id}/summary")
async def game_summary(room_id: str, request: Request, username: str = Query(...)):
    return await _call(request, "game_summary", {"room_id": room_id, "username": username})


# ----------------------------
# Session history
# ----------------------------

@router.get("/sessions/{room_id}")
async def get_session(room_id: str, request: Request):
    repo = getattr(request.app.state, "repo", None)
    if repo is None:
        raise HTTPException(status_code=503, detail="Session store unavailable")
    record = await repo.get_session(room_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record.model_dump()


@router.get("/sessions/code/{join_code}")
async def get_session_by_code(join_code: str, request: Request):
    repo = getattr(request.app.state, "repo", None)
    if repo is None:
        raise HTTPException(status_code=503, detail="Session store unavailable")
    record = await repo.get_session_by_code(join_code)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record.model_dump()


@router.get("/categories")
async def list_categories(request: Request):
    """Categories the word bank can serve, for the lobby config picker."""
    bank = request.app.state.bank
    return {"categories": [{"id": c, "name": display_name(c)} for c in bank.categories()]}
