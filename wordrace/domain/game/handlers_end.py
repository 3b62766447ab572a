from __future__ import annotations

import logging
from typing import Optional

from wordrace.util.timeutil import now_ms
from wordrace.domain.common.types import Result
from wordrace.domain.common.validation import (
    clean_username,
    is_host,
    is_member,
    not_a_member,
    not_host,
    room_not_found,
)
from wordrace.transport.protocols import InEndGame, OutError, OutGameEnded

logger = logging.getLogger(__name__)


async def handle_end_game(*, app, conn_id: Optional[str], msg: InEndGame) -> Result:
    """Host stops the game early; the room goes back to the lobby with scores wiped."""
    registry = app.state.registry
    if registry.get(msg.room_id) is None:
        return [room_not_found()], []

    async with registry.lock(msg.room_id):
        room = registry.get(msg.room_id)
        if room is None:
            return [room_not_found()], []

        username = clean_username(msg.username)
        if not is_member(room, username):
            return [not_a_member()], []
        if not is_host(room, username):
            return [not_host("end the game")], []
        if room.phase == "waiting":
            return [OutError(code="BAD_REQUEST", reason="not_started", message="Game has not started")], []

        room.phase = "waiting"
        room.rounds = []
        room.current_round = 0
        room.winner = None
        room.started_at = None
        for p in room.players.values():
            p.current_score = 0
            p.answers = []
        room.last_activity = now_ms()

        logger.info("Room %s game ended early by %s", room.room_id, username)
        app.state.sink.persist_status("game_ended", room.room_id, "cancelled")
        return [], [OutGameEnded(room_id=room.room_id, ended_by=username)]
