from __future__ import annotations

import logging
from typing import Optional

from wordrace.util.timeutil import now_ms
from wordrace.domain.common.ranking import leaderboard, pick_winner, round_results
from wordrace.domain.common.records import build_session_record
from wordrace.domain.common.types import Result
from wordrace.domain.common.validation import (
    clean_username,
    is_host,
    is_member,
    not_a_member,
    not_host,
    room_not_found,
)
from wordrace.domain.game.round_flow import start_round
from wordrace.transport.protocols import (
    InNextRound,
    InRoundResults,
    OutError,
    OutGameFinished,
    OutRoundResults,
)

logger = logging.getLogger(__name__)


async def handle_round_results(*, app, conn_id: Optional[str], msg: InRoundResults) -> Result:
    room = app.state.registry.get(msg.room_id)
    if room is None:
        return [room_not_found()], []
    if not is_member(room, clean_username(msg.username)):
        return [not_a_member()], []

    number = msg.round_number if msg.round_number is not None else room.current_round
    rnd = room.round_at(number)
    if rnd is None:
        return [OutError(code="BAD_REQUEST", reason="bad_round", message=f"No round {number} in this game")], []

    return [
        OutRoundResults(
            room_id=room.room_id,
            round_number=rnd.round_number,
            letter=rnd.letter,
            categories=rnd.category_names(),
            results=round_results(room, rnd.round_number),
        )
    ], []


async def handle_next_round(*, app, conn_id: Optional[str], msg: InNextRound) -> Result:
    """
    Host-only. round_end -> playing while rounds remain, otherwise -> finished
    with the winner fixed at that moment.
    """
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
            return [not_host("advance the round")], []
        if room.phase != "round_end":
            return [OutError(code="BAD_REQUEST", reason="not_round_end", message="Round has not ended yet")], []

        ts = now_ms()
        if room.current_round < len(room.rounds):
            return [], [start_round(room=room, round_number=room.current_round + 1, ts=ts)]

        room.phase = "finished"
        room.winner = pick_winner(room)
        room.last_activity = ts
        logger.info(
            "Room %s finished, winner %s",
            room.room_id,
            room.winner.username if room.winner else None,
        )
        app.state.sink.persist(
            "game_finished",
            build_session_record(room, status="completed", completed_at=ts),
        )
        return [], [
            OutGameFinished(
                room_id=room.room_id,
                winner=room.winner.model_dump() if room.winner else None,
                leaderboard=leaderboard(room),
            )
        ]
