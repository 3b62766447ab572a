from __future__ import annotations

from typing import Optional

from wordrace.domain.common.types import Result
from wordrace.domain.common.validation import clean_username, is_member, not_a_member, room_not_found
from wordrace.domain.game.summary import build_summary
from wordrace.transport.protocols import InGameSummary, OutError, OutGameSummary


async def handle_game_summary(*, app, conn_id: Optional[str], msg: InGameSummary) -> Result:
    room = app.state.registry.get(msg.room_id)
    if room is None:
        return [room_not_found()], []
    if not is_member(room, clean_username(msg.username)):
        return [not_a_member()], []

    # the last round's results screen may already show the summary
    last_round_over = room.phase == "round_end" and room.current_round >= len(room.rounds)
    if room.phase != "finished" and not last_round_over:
        return [OutError(code="BAD_REQUEST", reason="not_finished", message="Game is not finished")], []

    return [OutGameSummary(room_id=room.room_id, summary=build_summary(room))], []
