from __future__ import annotations

import logging
from typing import List

from wordrace.domain.common.ranking import leaderboard, round_results
from wordrace.domain.common.records import build_session_record
from wordrace.domain.common.snapshots import round_view
from wordrace.store.models import RoomStore
from wordrace.transport.protocols import OutgoingEvent, OutRoundEnded, OutRoundStarted

logger = logging.getLogger(__name__)


def all_submitted(room: RoomStore) -> bool:
    rnd = room.active_round()
    if rnd is None or not room.players:
        return False
    return len(rnd.submissions) == len(room.players)


def end_round(*, app, room: RoomStore, ts: int) -> List[OutgoingEvent]:
    """
    playing -> round_end. Caller holds the room lock and has checked
    that everyone still in the room has submitted.
    """
    rnd = room.active_round()
    rnd.ended_at = ts
    room.phase = "round_end"
    room.last_activity = ts

    logger.info("Room %s round %d ended", room.room_id, rnd.round_number)
    app.state.sink.persist("round_ended", build_session_record(room))

    return [
        OutRoundEnded(
            room_id=room.room_id,
            round_number=rnd.round_number,
            letter=rnd.letter,
            results=round_results(room, rnd.round_number),
            leaderboard=leaderboard(room),
            is_last_round=rnd.round_number >= len(room.rounds),
        )
    ]


def start_round(*, room: RoomStore, round_number: int, ts: int) -> OutRoundStarted:
    rnd = room.round_at(round_number)
    rnd.started_at = ts
    room.current_round = round_number
    room.phase = "playing"
    room.last_activity = ts

    logger.info("Room %s round %d started with letter %s", room.room_id, round_number, rnd.letter)
    return OutRoundStarted(room_id=room.room_id, round=round_view(rnd), total_rounds=len(room.rounds))
