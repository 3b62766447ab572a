from __future__ import annotations

from typing import Any, Dict, Optional

from wordrace.store.models import PlayerStore, RoomStore, RoundStore
from wordrace.transport.protocols import OutRoomSnapshot


def player_view(p: PlayerStore) -> Dict[str, Any]:
    return {
        "username": p.username,
        "avatar": p.avatar,
        "role": p.role,
        "status": p.status,
        "current_score": p.current_score,
        "answers_count": len(p.answers),
        "joined_at": p.joined_at,
    }


def round_view(rnd: RoundStore) -> Dict[str, Any]:
    return {
        "round_number": rnd.round_number,
        "letter": rnd.letter,
        "categories": [c.model_dump() for c in rnd.categories],
        "submitted": [u for u, done in rnd.submissions.items() if done],
        "started_at": rnd.started_at,
        "ended_at": rnd.ended_at,
    }


def room_view(room: RoomStore) -> Dict[str, Any]:
    return {
        "room_id": room.room_id,
        "join_code": room.join_code,
        "host_id": room.host_id,
        "phase": room.phase,
        "max_players": room.max_players,
        "current_round": room.current_round,
        "total_rounds": room.total_rounds,
        "config": room.config.model_dump(),
        "created_at": room.created_at,
        "started_at": room.started_at,
        "last_activity": room.last_activity,
    }


def build_snapshot(room: RoomStore, *, viewer: Optional[str] = None) -> OutRoomSnapshot:
    """
    Full room state for a (re)connecting client.
    The current round is only exposed once it is live.
    """
    current = None
    if room.phase in ("playing", "round_end"):
        rnd = room.active_round()
        if rnd is not None:
            current = round_view(rnd)

    return OutRoomSnapshot(
        room_id=room.room_id,
        room=room_view(room),
        players=[player_view(p) for p in room.players.values()],
        current_round=current,
        chat=[m.model_dump() for m in room.chat_messages],
        winner=room.winner.model_dump() if room.winner else None,
        you=viewer,
    )
