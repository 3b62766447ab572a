from __future__ import annotations

from typing import Optional

from wordrace.store.models import (
    RoomStore,
    SessionAnswer,
    SessionPlayer,
    SessionPlayerRound,
    SessionRecord,
    SessionRound,
    SessionScore,
    SessionStatus,
)
from wordrace.domain.common.ranking import rank_players, round_score
from wordrace.util.timeutil import now_ms


def build_session_record(
    room: RoomStore,
    *,
    status: SessionStatus = "active",
    completed_at: Optional[int] = None,
) -> SessionRecord:
    """
    Mirror of the live room for the history store.
    Only rounds that have ended are copied; final scores only once finished.
    """
    players = [
        SessionPlayer(username=p.username, avatar=p.avatar, is_guest=p.is_guest, joined_at=p.joined_at)
        for p in room.players.values()
    ]

    rounds = []
    for rnd in room.rounds:
        if rnd.ended_at is None:
            continue
        per_player = []
        for p in room.players.values():
            answers = [
                SessionAnswer(category=a.category, word=a.word, valid=a.valid, score=a.score, time_left=a.time_left)
                for a in p.answers
                if a.round_number == rnd.round_number
            ]
            per_player.append(
                SessionPlayerRound(username=p.username, answers=answers, score=round_score(p, rnd.round_number))
            )
        rounds.append(
            SessionRound(
                round_number=rnd.round_number,
                letter=rnd.letter,
                categories=rnd.category_names(),
                started_at=rnd.started_at,
                ended_at=rnd.ended_at,
                player_answers=per_player,
            )
        )

    final_scores = []
    if room.phase == "finished":
        for rank, p in enumerate(rank_players(room), start=1):
            final_scores.append(
                SessionScore(
                    username=p.username,
                    score=p.current_score,
                    rank=rank,
                    answers_count=len(p.answers),
                    valid_answers_count=sum(1 for a in p.answers if a.valid),
                )
            )

    return SessionRecord(
        room_id=room.room_id,
        join_code=room.join_code,
        host_id=room.host_id,
        players=players,
        config=room.config.model_copy(deep=True),
        round_results=rounds,
        final_scores=final_scores,
        winner=room.winner.model_copy() if room.winner else None,
        status=status,
        created_at=room.created_at,
        started_at=room.started_at,
        completed_at=completed_at,
        updated_at=now_ms(),
    )
