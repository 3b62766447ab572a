from __future__ import annotations

import logging
from typing import List, Optional

from wordrace.util.timeutil import now_ms
from wordrace.store.models import AnswerRecord
from wordrace.domain.common.types import Result
from wordrace.domain.common.validation import clean_username, is_member, not_a_member, room_not_found
from wordrace.domain.game.round_flow import all_submitted, end_round
from wordrace.transport.protocols import (
    InSubmitAnswers,
    OutAnswerProgress,
    OutError,
    OutgoingEvent,
    OutSubmitResult,
)
from wordrace.words.validator import AnswerInput

logger = logging.getLogger(__name__)


async def handle_submit_answers(*, app, conn_id: Optional[str], msg: InSubmitAnswers) -> Result:
    """
    One submission per player per round.

    The room lock is held across the validator await so that two players
    finishing at the same moment are committed one after the other and only
    the last one ends the round.
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
        if room.phase != "playing":
            return [OutError(code="BAD_REQUEST", reason="not_playing", message="No round is being played")], []

        rnd = room.active_round()
        if rnd is None:
            return [OutError(code="BAD_REQUEST", reason="not_playing", message="No round is being played")], []
        if rnd.submissions.get(username):
            return [
                OutError(code="BAD_REQUEST", reason="already_submitted", message="Answers already submitted for this round")
            ], []

        allowed = set(rnd.category_names())
        seen = set()
        for a in msg.answers:
            if a.category not in allowed:
                return [
                    OutError(
                        code="BAD_REQUEST",
                        reason="unknown_category",
                        message=f"Category {a.category!r} is not part of round {rnd.round_number}",
                    )
                ], []
            if a.category in seen:
                return [
                    OutError(code="BAD_REQUEST", reason="duplicate_category", message=f"Category {a.category!r} answered twice")
                ], []
            seen.add(a.category)

        batch = [
            AnswerInput(letter=rnd.letter, word=a.word, category=a.category, time_left=a.time_left)
            for a in msg.answers
        ]
        try:
            results = await app.state.validator.validate(batch)
        except Exception:
            logger.exception("Answer validation failed in room %s for %s", room.room_id, username)
            return [OutError(code="INTERNAL_ERROR", reason="validation_failed", message="Could not validate answers")], []
        if len(results) != len(batch):
            logger.error("Validator returned %d results for %d answers", len(results), len(batch))
            return [OutError(code="INTERNAL_ERROR", reason="validation_failed", message="Could not validate answers")], []

        # commit
        ts = now_ms()
        player = room.players[username]
        gained = 0
        for inp, res in zip(batch, results):
            player.answers.append(
                AnswerRecord(
                    round_number=rnd.round_number,
                    letter=rnd.letter,
                    word=res.word,
                    category=inp.category,
                    time_left=inp.time_left,
                    score=res.total_score,
                    valid=res.valid,
                )
            )
            gained += res.total_score
        player.current_score += gained
        player.last_activity = ts
        rnd.submissions[username] = True
        room.last_activity = ts

        done = all_submitted(room)
        logger.info(
            "%s submitted %d answers for room %s round %d (+%d, %d/%d)",
            username,
            len(batch),
            room.room_id,
            rnd.round_number,
            gained,
            len(rnd.submissions),
            len(room.players),
        )

        to_room: List[OutgoingEvent] = [
            OutAnswerProgress(
                room_id=room.room_id,
                username=username,
                submitted=len(rnd.submissions),
                total=len(room.players),
                all_submitted=done,
            )
        ]
        if done:
            to_room.extend(end_round(app=app, room=room, ts=ts))

        to_sender: List[OutgoingEvent] = [
            OutSubmitResult(
                room_id=room.room_id,
                round_number=rnd.round_number,
                results=[r.model_dump() for r in results],
                round_score=gained,
                total_score=player.current_score,
                all_submitted=done,
            )
        ]
        return to_sender, to_room
