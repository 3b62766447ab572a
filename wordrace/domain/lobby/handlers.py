from __future__ import annotations

import logging
from typing import List, Optional

from wordrace.util.timeutil import now_ms
from wordrace.domain.common.records import build_session_record
from wordrace.domain.common.types import Result
from wordrace.domain.common.validation import (
    clean_username,
    is_host,
    is_member,
    merge_config,
    not_a_member,
    not_host,
    room_not_found,
    validate_config,
)
from wordrace.domain.game.round_flow import start_round
from wordrace.domain.rounds.generator import generate_rounds
from wordrace.transport.protocols import (
    InStartGame,
    InUpdateConfig,
    OutConfigUpdated,
    OutError,
    OutGameStarted,
    OutgoingEvent,
)

logger = logging.getLogger(__name__)


def _guard_host(room, username: str, action: str) -> Optional[OutError]:
    if not is_member(room, username):
        return not_a_member()
    if not is_host(room, username):
        return not_host(action)
    if room.phase != "waiting":
        return OutError(code="BAD_REQUEST", reason="not_waiting", message="Game already started")
    return None


async def handle_update_config(*, app, conn_id: Optional[str], msg: InUpdateConfig) -> Result:
    registry = app.state.registry
    if registry.get(msg.room_id) is None:
        return [room_not_found()], []

    async with registry.lock(msg.room_id):
        room = registry.get(msg.room_id)
        if room is None:
            return [room_not_found()], []

        username = clean_username(msg.username)
        err = _guard_host(room, username, "change settings")
        if err is not None:
            return [err], []

        cfg = merge_config(room.config, msg.config)
        ok, why = validate_config(cfg)
        if not ok:
            return [OutError(code="BAD_REQUEST", reason="invalid_config", message=why)], []

        room.config = cfg
        room.last_activity = now_ms()
        logger.info("Room %s config updated: %s", room.room_id, cfg.model_dump())
        app.state.sink.persist("config_updated", build_session_record(room))

        return [], [OutConfigUpdated(room_id=room.room_id, config=cfg.model_dump())]


async def handle_start_game(*, app, conn_id: Optional[str], msg: InStartGame) -> Result:
    """
    waiting -> starting -> playing.
    The full set of rounds is generated up front; a game that cannot get every
    requested round never starts.
    """
    registry = app.state.registry
    if registry.get(msg.room_id) is None:
        return [room_not_found()], []

    async with registry.lock(msg.room_id):
        room = registry.get(msg.room_id)
        if room is None:
            return [room_not_found()], []

        username = clean_username(msg.username)
        err = _guard_host(room, username, "start the game")
        if err is not None:
            return [err], []

        cfg = merge_config(room.config, msg.config)
        ok, why = validate_config(cfg)
        if not ok:
            return [OutError(code="BAD_REQUEST", reason="invalid_config", message=why)], []
        if not room.players:
            return [OutError(code="BAD_REQUEST", reason="no_players", message="No players in room")], []

        rounds = generate_rounds(cfg, app.state.oracle, rng=getattr(app.state, "rng", None))
        if not rounds:
            logger.error("Room %s: no playable letters for categories %s", room.room_id, cfg.supported_categories)
            return [OutError(code="INTERNAL_ERROR", reason="no_rounds", message="Could not generate any rounds")], []
        if len(rounds) < cfg.rounds_count:
            return [
                OutError(
                    code="BAD_REQUEST",
                    reason="not_enough_letters",
                    message=(
                        f"Only {len(rounds)} of {cfg.rounds_count} rounds are possible with these categories; "
                        "add categories or lower the round count"
                    ),
                )
            ], []

        ts = now_ms()
        room.config = cfg
        room.rounds = rounds
        room.winner = None
        room.started_at = ts
        room.phase = "starting"
        logger.info("Room %s starting with %d rounds (%d players)", room.room_id, len(rounds), len(room.players))

        to_room: List[OutgoingEvent] = [
            OutGameStarted(room_id=room.room_id, total_rounds=len(rounds), started_at=ts),
            start_round(room=room, round_number=1, ts=ts),
        ]
        app.state.sink.persist("game_started", build_session_record(room))
        return [], to_room
