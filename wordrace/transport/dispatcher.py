# wordrace/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple, Optional

from pydantic import ValidationError

from wordrace.transport.protocols import (
    parse_incoming,
    OutError,
    OutgoingEvent,
    InCreateRoom,
    InJoin,
    InRejoin,
    InLeave,
    InRoomState,
    InChatMessage,
    InUpdateConfig,
    InStartGame,
    InSubmitAnswers,
    InRoundResults,
    InNextRound,
    InEndGame,
    InGameSummary,
)
from wordrace.domain.lifecycle.handlers import (
    handle_create_room,
    handle_join,
    handle_rejoin,
    handle_leave,
    handle_room_state,
)
from wordrace.domain.chat.handlers import handle_chat_message
from wordrace.domain.lobby.handlers import handle_update_config, handle_start_game
from wordrace.domain.game import (
    handle_submit_answers,
    handle_round_results,
    handle_next_round,
    handle_end_game,
    handle_game_summary,
)

logger = logging.getLogger(__name__)

DispatchResult = Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]
# (to_sender_events, to_room_events), each event is JSON dict

_HANDLERS = {
    InCreateRoom: handle_create_room,
    InJoin: handle_join,
    InRejoin: handle_rejoin,
    InLeave: handle_leave,
    InRoomState: handle_room_state,
    InChatMessage: handle_chat_message,
    InUpdateConfig: handle_update_config,
    InStartGame: handle_start_game,
    InSubmitAnswers: handle_submit_answers,
    InRoundResults: handle_round_results,
    InNextRound: handle_next_round,
    InEndGame: handle_end_game,
    InGameSummary: handle_game_summary,
}


async def dispatch_message(
    *,
    app,
    conn_id: Optional[str],
    raw: Dict[str, Any],
) -> DispatchResult:
    """
    Transport layer calls this (websocket and REST alike).
    - Parses + validates raw JSON
    - Routes to the correct domain handler
    - Returns (to_sender, to_room) events as JSON dicts

    NOTE: This file contains NO game rules.
    """
    try:
        msg = parse_incoming(raw)
    except (ValidationError, ValueError) as e:
        err = OutError(code="BAD_MESSAGE", message=str(e)).model_dump()
        return [err], []

    handler = _HANDLERS.get(type(msg))
    if handler is None:
        err = OutError(code="BAD_MESSAGE", message=f"Handler not implemented for type={msg.type}").model_dump()
        return [err], []

    try:
        to_sender, to_room = await handler(app=app, conn_id=conn_id, msg=msg)
    except Exception:
        logger.exception("Handler for %s failed", msg.type)
        err = OutError(code="INTERNAL_ERROR", reason="unexpected", message="Unexpected server error").model_dump()
        return [err], []

    for e in to_sender:
        if isinstance(e, OutError):
            logger.debug("%s rejected: %s/%s %s", msg.type, e.code, e.reason, e.message)
    return _dump(to_sender), _dump(to_room)


def _dump(events: List[OutgoingEvent]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts.
    """
    return [e.model_dump() for e in events]
