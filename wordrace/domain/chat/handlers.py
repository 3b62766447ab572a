from __future__ import annotations

import logging
import uuid
from typing import Optional

from wordrace.util.timeutil import now_ms
from wordrace.store.models import ChatMessage
from wordrace.domain.common.types import Result
from wordrace.domain.common.validation import clean_username, is_member, not_a_member, room_not_found
from wordrace.transport.protocols import InChatMessage, OutChatMessage, OutChatSent, OutError

logger = logging.getLogger(__name__)


async def handle_chat_message(*, app, conn_id: Optional[str], msg: InChatMessage) -> Result:
    registry = app.state.registry
    settings = app.state.settings

    text = (msg.message or "").strip()
    if not text:
        return [OutError(code="BAD_REQUEST", reason="empty_message", message="Message cannot be empty")], []
    if len(text) > settings.CHAT_MAX_LENGTH:
        return [
            OutError(
                code="BAD_REQUEST",
                reason="message_too_long",
                message=f"Message too long (max {settings.CHAT_MAX_LENGTH} characters)",
            )
        ], []

    if registry.get(msg.room_id) is None:
        return [room_not_found()], []

    async with registry.lock(msg.room_id):
        room = registry.get(msg.room_id)
        if room is None:
            return [room_not_found()], []
        username = clean_username(msg.username)
        if not is_member(room, username):
            return [not_a_member()], []

        ts = now_ms()
        chat = ChatMessage(message_id=uuid.uuid4().hex, username=username, message=text, timestamp=ts)
        room.chat_messages.append(chat)
        # oldest messages fall off first
        if len(room.chat_messages) > settings.CHAT_HISTORY_LIMIT:
            room.chat_messages = room.chat_messages[-settings.CHAT_HISTORY_LIMIT:]
        room.last_activity = ts
        room.players[username].last_activity = ts

        logger.debug("Chat in room %s from %s", room.room_id, username)
        return (
            [OutChatSent(room_id=room.room_id, message_id=chat.message_id)],
            [OutChatMessage(room_id=room.room_id, message=chat.model_dump())],
        )
