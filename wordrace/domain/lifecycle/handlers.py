from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from wordrace.util.timeutil import now_ms
from wordrace.store.models import PlayerStore, RoomConfig, RoomStore
from wordrace.domain.common.records import build_session_record
from wordrace.domain.common.snapshots import build_snapshot, player_view
from wordrace.domain.common.types import DEFAULT_AVATAR, Result
from wordrace.domain.common.validation import (
    clean_username,
    is_member,
    not_a_member,
    room_not_found,
)
from wordrace.domain.game.round_flow import all_submitted, end_round
from wordrace.transport.protocols import (
    OutgoingEvent,
    OutError,
    OutLeftRoom,
    OutPlayerDisconnected,
    OutPlayerJoined,
    OutPlayerLeft,
    OutPlayerRejoined,
    OutRoomCreated,
    OutRoomDeleted,
    InCreateRoom,
    InJoin,
    InRejoin,
    InLeave,
    InRoomState,
)

logger = logging.getLogger(__name__)


def _avatar(avatar: Optional[str], username: str) -> str:
    avatar = (avatar or "").strip()
    return avatar or DEFAULT_AVATAR.format(username=username)


def destroy_room(*, app, room_id: str, reason: str) -> List[OutgoingEvent]:
    """
    Drop a room from the registry (id, code, lock, connection bindings)
    and mark the stored session abandoned.
    """
    room = app.state.registry.remove(room_id)
    if room is None:
        return []
    logger.info("Room %s (%s) destroyed: %s", room_id, room.join_code, reason)
    app.state.sink.persist_status("room_deleted", room_id, "abandoned")
    return [OutRoomDeleted(room_id=room_id, reason=reason)]


# -------------------------
# Handlers
# -------------------------

async def handle_create_room(*, app, conn_id: Optional[str], msg: InCreateRoom) -> Result:
    """
    Caller becomes the only player and the host.
    The creator is told about the room through its snapshot; room_created goes
    to the (one-socket) room channel.
    """
    registry = app.state.registry
    settings = app.state.settings
    ts = now_ms()

    username = clean_username(msg.username)
    if not username:
        return [OutError(code="BAD_REQUEST", reason="invalid_username", message="Username is required")], []

    room = RoomStore(
        room_id=uuid.uuid4().hex,
        join_code=registry.allocate_join_code(),
        host_id=username,
        max_players=settings.MAX_PLAYERS,
        config=RoomConfig(),
        created_at=ts,
        last_activity=ts,
    )
    room.players[username] = PlayerStore(
        username=username,
        avatar=_avatar(msg.avatar, username),
        role="host",
        joined_at=ts,
        last_activity=ts,
        conn_id=conn_id,
    )
    registry.add(room)
    registry.bind_conn(conn_id, room.room_id, username)

    logger.info("Room %s created with code %s by %s", room.room_id, room.join_code, username)
    app.state.sink.persist("room_created", build_session_record(room))

    to_sender = [build_snapshot(room, viewer=username)]
    to_room = [OutRoomCreated(room_id=room.room_id, join_code=room.join_code, host_id=username)]
    return to_sender, to_room


async def handle_join(*, app, conn_id: Optional[str], msg: InJoin) -> Result:
    registry = app.state.registry

    username = clean_username(msg.username)
    if not username:
        return [OutError(code="BAD_REQUEST", reason="invalid_username", message="Username is required")], []

    room = registry.get_by_code(msg.join_code)
    if room is None:
        return [OutError(code="NOT_FOUND", reason="room_not_found", message="No room with that code")], []

    async with registry.lock(room.room_id):
        room = registry.get(room.room_id)
        if room is None:
            return [room_not_found()], []

        if room.phase != "waiting":
            return [OutError(code="BAD_REQUEST", reason="not_waiting", message="Game already in progress")], []
        if username in room.players:
            return [OutError(code="BAD_REQUEST", reason="username_taken", message="Username already taken in this room")], []
        if len(room.players) >= room.max_players:
            return [OutError(code="BAD_REQUEST", reason="room_full", message="Room is full")], []

        ts = now_ms()
        player = PlayerStore(
            username=username,
            avatar=_avatar(msg.avatar, username),
            role="player",
            joined_at=ts,
            last_activity=ts,
            conn_id=conn_id,
        )
        room.players[username] = player
        room.last_activity = ts
        registry.bind_conn(conn_id, room.room_id, username)

        logger.info("%s joined room %s (%d/%d)", username, room.room_id, len(room.players), room.max_players)
        app.state.sink.persist("player_joined", build_session_record(room))

        to_sender = [build_snapshot(room, viewer=username)]
        to_room = [OutPlayerJoined(room_id=room.room_id, player=player_view(player), player_count=len(room.players))]
        return to_sender, to_room


async def handle_rejoin(*, app, conn_id: Optional[str], msg: InRejoin) -> Result:
    """
    Rejoin is only for usernames already in the room; it never adds a player.
    Returns a full snapshot so the client can resync.
    """
    registry = app.state.registry
    username = clean_username(msg.username)

    room = registry.get_by_code(msg.join_code)
    if room is None:
        return [OutError(code="NOT_FOUND", reason="room_not_found", message="No room with that code")], []

    async with registry.lock(room.room_id):
        room = registry.get(room.room_id)
        if room is None:
            return [room_not_found()], []

        player = room.players.get(username)
        if player is None:
            return [OutError(code="NOT_FOUND", reason="not_a_player", message="You are not a player in this room")], []

        ts = now_ms()
        # REST rejoins carry no socket; keep any live binding
        if conn_id is not None:
            if player.conn_id and player.conn_id != conn_id:
                registry.unbind_conn(player.conn_id)
            player.conn_id = conn_id
            registry.bind_conn(conn_id, room.room_id, username)
        player.status = "active"
        player.last_activity = ts
        if msg.avatar:
            player.avatar = _avatar(msg.avatar, username)
        room.last_activity = ts

        logger.info("%s rejoined room %s in phase %s", username, room.room_id, room.phase)
        return [build_snapshot(room, viewer=username)], [OutPlayerRejoined(room_id=room.room_id, username=username)]


async def handle_leave(*, app, conn_id: Optional[str], msg: InLeave) -> Result:
    registry = app.state.registry

    if registry.get(msg.room_id) is None:
        return [room_not_found()], []

    async with registry.lock(msg.room_id):
        room = registry.get(msg.room_id)
        if room is None:
            return [room_not_found()], []

        username = clean_username(msg.username)
        player = room.players.pop(username, None)
        if player is None:
            return [OutError(code="NOT_FOUND", reason="not_a_player", message="Player not in room")], []

        ts = now_ms()
        registry.unbind_conn(player.conn_id)
        rnd = room.active_round()
        if rnd is not None:
            rnd.submissions.pop(username, None)

        to_sender: List[OutgoingEvent] = [OutLeftRoom(room_id=room.room_id, username=username)]

        if not room.players:
            return to_sender, destroy_room(app=app, room_id=room.room_id, reason="empty")

        if room.host_id == username:
            new_host = next(iter(room.players.values()))
            new_host.role = "host"
            room.host_id = new_host.username
            logger.info("Host %s left room %s, %s is now host", username, room.room_id, new_host.username)

        room.last_activity = ts
        logger.info("%s left room %s (%d remaining)", username, room.room_id, len(room.players))

        to_room: List[OutgoingEvent] = [
            OutPlayerLeft(room_id=room.room_id, username=username, host_id=room.host_id, player_count=len(room.players))
        ]
        # the leaver may have been the last one holding the round open
        if room.phase == "playing" and all_submitted(room):
            to_room.extend(end_round(app=app, room=room, ts=ts))
        return to_sender, to_room


async def handle_disconnect(*, app, conn_id: Optional[str]) -> Result:
    """
    Transport loss. The player stays in the room (and still counts towards
    all-submitted) until they rejoin or leave.
    """
    registry = app.state.registry
    bound = registry.unbind_conn(conn_id)
    if bound is None:
        return [], []
    room_id, username = bound

    if registry.get(room_id) is None:
        return [], []

    async with registry.lock(room_id):
        room = registry.get(room_id)
        if room is None:
            return [], []
        player = room.players.get(username)
        # a newer connection may already own this player
        if player is None or player.conn_id != conn_id:
            return [], []

        player.status = "disconnected"
        player.conn_id = None
        logger.info("%s disconnected from room %s", username, room_id)
        return [], [OutPlayerDisconnected(room_id=room_id, username=username)]


async def handle_room_state(*, app, conn_id: Optional[str], msg: InRoomState) -> Result:
    room = app.state.registry.get(msg.room_id)
    if room is None:
        return [room_not_found()], []
    if msg.username is not None and not is_member(room, clean_username(msg.username)):
        return [not_a_member()], []
    return [build_snapshot(room, viewer=msg.username)], []
