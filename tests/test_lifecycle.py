import pytest

from wordrace.domain.chat.handlers import handle_chat_message
from wordrace.domain.lifecycle.handlers import (
    handle_create_room,
    handle_disconnect,
    handle_join,
    handle_leave,
    handle_rejoin,
    handle_room_state,
)
from wordrace.settings import Settings
from wordrace.store.registry import RoomRegistry


class FakeSink:
    def __init__(self):
        self.records = []
        self.statuses = []

    def persist(self, event, record):
        self.records.append((event, record))

    def persist_status(self, event, room_id, status):
        self.statuses.append((event, room_id, status))


class FakeApp:
    def __init__(self, **settings):
        self.state = type(
            "State",
            (),
            {"registry": RoomRegistry(), "sink": FakeSink(), "settings": Settings(**settings)},
        )()


class Msg:
    def __init__(self, **kw):
        self.avatar = None
        self.__dict__.update(kw)


async def _create(app, username="alice", conn_id="c-alice"):
    to_sender, _ = await handle_create_room(app=app, conn_id=conn_id, msg=Msg(username=username))
    snap = to_sender[0]
    return snap.room_id, snap.room["join_code"]


async def _join(app, code, username, conn_id=None):
    return await handle_join(app=app, conn_id=conn_id or f"c-{username}", msg=Msg(join_code=code, username=username))


@pytest.mark.asyncio
async def test_create_room_makes_caller_host():
    app = FakeApp()
    to_sender, to_room = await handle_create_room(app=app, conn_id="c1", msg=Msg(username="alice"))

    snap = to_sender[0]
    assert snap.type == "room_snapshot"
    assert snap.room["phase"] == "waiting"
    assert snap.room["host_id"] == "alice"
    assert [p["username"] for p in snap.players] == ["alice"]
    assert snap.players[0]["role"] == "host"
    assert "seed=alice" in snap.players[0]["avatar"]
    assert to_room[0].type == "room_created"

    room = app.state.registry.get(snap.room_id)
    assert room.config.rounds_count == 4
    assert room.config.supported_categories == ["name", "place", "animal", "food"]
    assert app.state.sink.records[0][0] == "room_created"
    assert app.state.registry.lookup_conn("c1") == (snap.room_id, "alice")


@pytest.mark.asyncio
async def test_join_adds_player_and_broadcasts():
    app = FakeApp()
    room_id, code = await _create(app)

    to_sender, to_room = await _join(app, code.lower(), "bob")

    assert to_sender[0].type == "room_snapshot"
    assert [p["username"] for p in to_sender[0].players] == ["alice", "bob"]
    assert to_room[0].type == "player_joined"
    assert to_room[0].player["username"] == "bob"
    assert to_room[0].player_count == 2


@pytest.mark.asyncio
async def test_join_unknown_code():
    app = FakeApp()
    to_sender, to_room = await _join(app, "ZZZZZZ", "bob")
    assert to_sender[0].code == "NOT_FOUND"
    assert to_room == []


@pytest.mark.asyncio
async def test_join_duplicate_username_rejected():
    app = FakeApp()
    room_id, code = await _create(app)

    to_sender, _ = await _join(app, code, "alice")

    assert to_sender[0].code == "BAD_REQUEST"
    assert to_sender[0].reason == "username_taken"
    assert len(app.state.registry.get(room_id).players) == 1


@pytest.mark.asyncio
async def test_join_full_room_rejected():
    app = FakeApp(MAX_PLAYERS=2)
    room_id, code = await _create(app)
    await _join(app, code, "bob")

    to_sender, _ = await _join(app, code, "carol")

    assert to_sender[0].reason == "room_full"
    assert list(app.state.registry.get(room_id).players) == ["alice", "bob"]


@pytest.mark.asyncio
async def test_join_after_start_rejected():
    app = FakeApp()
    room_id, code = await _create(app)
    app.state.registry.get(room_id).phase = "playing"

    to_sender, _ = await _join(app, code, "bob")

    assert to_sender[0].reason == "not_waiting"


@pytest.mark.asyncio
async def test_host_leaving_promotes_earliest_remaining_player():
    app = FakeApp()
    room_id, code = await _create(app)
    await _join(app, code, "bob")
    await _join(app, code, "carol")

    to_sender, to_room = await handle_leave(app=app, conn_id="c-alice", msg=Msg(room_id=room_id, username="alice"))

    room = app.state.registry.get(room_id)
    assert to_sender[0].type == "left_room"
    assert to_room[0].type == "player_left"
    assert to_room[0].host_id == "bob"
    assert room.host_id == "bob"
    assert room.players["bob"].role == "host"
    assert app.state.registry.lookup_conn("c-alice") is None


@pytest.mark.asyncio
async def test_last_player_leaving_destroys_room():
    app = FakeApp()
    room_id, code = await _create(app)

    to_sender, to_room = await handle_leave(app=app, conn_id="c-alice", msg=Msg(room_id=room_id, username="alice"))

    assert to_sender[0].type == "left_room"
    assert to_room[0].type == "room_deleted"
    assert app.state.registry.get(room_id) is None
    assert app.state.registry.get_by_code(code) is None
    assert app.state.sink.statuses == [("room_deleted", room_id, "abandoned")]


@pytest.mark.asyncio
async def test_leave_unknown_player():
    app = FakeApp()
    room_id, _ = await _create(app)
    to_sender, _ = await handle_leave(app=app, conn_id=None, msg=Msg(room_id=room_id, username="mallory"))
    assert to_sender[0].code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_disconnect_marks_player_and_rejoin_restores():
    app = FakeApp()
    room_id, code = await _create(app)
    await _join(app, code, "bob")
    room = app.state.registry.get(room_id)
    room.players["bob"].current_score = 42

    _, to_room = await handle_disconnect(app=app, conn_id="c-bob")
    assert to_room[0].type == "player_disconnected"
    assert room.players["bob"].status == "disconnected"

    to_sender, to_room = await handle_rejoin(
        app=app, conn_id="c-bob-2", msg=Msg(join_code=code, username="bob", avatar=None)
    )

    assert to_room[0].type == "player_rejoined"
    snap = to_sender[0]
    bob = next(p for p in snap.players if p["username"] == "bob")
    assert bob["status"] == "active"
    assert bob["current_score"] == 42
    assert room.players["bob"].conn_id == "c-bob-2"
    assert app.state.registry.lookup_conn("c-bob-2") == (room_id, "bob")


@pytest.mark.asyncio
async def test_stale_disconnect_after_rejoin_is_ignored():
    app = FakeApp()
    room_id, code = await _create(app)
    await _join(app, code, "bob")
    await handle_rejoin(app=app, conn_id="c-bob-2", msg=Msg(join_code=code, username="bob"))

    _, to_room = await handle_disconnect(app=app, conn_id="c-bob")

    assert to_room == []
    assert app.state.registry.get(room_id).players["bob"].status == "active"


@pytest.mark.asyncio
async def test_rest_rejoin_keeps_socket_binding():
    app = FakeApp()
    room_id, code = await _create(app)
    await _join(app, code, "bob", conn_id="c-bob")

    to_sender, _ = await handle_rejoin(app=app, conn_id=None, msg=Msg(join_code=code, username="bob"))
    assert to_sender[0].type == "room_snapshot"

    room = app.state.registry.get(room_id)
    assert room.players["bob"].conn_id == "c-bob"
    assert app.state.registry.lookup_conn("c-bob") == (room_id, "bob")

    _, to_room = await handle_disconnect(app=app, conn_id="c-bob")
    assert to_room[0].type == "player_disconnected"
    assert room.players["bob"].status == "disconnected"


@pytest.mark.asyncio
async def test_rejoin_is_not_a_join():
    app = FakeApp()
    room_id, code = await _create(app)

    to_sender, _ = await handle_rejoin(app=app, conn_id="c9", msg=Msg(join_code=code, username="mallory"))

    assert to_sender[0].code == "NOT_FOUND"
    assert "mallory" not in app.state.registry.get(room_id).players


@pytest.mark.asyncio
async def test_room_state_checks_membership():
    app = FakeApp()
    room_id, _ = await _create(app)

    to_sender, _ = await handle_room_state(app=app, conn_id=None, msg=Msg(room_id=room_id, username="mallory"))
    assert to_sender[0].code == "UNAUTHORIZED"

    to_sender, _ = await handle_room_state(app=app, conn_id=None, msg=Msg(room_id=room_id, username="alice"))
    assert to_sender[0].type == "room_snapshot"

    to_sender, _ = await handle_room_state(app=app, conn_id=None, msg=Msg(room_id="nope", username=None))
    assert to_sender[0].code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_chat_keeps_last_fifty_messages():
    app = FakeApp()
    room_id, _ = await _create(app)

    for i in range(1, 56):
        to_sender, to_room = await handle_chat_message(
            app=app, conn_id=None, msg=Msg(room_id=room_id, username="alice", message=f"msg {i}")
        )
        assert to_sender[0].type == "chat_sent"
        assert to_room[0].type == "chat_message"

    chat = app.state.registry.get(room_id).chat_messages
    assert len(chat) == 50
    assert chat[0].message == "msg 6"
    assert chat[-1].message == "msg 55"


@pytest.mark.asyncio
async def test_chat_rejects_bad_messages():
    app = FakeApp()
    room_id, _ = await _create(app)

    to_sender, _ = await handle_chat_message(app=app, conn_id=None, msg=Msg(room_id=room_id, username="alice", message="   "))
    assert to_sender[0].reason == "empty_message"

    to_sender, _ = await handle_chat_message(
        app=app, conn_id=None, msg=Msg(room_id=room_id, username="alice", message="x" * 201)
    )
    assert to_sender[0].reason == "message_too_long"

    to_sender, _ = await handle_chat_message(app=app, conn_id=None, msg=Msg(room_id=room_id, username="mallory", message="hi"))
    assert to_sender[0].code == "UNAUTHORIZED"
    assert app.state.registry.get(room_id).chat_messages == []
