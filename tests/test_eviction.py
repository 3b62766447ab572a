import pytest

from wordrace.domain.lifecycle.handlers import handle_create_room
from wordrace.domain.maintenance.eviction import evict_inactive_rooms
from wordrace.settings import Settings
from wordrace.store.registry import RoomRegistry


class FakeSink:
    def __init__(self):
        self.statuses = []

    def persist(self, event, record):
        pass

    def persist_status(self, event, room_id, status):
        self.statuses.append((event, room_id, status))


class FakeApp:
    def __init__(self):
        self.state = type(
            "State",
            (),
            {"registry": RoomRegistry(), "sink": FakeSink(), "settings": Settings(ROOM_INACTIVE_SEC=60)},
        )()


class Msg:
    def __init__(self, **kw):
        self.avatar = None
        self.__dict__.update(kw)


async def _create(app, username, last_activity):
    to_sender, _ = await handle_create_room(app=app, conn_id=f"c-{username}", msg=Msg(username=username))
    room = app.state.registry.get(to_sender[0].room_id)
    room.last_activity = last_activity
    return room


@pytest.mark.asyncio
async def test_idle_rooms_are_evicted():
    app = FakeApp()
    stale = await _create(app, "alice", last_activity=1_000)
    fresh = await _create(app, "bob", last_activity=100_000)

    events = await evict_inactive_rooms(app=app, now=120_000)

    assert [(e.type, e.room_id, e.reason) for e in events] == [("room_deleted", stale.room_id, "inactive")]
    registry = app.state.registry
    assert registry.get(stale.room_id) is None
    assert registry.get_by_code(stale.join_code) is None
    assert registry.lookup_conn("c-alice") is None
    assert registry.get(fresh.room_id) is fresh
    assert app.state.sink.statuses == [("room_deleted", stale.room_id, "abandoned")]


@pytest.mark.asyncio
async def test_nothing_to_evict():
    app = FakeApp()
    await _create(app, "alice", last_activity=100_000)
    assert await evict_inactive_rooms(app=app, now=120_000) == []


class RacingRegistry(RoomRegistry):
    """Reports an idle id that is already gone by the time the sweep gets to it."""

    def __init__(self):
        super().__init__()
        self.locked = []

    def inactive_room_ids(self, now, threshold_ms):
        return ["gone", *super().inactive_room_ids(now, threshold_ms)]

    def lock(self, room_id):
        self.locked.append(room_id)
        return super().lock(room_id)


@pytest.mark.asyncio
async def test_sweep_skips_rooms_removed_before_locking():
    app = FakeApp()
    app.state.registry = RacingRegistry()
    stale = await _create(app, "alice", last_activity=1_000)
    app.state.registry.locked.clear()

    events = await evict_inactive_rooms(app=app, now=120_000)

    assert [e.room_id for e in events] == [stale.room_id]
    assert app.state.registry.locked == [stale.room_id]
