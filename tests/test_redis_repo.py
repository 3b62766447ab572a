import pytest

from wordrace.store.models import SessionRecord
from wordrace.store.redis_repo import SessionRepo


class FakePipeline:
    def __init__(self, r):
        self.r = r
        self.ops = []

    def set(self, *args, **kwargs):
        self.ops.append(("set", args, kwargs))
        return self

    def zadd(self, *args, **kwargs):
        self.ops.append(("zadd", args, kwargs))
        return self

    async def execute(self):
        for name, args, kwargs in self.ops:
            await getattr(self.r, name)(*args, **kwargs)
        return [True] * len(self.ops)


class FakeRedis:
    """Just enough of redis.asyncio for SessionRepo; values stored as bytes."""

    def __init__(self):
        self.kv = {}
        self.ttl = {}
        self.zsets = {}

    def pipeline(self):
        return FakePipeline(self)

    async def set(self, key, value, ex=None):
        self.kv[key] = value.encode("utf-8") if isinstance(value, str) else value
        self.ttl[key] = ex

    async def get(self, key):
        return self.kv.get(key)

    async def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)

    async def zrevrange(self, key, start, end):
        items = sorted(self.zsets.get(key, {}).items(), key=lambda kv: -kv[1])
        return [k.encode("utf-8") for k, _ in items[start : end + 1]]


def _record(room_id="r1", code="ABC234", updated_at=10):
    return SessionRecord(room_id=room_id, join_code=code, host_id="alice", created_at=1, updated_at=updated_at)


@pytest.mark.asyncio
async def test_upsert_and_read_back():
    r = FakeRedis()
    repo = SessionRepo(r, session_ttl_sec=99)

    await repo.upsert_session(_record())

    assert r.ttl["session:r1"] == 99
    assert r.ttl["session:code:ABC234"] == 99
    got = await repo.get_session("r1")
    assert got.host_id == "alice"
    assert (await repo.get_session_by_code("abc234")).room_id == "r1"
    assert await repo.get_session("missing") is None


@pytest.mark.asyncio
async def test_set_status_marks_completion_once():
    repo = SessionRepo(FakeRedis())
    await repo.upsert_session(_record())

    assert await repo.set_status("r1", "abandoned", 500) is True
    assert await repo.set_status("r1", "cancelled", 900) is True

    got = await repo.get_session("r1")
    assert got.status == "cancelled"
    assert got.completed_at == 500
    assert got.updated_at == 900
    assert await repo.set_status("missing", "abandoned", 1) is False


@pytest.mark.asyncio
async def test_recent_room_ids():
    repo = SessionRepo(FakeRedis())
    await repo.upsert_session(_record("r1", "AAAAAA", updated_at=1))
    await repo.upsert_session(_record("r2", "BBBBBB", updated_at=2))
    assert await repo.recent_room_ids() == ["r2", "r1"]
