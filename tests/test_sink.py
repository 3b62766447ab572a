import asyncio

import pytest

from wordrace.store.models import SessionRecord
from wordrace.store.sink import PersistenceSink


class FakeRepo:
    def __init__(self, fail_first=False):
        self.fail_first = fail_first
        self.upserts = []
        self.statuses = []

    async def upsert_session(self, record):
        if self.fail_first:
            self.fail_first = False
            raise ConnectionError("redis down")
        self.upserts.append(record.room_id)

    async def set_status(self, room_id, status, ts):
        self.statuses.append((room_id, status))
        return True


def _record(room_id):
    return SessionRecord(room_id=room_id, join_code="ABC234", host_id="alice", created_at=0, updated_at=0)


@pytest.mark.asyncio
async def test_persist_returns_immediately_and_drains_in_order():
    repo = FakeRepo()
    sink = PersistenceSink(repo)

    sink.persist("room_created", _record("r1"))
    sink.persist_status("room_deleted", "r1", "abandoned")
    assert sink.pending == 2
    assert repo.upserts == []

    await sink.drain()
    assert repo.upserts == ["r1"]
    assert repo.statuses == [("r1", "abandoned")]


@pytest.mark.asyncio
async def test_repo_failure_is_logged_and_swallowed(caplog):
    repo = FakeRepo(fail_first=True)
    sink = PersistenceSink(repo)

    sink.persist("room_created", _record("r1"))
    sink.persist("player_joined", _record("r2"))
    await sink.drain()

    assert repo.upserts == ["r2"]
    assert "Failed to persist room_created for room r1" in caplog.text


@pytest.mark.asyncio
async def test_full_queue_drops_job():
    repo = FakeRepo()
    sink = PersistenceSink(repo, maxsize=1)

    sink.persist("a", _record("r1"))
    sink.persist("b", _record("r2"))

    await sink.drain()
    assert repo.upserts == ["r1"]


@pytest.mark.asyncio
async def test_worker_processes_in_background():
    repo = FakeRepo()
    sink = PersistenceSink(repo)
    sink.start()
    try:
        sink.persist("room_created", _record("r1"))
        for _ in range(50):
            if repo.upserts:
                break
            await asyncio.sleep(0.01)
        assert repo.upserts == ["r1"]
    finally:
        await sink.stop()
