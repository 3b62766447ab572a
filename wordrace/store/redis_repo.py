from __future__ import annotations

import logging
from typing import List, Optional

from redis.asyncio import Redis

from wordrace.store.models import SessionRecord, SessionStatus
from wordrace.store.redis_keys import RK

logger = logging.getLogger(__name__)

_TERMINAL = ("completed", "abandoned", "cancelled")


class SessionRepo:
    def __init__(self, r: Redis, session_ttl_sec: int = 7 * 24 * 3600):
        self.r = r
        self.session_ttl_sec = session_ttl_sec

    def _dec(self, x):
        """Decode redis bytes -> str; pass through str/None safely."""
        if x is None:
            return None
        if isinstance(x, bytes):
            return x.decode("utf-8")
        return x

    # ----------------------------
    # Writes
    # ----------------------------
    async def upsert_session(self, record: SessionRecord) -> None:
        rk = RK(record.room_id)
        pipe = self.r.pipeline()
        pipe.set(rk.session(), record.model_dump_json(), ex=self.session_ttl_sec)
        pipe.set(RK.code(record.join_code), record.room_id, ex=self.session_ttl_sec)
        pipe.zadd(RK.index(), {record.room_id: record.updated_at})
        await pipe.execute()

    async def set_status(self, room_id: str, status: SessionStatus, ts: int) -> bool:
        record = await self.get_session(room_id)
        if record is None:
            logger.warning("No session record for %s, cannot mark %s", room_id, status)
            return False
        record.status = status
        record.updated_at = ts
        if status in _TERMINAL and record.completed_at is None:
            record.completed_at = ts
        await self.upsert_session(record)
        return True

    # ----------------------------
    # Reads
    # ----------------------------
    async def get_session(self, room_id: str) -> Optional[SessionRecord]:
        raw = await self.r.get(RK(room_id).session())
        if not raw:
            return None
        return SessionRecord.model_validate_json(self._dec(raw))

    async def get_session_by_code(self, join_code: str) -> Optional[SessionRecord]:
        room_id = self._dec(await self.r.get(RK.code(join_code)))
        if not room_id:
            return None
        return await self.get_session(room_id)

    async def recent_room_ids(self, limit: int = 50) -> List[str]:
        raw = await self.r.zrevrange(RK.index(), 0, max(limit - 1, 0))
        return [self._dec(x) for x in raw]
