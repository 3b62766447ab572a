from __future__ import annotations

import asyncio
import logging
import random
from typing import Dict, List, Optional, Tuple

from wordrace.store.models import RoomStore

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6
JOIN_CODE_ATTEMPTS = 10


class RoomRegistry:
    """
    In-memory room store for one process.
    - room_id -> RoomStore
    - join_code -> room_id
    - room_id -> asyncio.Lock (single writer per room)
    - conn_id -> (room_id, username) for transport-loss handling
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rooms: Dict[str, RoomStore] = {}
        self._codes: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._conns: Dict[str, Tuple[str, str]] = {}
        self._rng = rng or random.Random()

    # ----------------------------
    # Join codes
    # ----------------------------
    def _draw_code(self) -> str:
        return "".join(self._rng.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))

    def allocate_join_code(self) -> str:
        code = self._draw_code()
        for _ in range(JOIN_CODE_ATTEMPTS - 1):
            if code not in self._codes:
                return code
            code = self._draw_code()
        if code not in self._codes:
            return code

        # keyspace is huge, but a run of collisions still needs an answer
        n = 2
        while f"{code}{n}" in self._codes:
            n += 1
        logger.warning("Join code attempts exhausted, using disambiguated code %s%d", code, n)
        return f"{code}{n}"

    # ----------------------------
    # Rooms
    # ----------------------------
    def add(self, room: RoomStore) -> None:
        self._rooms[room.room_id] = room
        self._codes[room.join_code] = room.room_id

    def get(self, room_id: str) -> Optional[RoomStore]:
        return self._rooms.get(room_id)

    def get_by_code(self, join_code: str) -> Optional[RoomStore]:
        room_id = self._codes.get((join_code or "").strip().upper())
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def remove(self, room_id: str) -> Optional[RoomStore]:
        room = self._rooms.pop(room_id, None)
        if room is None:
            return None
        if self._codes.get(room.join_code) == room_id:
            self._codes.pop(room.join_code, None)
        self._locks.pop(room_id, None)
        for conn_id in [c for c, (rid, _) in self._conns.items() if rid == room_id]:
            self._conns.pop(conn_id, None)
        return room

    def list_rooms(self) -> List[RoomStore]:
        return list(self._rooms.values())

    def lock(self, room_id: str) -> asyncio.Lock:
        return self._locks.setdefault(room_id, asyncio.Lock())

    def inactive_room_ids(self, now: int, threshold_ms: int) -> List[str]:
        return [rid for rid, room in self._rooms.items() if now - room.last_activity > threshold_ms]

    # ----------------------------
    # Connection index
    # ----------------------------
    def bind_conn(self, conn_id: Optional[str], room_id: str, username: str) -> None:
        if conn_id:
            self._conns[conn_id] = (room_id, username)

    def unbind_conn(self, conn_id: Optional[str]) -> Optional[Tuple[str, str]]:
        if not conn_id:
            return None
        return self._conns.pop(conn_id, None)

    def lookup_conn(self, conn_id: Optional[str]) -> Optional[Tuple[str, str]]:
        if not conn_id:
            return None
        return self._conns.get(conn_id)

    def __len__(self) -> int:
        return len(self._rooms)
