# wordrace/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class Conn:
    conn_id: str
    ws: WebSocket


class WSManager:
    """
    In-memory channel registry.
    - room_id -> conn_id -> websocket
    Transport-only: no domain rules.
    """
    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, Conn]] = {}
        self._lock = asyncio.Lock()

    async def join(self, room_id: str, conn_id: str, ws: WebSocket) -> None:
        async with self._lock:
            self._rooms.setdefault(room_id, {})[conn_id] = Conn(conn_id=conn_id, ws=ws)

    async def leave(self, room_id: str, conn_id: str) -> None:
        async with self._lock:
            room = self._rooms.get(room_id)
            if not room:
                return
            room.pop(conn_id, None)
            if not room:
                self._rooms.pop(room_id, None)

    async def leave_all(self, conn_id: str) -> None:
        async with self._lock:
            for room_id in list(self._rooms):
                room = self._rooms[room_id]
                room.pop(conn_id, None)
                if not room:
                    self._rooms.pop(room_id, None)

    async def drop_room(self, room_id: str) -> None:
        async with self._lock:
            self._rooms.pop(room_id, None)

    async def broadcast(self, room_id: str, event: dict, exclude: Optional[str] = None) -> None:
        # copy conns under lock, send outside lock
        async with self._lock:
            room = self._rooms.get(room_id, {})
            conns = list(room.values())

        for c in conns:
            if exclude and c.conn_id == exclude:
                continue
            try:
                await c.ws.send_json(event)
            except Exception:
                # dead socket; ws.py cleans up on disconnect
                logger.debug("Dropping event %s for dead connection %s", event.get("type"), c.conn_id)

    async def publish(self, events: List[dict]) -> None:
        """Deliver room events in order, each to its own room channel."""
        for e in events:
            room_id = e.get("room_id")
            if not room_id:
                continue
            await self.broadcast(room_id, e)
            if e.get("type") == "room_deleted":
                await self.drop_room(room_id)

    async def close_room(self, room_id: str, code: int = 4000) -> None:
        async with self._lock:
            conns = list(self._rooms.pop(room_id, {}).values())
        for c in conns:
            try:
                await c.ws.close(code=code)
            except Exception:
                logger.debug("Connection %s already closed", c.conn_id)
