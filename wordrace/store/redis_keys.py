from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RK:
    """
    Redis key builder for session-history keys.
    Live room state never touches Redis; only the post-game mirror does.
    """
    room_id: str

    def session(self) -> str:
        return f"session:{self.room_id}"  # STRING (SessionRecord JSON)

    @staticmethod
    def code(join_code: str) -> str:
        return f"session:code:{join_code.upper()}"  # STRING room_id

    @staticmethod
    def index() -> str:
        return "sessions"  # ZSET room_id -> updated_at
