from __future__ import annotations

from pydantic import BaseModel
import os


class Settings(BaseModel):
    APP_NAME: str = "wordrace-server"

    # Redis (session history mirror)
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_TTL_SEC: int = 7 * 24 * 3600
    PERSIST_QUEUE_SIZE: int = 1000

    # Rooms
    MAX_PLAYERS: int = 8
    ROOM_INACTIVE_SEC: int = 1800
    CLEANUP_INTERVAL_SEC: int = 300
    CHAT_HISTORY_LIMIT: int = 50
    CHAT_MAX_LENGTH: int = 200

    # Words
    WORDS_PATH: str = ""  # empty -> bundled word list
    LETTER_CACHE_TTL_SEC: int = 86400
    ORACLE_MIN_WORDS: int = 1

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Dev
    LOG_LEVEL: str = "INFO"

    # CORS / websocket origins (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "wordrace-server"),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        SESSION_TTL_SEC=int(os.getenv("SESSION_TTL_SEC", str(7 * 24 * 3600))),
        PERSIST_QUEUE_SIZE=int(os.getenv("PERSIST_QUEUE_SIZE", "1000")),
        MAX_PLAYERS=int(os.getenv("MAX_PLAYERS", "8")),
        ROOM_INACTIVE_SEC=int(os.getenv("ROOM_INACTIVE_SEC", "1800")),
        CLEANUP_INTERVAL_SEC=int(os.getenv("CLEANUP_INTERVAL_SEC", "300")),
        CHAT_HISTORY_LIMIT=int(os.getenv("CHAT_HISTORY_LIMIT", "50")),
        CHAT_MAX_LENGTH=int(os.getenv("CHAT_MAX_LENGTH", "200")),
        WORDS_PATH=os.getenv("WORDS_PATH", ""),
        LETTER_CACHE_TTL_SEC=int(os.getenv("LETTER_CACHE_TTL_SEC", "86400")),
        ORACLE_MIN_WORDS=int(os.getenv("ORACLE_MIN_WORDS", "1")),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "8000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ),
    )
