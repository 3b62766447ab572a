# wordrace/main.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError

from wordrace import __version__
from wordrace.settings import get_settings
from wordrace.util.logs import configure_logging
from wordrace.domain.maintenance.eviction import run_eviction_loop
from wordrace.store.redis_repo import SessionRepo
from wordrace.store.registry import RoomRegistry
from wordrace.store.sink import PersistenceSink
from wordrace.transport.admin import router as admin_router
from wordrace.transport.http import router as http_router
from wordrace.transport.ws import router as ws_router
from wordrace.transport.ws_manager import WSManager
from wordrace.words import AnswerValidator, LetterCategoryOracle, WordBank

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    logger.info("%s %s starting", settings.APP_NAME, __version__)

    r = Redis.from_url(settings.REDIS_URL, decode_responses=False)
    try:
        await r.ping()
    except (RedisError, OSError) as e:
        # history writes will fail and be logged; live rooms keep working
        logger.warning("Redis at %s unreachable (%s); session history disabled until it comes back", settings.REDIS_URL, e)

    app.state.redis = r
    app.state.repo = SessionRepo(r, session_ttl_sec=settings.SESSION_TTL_SEC)
    app.state.sink = PersistenceSink(app.state.repo, maxsize=settings.PERSIST_QUEUE_SIZE)
    app.state.sink.start()

    bank = WordBank.from_json(settings.WORDS_PATH or None)
    app.state.bank = bank
    app.state.oracle = LetterCategoryOracle(
        bank,
        min_words=settings.ORACLE_MIN_WORDS,
        ttl_sec=settings.LETTER_CACHE_TTL_SEC,
    )
    app.state.validator = AnswerValidator(bank)
    app.state.registry = RoomRegistry()
    app.state.wsman = WSManager()

    eviction_task = asyncio.create_task(run_eviction_loop(app), name="room-eviction")

    yield

    logger.info("%s shutting down", settings.APP_NAME)
    eviction_task.cancel()
    try:
        await eviction_task
    except asyncio.CancelledError:
        logger.info("Room eviction stopped")

    await app.state.sink.stop()
    await app.state.sink.drain()
    await r.aclose()
    logger.info("Redis connection closed")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, version=__version__, lifespan=lifespan)
    app.state.settings = settings

    allowed_origins = [o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        registry = getattr(app.state, "registry", None)
        r = getattr(app.state, "redis", None)
        redis_ok = False
        if r is not None:
            try:
                redis_ok = bool(await r.ping())
            except (RedisError, OSError):
                redis_ok = False
        return {"ok": True, "rooms": len(registry) if registry is not None else 0, "redis": redis_ok}

    app.include_router(ws_router)
    app.include_router(http_router)
    app.include_router(admin_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("wordrace.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
