from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from wordrace.store.models import SessionRecord, SessionStatus
from wordrace.util.timeutil import now_ms

logger = logging.getLogger(__name__)


@dataclass
class PersistJob:
    event: str
    record: Optional[SessionRecord] = None
    room_id: str = ""
    status: Optional[SessionStatus] = None


class PersistenceSink:
    """
    Fire-and-forget writer for session history.
    Handlers enqueue with put_nowait and never await the store.
    """

    def __init__(self, repo, maxsize: int = 1000) -> None:
        self.repo = repo
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._task: Optional[asyncio.Task] = None

    # ----------------------------
    # Producer side
    # ----------------------------
    def persist(self, event: str, record: SessionRecord) -> None:
        self._enqueue(PersistJob(event=event, record=record, room_id=record.room_id))

    def persist_status(self, event: str, room_id: str, status: SessionStatus) -> None:
        self._enqueue(PersistJob(event=event, room_id=room_id, status=status))

    def _enqueue(self, job: PersistJob) -> None:
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            logger.warning("Persistence queue full, dropping %s for room %s", job.event, job.room_id)

    # ----------------------------
    # Worker
    # ----------------------------
    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="persistence-sink")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def drain(self) -> None:
        """Apply every queued job inline (shutdown and tests)."""
        while not self._queue.empty():
            job = self._queue.get_nowait()
            await self._apply(job)
            self._queue.task_done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._apply(job)
            finally:
                self._queue.task_done()

    async def _apply(self, job: PersistJob) -> None:
        try:
            if job.record is not None:
                await self.repo.upsert_session(job.record)
            elif job.status is not None:
                await self.repo.set_status(job.room_id, job.status, now_ms())
        except Exception:
            logger.exception("Failed to persist %s for room %s", job.event, job.room_id)
