from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from wordrace.util.timeutil import now_ms
from wordrace.domain.lifecycle.handlers import destroy_room
from wordrace.transport.protocols import OutgoingEvent

logger = logging.getLogger(__name__)


async def evict_inactive_rooms(*, app, now: Optional[int] = None) -> List[OutgoingEvent]:
    """
    Destroy every room idle for longer than ROOM_INACTIVE_SEC.
    Returns the room_deleted events for the caller to broadcast.
    """
    registry = app.state.registry
    threshold_ms = app.state.settings.ROOM_INACTIVE_SEC * 1000
    ts = now if now is not None else now_ms()

    events: List[OutgoingEvent] = []
    for room_id in registry.inactive_room_ids(ts, threshold_ms):
        # removed by an earlier iteration or a concurrent leave
        if registry.get(room_id) is None:
            continue
        async with registry.lock(room_id):
            room = registry.get(room_id)
            # touched while we waited for the lock
            if room is None or ts - room.last_activity <= threshold_ms:
                continue
            logger.info("Evicting room %s, idle for %ds", room_id, (ts - room.last_activity) // 1000)
            events.extend(destroy_room(app=app, room_id=room_id, reason="inactive"))
    return events


async def run_eviction_loop(app) -> None:
    """Background task started from the app lifespan."""
    interval = app.state.settings.CLEANUP_INTERVAL_SEC
    wsman = app.state.wsman
    logger.info("Room eviction every %ds (idle limit %ds)", interval, app.state.settings.ROOM_INACTIVE_SEC)

    while True:
        await asyncio.sleep(interval)
        try:
            events = await evict_inactive_rooms(app=app)
            if events:
                await wsman.publish([e.model_dump() for e in events])
                logger.info("Evicted %d inactive rooms, %d remain", len(events), len(app.state.registry))
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Room eviction sweep failed")
