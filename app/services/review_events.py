# app/services/review_events.py
from __future__ import annotations

"""
ReelReviews — Review event channel
==================================

A bounded, in-process FIFO carrying review mutations from the request path to
the background `ReviewEventWorker`.

Guarantees
----------
- `publish()` never awaits: a full queue drops the event and returns `False`.
- Single consumer, FIFO: events are handled in the order they were accepted.
- Nothing is persisted; events still queued at shutdown are discarded.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from app.schemas.enums import ReviewEventType

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReviewEvent:
    """Ephemeral notification of a committed review mutation."""

    type: ReviewEventType
    movie_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    review_id: Optional[UUID] = None
    occurred_at: datetime = field(default_factory=_utcnow)


class ReviewEventChannel:
    """Thin wrapper over `asyncio.Queue` with drop-on-full publishing."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._queue: asyncio.Queue[ReviewEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def publish(self, event: ReviewEvent) -> bool:
        """Enqueue without waiting. Returns False when the event was dropped."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug(
                "Review event dropped (queue full) type=%s review_id=%s dropped_total=%d",
                event.type.value, event.review_id, self.dropped,
            )
            return False
        return True

    async def get(self) -> ReviewEvent:
        return await self._queue.get()

    def get_nowait(self) -> ReviewEvent:
        return self._queue.get_nowait()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every accepted event has been handled."""
        await self._queue.join()


__all__ = ["ReviewEvent", "ReviewEventChannel", "DEFAULT_QUEUE_SIZE"]
