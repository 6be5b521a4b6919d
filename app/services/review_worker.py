# app/services/review_worker.py
from __future__ import annotations

"""
ReelReviews — Review event worker
=================================

A single background task draining `ReviewEventChannel`. For every event it
performs two independent side effects:

1. Recompute the movie's `average_rating` (when the event names a movie).
2. Write an audit log entry (when an audit writer is configured).

A failure in either is logged and never prevents the other, nor stops the
loop. No retry, no backoff, no dead-letter.

Lifecycle
---------
    stop = asyncio.Event()
    worker = ReviewEventWorker(channel, movies, audit)
    worker.start(stop)        # spawns the task
    ...
    await worker.stop()       # sets `stop`, awaits the task
"""

import asyncio
import logging
from typing import Optional

from app.repositories.audit import AuditWriter
from app.repositories.movie import MovieRater
from app.schemas.audit import AuditLogEntry
from app.services.review_events import ReviewEvent, ReviewEventChannel

logger = logging.getLogger(__name__)


class ReviewEventWorker:
    def __init__(
        self,
        channel: ReviewEventChannel,
        movies: MovieRater,
        audit: Optional[AuditWriter] = None,
    ) -> None:
        self.channel = channel
        self.movies = movies
        self.audit = audit
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ─────────────────────────────────────────────────────────────
    # 🔁 Lifecycle
    # ─────────────────────────────────────────────────────────────
    def start(self, stop_event: asyncio.Event) -> asyncio.Task:
        """Spawn the consumer task. Calling it while running returns the same task."""
        if self.running:
            return self._task  # type: ignore[return-value]
        self._stop_event = stop_event
        self._task = asyncio.create_task(self.run(stop_event), name="review-event-worker")
        logger.info("Review event worker started (queue size=%d)", self.channel.maxsize)
        return self._task

    async def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to exit and wait for it; cancel if it overruns `timeout`."""
        if self._task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Review event worker did not stop within %.1fs; cancelling", timeout)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info("Review event worker stopped (dropped events=%d)", self.channel.dropped)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Wait for the next event or the stop signal, whichever comes first."""
        stop_waiter = asyncio.ensure_future(stop_event.wait())
        try:
            while not stop_event.is_set():
                get_waiter = asyncio.ensure_future(self.channel.get())
                try:
                    await asyncio.wait({get_waiter, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
                finally:
                    got_event = get_waiter.done() and not get_waiter.cancelled()
                    if not get_waiter.done():
                        get_waiter.cancel()
                if not got_event:
                    try:
                        await get_waiter
                    except asyncio.CancelledError:
                        pass
                    break
                # An event already taken off the queue is handled even if stop fired too.
                await self.handle(get_waiter.result())
                self.channel.task_done()
        finally:
            if not stop_waiter.done():
                stop_waiter.cancel()

    # ─────────────────────────────────────────────────────────────
    # 🧾 Side effects
    # ─────────────────────────────────────────────────────────────
    async def handle(self, event: ReviewEvent) -> None:
        if event.movie_id is not None:
            try:
                await self.movies.update_average_rating(event.movie_id)
            except Exception:
                logger.exception("Average rating recompute failed for movie %s", event.movie_id)

        if self.audit is None:
            return

        entry = AuditLogEntry(
            user_id=event.user_id,
            movie_id=event.movie_id,
            review_id=event.review_id,
            event=event.type.value,
            details="",
        )
        try:
            await self.audit.insert(entry)
        except Exception:
            logger.exception("Audit insert failed for %s review_id=%s", event.type.value, event.review_id)


__all__ = ["ReviewEventWorker"]
