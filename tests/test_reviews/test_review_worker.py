# tests/test_reviews/test_review_worker.py
from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from app.repositories.audit import AuditWriter
from app.repositories.movie import MovieRater
from app.schemas.enums import ReviewEventType
from app.services.review_events import ReviewEvent, ReviewEventChannel
from app.services.review_worker import ReviewEventWorker


# ─────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────

class RecordingRater(MovieRater):
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    async def update_average_rating(self, movie_id):
        self.calls.append(movie_id)
        if self.fail:
            raise RuntimeError("recompute failed")


class RecordingAudit(AuditWriter):
    def __init__(self, fail: bool = False):
        self.entries = []
        self.fail = fail

    async def insert(self, entry):
        self.entries.append(entry)
        if self.fail:
            raise RuntimeError("audit failed")
        return entry


def event(kind: ReviewEventType = ReviewEventType.CREATED, **ids) -> ReviewEvent:
    ids.setdefault("movie_id", uuid4())
    ids.setdefault("user_id", uuid4())
    ids.setdefault("review_id", uuid4())
    return ReviewEvent(type=kind, **ids)


async def run_until_drained(worker: ReviewEventWorker, channel: ReviewEventChannel) -> None:
    stop = asyncio.Event()
    worker.start(stop)
    await asyncio.wait_for(channel.join(), timeout=2)
    await worker.stop()


# ─────────────────────────────────────────────────────────────
# Side effects
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_each_event_triggers_one_recompute_and_one_audit_entry():
    channel = ReviewEventChannel(10)
    rater, audit = RecordingRater(), RecordingAudit()
    first = event(ReviewEventType.CREATED)
    second = event(ReviewEventType.DELETED)
    channel.publish(first)
    channel.publish(second)

    await run_until_drained(ReviewEventWorker(channel, rater, audit), channel)

    assert rater.calls == [first.movie_id, second.movie_id]
    assert [e.event for e in audit.entries] == ["review_created", "review_deleted"]
    assert audit.entries[1].review_id == second.review_id
    assert audit.entries[1].user_id == second.user_id
    assert all(e.details == "" for e in audit.entries)


@pytest.mark.anyio
async def test_failed_recompute_still_writes_audit():
    channel = ReviewEventChannel(10)
    rater, audit = RecordingRater(fail=True), RecordingAudit()
    channel.publish(event())

    await run_until_drained(ReviewEventWorker(channel, rater, audit), channel)

    assert len(rater.calls) == 1
    assert len(audit.entries) == 1


@pytest.mark.anyio
async def test_failed_audit_does_not_stop_the_loop():
    channel = ReviewEventChannel(10)
    rater, audit = RecordingRater(), RecordingAudit(fail=True)
    for _ in range(3):
        channel.publish(event())

    await run_until_drained(ReviewEventWorker(channel, rater, audit), channel)

    assert len(rater.calls) == 3
    assert len(audit.entries) == 3


@pytest.mark.anyio
async def test_event_without_movie_skips_recompute():
    channel = ReviewEventChannel(10)
    rater, audit = RecordingRater(), RecordingAudit()
    channel.publish(event(movie_id=None))

    await run_until_drained(ReviewEventWorker(channel, rater, audit), channel)

    assert rater.calls == []
    assert audit.entries[0].movie_id is None


@pytest.mark.anyio
async def test_worker_without_audit_writer_only_recomputes():
    channel = ReviewEventChannel(10)
    rater = RecordingRater()
    channel.publish(event())

    await run_until_drained(ReviewEventWorker(channel, rater), channel)

    assert len(rater.calls) == 1


# ─────────────────────────────────────────────────────────────
# Lifecycle & channel
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_stop_signal_ends_idle_worker():
    channel = ReviewEventChannel(10)
    worker = ReviewEventWorker(channel, RecordingRater(), RecordingAudit())
    stop = asyncio.Event()
    task = worker.start(stop)
    await asyncio.sleep(0)
    assert worker.running

    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert task.done() and not task.cancelled()
    assert not worker.running


@pytest.mark.anyio
async def test_stop_waits_for_worker_and_is_safe_to_repeat():
    channel = ReviewEventChannel(10)
    worker = ReviewEventWorker(channel, RecordingRater(), RecordingAudit())
    worker.start(asyncio.Event())

    await worker.stop(timeout=1)
    await worker.stop(timeout=1)

    assert not worker.running


def test_publish_on_full_channel_drops_without_blocking():
    channel = ReviewEventChannel(2)

    results = [channel.publish(event()) for _ in range(4)]

    assert results == [True, True, False, False]
    assert channel.qsize() == 2
    assert channel.dropped == 2


def test_channel_requires_positive_capacity():
    with pytest.raises(ValueError):
        ReviewEventChannel(0)


@pytest.mark.anyio
async def test_fifo_order_is_preserved():
    channel = ReviewEventChannel(10)
    rater = RecordingRater()
    movie_ids = [uuid4() for _ in range(5)]
    for movie_id in movie_ids:
        channel.publish(event(movie_id=movie_id))

    await run_until_drained(ReviewEventWorker(channel, rater), channel)

    assert rater.calls == movie_ids
