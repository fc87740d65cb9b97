from __future__ import annotations

import asyncio
import logging

import pytest

from core.admission import AdmissionQueue
from core.models import Event, ProcessOutcome
from core.workers import WorkerPool


class RecordingProcessor:
    def __init__(self, fail_for: set[int] | None = None, delay: float = 0.0) -> None:
        self.fail_for = fail_for or set()
        self.delay = delay
        self.handled: list[int] = []
        self.active = 0
        self.max_active = 0

    async def handle(self, event: Event) -> ProcessOutcome:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if event.user_id in self.fail_for:
                raise RuntimeError("unexpected")
            self.handled.append(event.user_id)
            return ProcessOutcome.DELIVERED
        finally:
            self.active -= 1


def _event(user_id: int) -> Event:
    return Event(self_id=1, user_id=user_id, message_type="private", raw_message=str(user_id))


def test_pool_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        WorkerPool(AdmissionQueue(1), RecordingProcessor(), 0)


def test_pool_drains_queue_before_stopping() -> None:
    processor = RecordingProcessor(delay=0.001)

    async def scenario() -> WorkerPool:
        queue = AdmissionQueue(20)
        pool = WorkerPool(queue, processor, 4)
        pool.start()
        for user_id in range(20):
            queue.offer(_event(user_id))
        await pool.stop(drain=True)
        assert not pool.running
        return pool

    pool = asyncio.run(scenario())

    assert sorted(processor.handled) == list(range(20))
    assert pool.outcomes[ProcessOutcome.DELIVERED] == 20


def test_workers_run_concurrently_up_to_pool_size() -> None:
    processor = RecordingProcessor(delay=0.02)

    async def scenario() -> None:
        queue = AdmissionQueue(10)
        pool = WorkerPool(queue, processor, 3)
        pool.start()
        for user_id in range(10):
            queue.offer(_event(user_id))
        await pool.stop()

    asyncio.run(scenario())

    assert processor.max_active == 3


def test_worker_survives_unexpected_errors(caplog) -> None:
    processor = RecordingProcessor(fail_for={2})

    async def scenario() -> None:
        queue = AdmissionQueue(5)
        pool = WorkerPool(queue, processor, 1)
        pool.start()
        for user_id in (1, 2, 3):
            queue.offer(_event(user_id))
        await pool.stop()

    with caplog.at_level(logging.ERROR, logger="core.workers"):
        asyncio.run(scenario())

    assert processor.handled == [1, 3]
    assert "failed on event from 2" in caplog.text


def test_start_twice_is_rejected() -> None:
    async def scenario() -> None:
        pool = WorkerPool(AdmissionQueue(1), RecordingProcessor(), 1)
        pool.start()
        try:
            with pytest.raises(RuntimeError):
                pool.start()
        finally:
            await pool.stop(drain=False)

    asyncio.run(scenario())
