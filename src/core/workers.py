"""Fixed-size worker pool draining the admission queue."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from core.admission import AdmissionQueue
from core.processor import EventProcessor

LOGGER = logging.getLogger(__name__)


class WorkerPool:
    """N symmetric workers, each running one event to completion at a time."""

    def __init__(self, queue: AdmissionQueue, processor: EventProcessor, size: int) -> None:
        if size <= 0:
            raise ValueError("worker pool size must be positive")
        self._queue = queue
        self._processor = processor
        self._size = size
        self._tasks: list[asyncio.Task] = []
        self.outcomes: Counter = Counter()

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Spawn the workers on the running loop. Calling twice is an error."""

        if self._tasks:
            raise RuntimeError("worker pool already started")
        self._tasks = [
            asyncio.create_task(self._work(worker_id), name=f"relay-worker-{worker_id}")
            for worker_id in range(self._size)
        ]
        LOGGER.info("Started %s workers", self._size)

    async def _work(self, worker_id: int) -> None:
        while True:
            event = await self._queue.take()
            try:
                outcome = await self._processor.handle(event)
                self.outcomes[outcome] += 1
            except Exception:
                LOGGER.exception("Worker %s failed on event from %s", worker_id, event.user_id)
            finally:
                self._queue.task_done()

    async def stop(self, drain: bool = True) -> None:
        """Stop all workers, first waiting for queued events when drain is set."""

        if drain:
            await self._queue.join()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        LOGGER.info("Worker pool stopped")
