"""Admission filtering and the bounded hand-off queue."""

from __future__ import annotations

import asyncio
import logging

from core.config import IngestionConfig
from core.models import Event

LOGGER = logging.getLogger(__name__)


def should_admit(event: Event, config: IngestionConfig) -> bool:
    """Return True for private events with no group context."""

    if event.group_id is not None:
        return False
    return event.message_type == config.private_message_type


class AdmissionQueue:
    """Fixed-capacity FIFO between the ingestion loop and the worker pool.

    Producers never wait: offering to a full queue drops the event. Consumers
    block in take() until an event is available.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("queue capacity must be positive")
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=capacity)

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    def offer(self, event: Event) -> bool:
        """Enqueue without blocking; return False if the event was dropped."""

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            LOGGER.warning("Admission queue full, dropping event from %s", event.user_id)
            return False
        return True

    async def take(self) -> Event:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()
