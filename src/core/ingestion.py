"""Ingestion loop: socket frames in, admitted events out.

The read path never waits on workers. Frames that fail to decode, events that
are not private, and events that arrive while the queue is full are all
dropped here with a log line.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from core.admission import AdmissionQueue, should_admit
from core.config import IngestionConfig
from core.errors import EventDecodeError, FrameReadError
from core.models import Event
from core.ports import FrameSource

LOGGER = logging.getLogger(__name__)


class IngestionLoop:
    """Read, decode, filter and admit inbound events until stopped."""

    def __init__(
        self,
        source: FrameSource,
        decode: Callable[[str], Event],
        queue: AdmissionQueue,
        config: IngestionConfig,
    ) -> None:
        self._source = source
        self._decode = decode
        self._queue = queue
        self._config = config
        self._stopped = False
        self.admitted = 0
        self.filtered = 0
        self.dropped = 0
        self.malformed = 0

    def stop(self) -> None:
        self._stopped = True

    async def run(self) -> None:
        while not self._stopped:
            try:
                frame = await self._source.recv()
            except FrameReadError as exc:
                LOGGER.warning("Failed to read frame: %s", exc)
                await asyncio.sleep(self._config.retry_delay)
                continue

            try:
                event = self._decode(frame)
            except EventDecodeError as exc:
                self.malformed += 1
                LOGGER.warning("Failed to decode frame: %s", exc)
                continue

            self.ingest(event)

        LOGGER.info(
            "Ingestion stopped: admitted=%s, filtered=%s, dropped=%s, malformed=%s",
            self.admitted,
            self.filtered,
            self.dropped,
            self.malformed,
        )

    def ingest(self, event: Event) -> bool:
        """Filter one decoded event and offer it to the queue without blocking."""

        if not should_admit(event, self._config):
            self.filtered += 1
            return False
        if not self._queue.offer(event):
            self.dropped += 1
            return False
        self.admitted += 1
        return True
