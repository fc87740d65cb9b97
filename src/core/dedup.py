"""Deduplication helpers (core domain)."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

from core.config import DedupConfig
from core.models import Event

LOGGER = logging.getLogger(__name__)


def compute_fingerprint(event: Event) -> str:
    """Return the deterministic dedup key for an event.

    The key concatenates self id, origin id, raw text, post type, sub type and
    target id. Two events that agree on all six are treated as the same event.
    """

    return (
        f"{event.self_id}_{event.user_id}_{event.raw_message}_"
        f"{event.post_type}_{event.sub_type}_{event.target_id}"
    )


class DedupStore:
    """Process-wide set of fingerprints with an atomic check-and-insert.

    With ``max_entries`` of 0 the set only grows. A positive cap evicts the
    least recently recorded fingerprint once the cap is reached, so an evicted
    event may be accepted a second time.
    """

    def __init__(self, config: DedupConfig | None = None) -> None:
        self._config = config or DedupConfig()
        self._seen: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    def check_and_insert(self, fingerprint: str) -> bool:
        """Record a fingerprint; return False if it was already present."""

        with self._lock:
            if fingerprint in self._seen:
                return False
            self._seen[fingerprint] = None
            cap = self._config.max_entries
            if cap > 0 and len(self._seen) > cap:
                evicted, _ = self._seen.popitem(last=False)
                LOGGER.debug("Dedup store full, evicted %s", evicted)
            return True
