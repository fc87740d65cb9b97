"""Per-identity conversation registry (core domain)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

LOGGER = logging.getLogger(__name__)


@dataclass
class Session:
    """A live conversation handle plus the lock that orders its turns."""

    identity: int
    handle: Any
    turn_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionRegistry:
    """Map origin identities to exactly one conversation handle each.

    Handles are created lazily and kept for the life of the process. The whole
    look-up-or-create sequence runs under one lock so two workers can never
    fork a conversation by creating it twice.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, Session] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(
        self,
        identity: int,
        factory: Callable[[], Awaitable[Any]],
    ) -> Session:
        """Return the session for identity, creating it with factory if absent.

        If factory raises, nothing is stored and the error propagates, so the
        next event from the same identity tries again.
        """

        async with self._lock:
            session = self._sessions.get(identity)
            if session is None:
                handle = await factory()
                session = Session(identity=identity, handle=handle)
                self._sessions[identity] = session
                LOGGER.info("Created conversation for %s", identity)
            return session
