"""Core event processing pipeline.

This module is integration-agnostic. It only relies on ports for the backend
and delivery, enabling other transports or models without changes here.

Order per event:
1) Fingerprint and atomic dedup check
2) Input extraction with fallbacks
3) Prompt/input validation
4) Get-or-create the conversation for the origin identity
5) Backend call outside any shared lock
6) Delivery, logged with the fingerprint on failure
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.config import PipelineConfig
from core.dedup import DedupStore, compute_fingerprint
from core.errors import BackendError, DeliveryError, EmptyInputError
from core.extraction import extract_input
from core.models import Event, ProcessOutcome
from core.ports import BackendPort, DeliveryPort
from core.sessions import Session, SessionRegistry

LOGGER = logging.getLogger(__name__)


class EventProcessor:
    """Orchestrates dedup, session affinity, backend exchange and delivery."""

    def __init__(
        self,
        backend: BackendPort,
        delivery: DeliveryPort,
        dedup: DedupStore,
        sessions: SessionRegistry,
        config: PipelineConfig,
    ) -> None:
        self._backend = backend
        self._delivery = delivery
        self._dedup = dedup
        self._sessions = sessions
        self._config = config

    async def handle(self, event: Event) -> ProcessOutcome:
        """Process one admitted event through the core pipeline."""

        fingerprint = compute_fingerprint(event)
        if not self._dedup.check_and_insert(fingerprint):
            LOGGER.debug("Dedup skip for %s", fingerprint)
            return ProcessOutcome.DUPLICATE

        text = extract_input(event)
        if not text:
            LOGGER.info("Empty message from %s, skipping", event.user_id)
            return ProcessOutcome.EMPTY_INPUT

        LOGGER.info("[%s] Received message: %s (fingerprint %s)", event.user_id, text, fingerprint)

        try:
            self._validate(text)
        except EmptyInputError as exc:
            LOGGER.warning("Backend request rejected for %s: %s", event.user_id, exc)
            return ProcessOutcome.EMPTY_INPUT

        try:
            session = await self._sessions.get_or_create(event.user_id, self._new_conversation)
        except BackendError as exc:
            LOGGER.error("Failed to create conversation for %s: %s", event.user_id, exc)
            return ProcessOutcome.BACKEND_FAILED

        # Turn ordering is opt-in; without it two workers may interleave turns
        # of the same conversation.
        if self._config.ordered_turns:
            async with session.turn_lock:
                return await self._reply(event, session, text, fingerprint)
        return await self._reply(event, session, text, fingerprint)

    def _validate(self, text: str) -> None:
        if not self._config.system_prompt.strip() or not text.strip():
            raise EmptyInputError("prompt or input must not be empty")

    async def _new_conversation(self):
        return await self._backend.create_conversation(self._config.system_prompt)

    async def _send(self, session: Session, text: str) -> Optional[str]:
        call = self._backend.send(session.handle, text)
        timeout = self._config.backend_timeout
        if timeout <= 0:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as exc:
            raise BackendError(f"backend did not answer within {timeout}s") from exc

    async def _reply(
        self,
        event: Event,
        session: Session,
        text: str,
        fingerprint: str,
    ) -> ProcessOutcome:
        try:
            reply = await self._send(session, text)
        except BackendError as exc:
            LOGGER.error("Backend request failed for %s: %s", event.user_id, exc)
            return ProcessOutcome.BACKEND_FAILED

        if not reply:
            LOGGER.info("Backend returned an empty reply for %s", event.user_id)
            return ProcessOutcome.NO_REPLY

        # The fingerprint stays recorded even if delivery fails; the event is
        # considered handled and will not be retried.
        try:
            await self._delivery.deliver(event.user_id, reply)
        except DeliveryError as exc:
            LOGGER.error("Delivery failed for %s: %s (fingerprint %s)", event.user_id, exc, fingerprint)
            return ProcessOutcome.DELIVERY_FAILED

        LOGGER.info("[%s] Reply delivered: %s", event.user_id, reply)
        return ProcessOutcome.DELIVERED
