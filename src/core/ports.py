"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the inbound socket, the conversational
backend and reply delivery so that the core can be reused with different
transports.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol


class FrameSource(Protocol):
    """Inbound stream of text frames."""

    async def recv(self) -> str:
        """Return the next frame; raise FrameReadError on transport failure."""
        ...


class BackendPort(Protocol):
    """Conversational backend operations required by the core pipeline.

    Conversation handles are opaque to the core; only the adapter that created
    one knows how to use it.
    """

    async def create_conversation(self, system_prompt: str) -> Any:
        ...

    async def send(self, conversation: Any, text: str) -> Optional[str]:
        ...


class DeliveryPort(Protocol):
    """Reply delivery operations required by the core pipeline."""

    async def deliver(self, user_id: int, text: str) -> None:
        ...
