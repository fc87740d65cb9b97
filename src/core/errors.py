"""Exceptions raised at the core's port boundaries.

Adapters translate library errors into these so the core never has to know
which transport or SDK produced them.
"""

from __future__ import annotations


class ConfigError(RuntimeError):
    """Configuration or prompt file could not be loaded."""


class FrameReadError(RuntimeError):
    """Reading the next frame from the inbound socket failed."""


class EventDecodeError(ValueError):
    """A frame could not be decoded into an Event."""


class EmptyInputError(ValueError):
    """The system prompt or the extracted input is blank."""


class BackendError(RuntimeError):
    """Creating a conversation or sending a message to the backend failed."""


class DeliveryError(RuntimeError):
    """The outbound reply could not be delivered."""
