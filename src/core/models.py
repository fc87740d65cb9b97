"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Sender:
    """Sender block attached to an inbound event."""

    user_id: int = 0
    nickname: str = ""
    card: str = ""


@dataclass(frozen=True)
class MessageSegment:
    """One structured message segment; only text is kept."""

    type: str = ""
    text: str = ""


@dataclass(frozen=True)
class RawElement:
    """One raw content element carried next to the structured message."""

    content: str = ""


@dataclass(frozen=True)
class Event:
    """Inbound chat event as seen by the dispatch pipeline."""

    self_id: int
    user_id: int
    message_type: str
    raw_message: str = ""
    post_type: str = ""
    sub_type: str = ""
    target_id: int = 0
    sender: Sender = field(default_factory=Sender)
    message: tuple[MessageSegment, ...] = ()
    raw_elements: tuple[RawElement, ...] = ()
    group_id: Optional[int] = None


class ProcessOutcome(str, Enum):
    """Terminal state of one event after the worker pipeline ran."""

    DUPLICATE = "duplicate"
    EMPTY_INPUT = "empty_input"
    BACKEND_FAILED = "backend_failed"
    NO_REPLY = "no_reply"
    DELIVERY_FAILED = "delivery_failed"
    DELIVERED = "delivered"
