"""OneBot frame-to-core event mapping adapter.

This keeps the wire JSON shape out of the core pipeline. Missing or null
fields decode to zero values; fields of the wrong type make the whole frame
malformed.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from core.errors import EventDecodeError
from core.models import Event, MessageSegment, RawElement, Sender


def _as_int(payload: dict, key: str) -> int:
    value = payload.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a valid id.
    if isinstance(value, bool) or not isinstance(value, int):
        raise EventDecodeError(f"{key} must be an integer, got {type(value).__name__}")
    return value


def _as_optional_int(payload: dict, key: str) -> Optional[int]:
    if payload.get(key) is None:
        return None
    return _as_int(payload, key)


def _as_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise EventDecodeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _as_dict(payload: dict, key: str) -> dict:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise EventDecodeError(f"{key} must be an object")
    return value


def _as_list(payload: dict, key: str) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise EventDecodeError(f"{key} must be an array")
    return value


def _segments(payload: dict) -> tuple[MessageSegment, ...]:
    segments = []
    for item in _as_list(payload, "message"):
        if not isinstance(item, dict):
            raise EventDecodeError("message segments must be objects")
        data = _as_dict(item, "data")
        segments.append(MessageSegment(type=_as_str(item, "type"), text=_as_str(data, "text")))
    return tuple(segments)


def _raw_elements(payload: dict) -> tuple[RawElement, ...]:
    raw = _as_dict(payload, "raw")
    elements = []
    for item in _as_list(raw, "elements"):
        if not isinstance(item, dict):
            raise EventDecodeError("raw elements must be objects")
        text_element = _as_dict(item, "textElement")
        elements.append(RawElement(content=_as_str(text_element, "content")))
    return tuple(elements)


def event_from_payload(payload: Any) -> Event:
    """Build a core Event from an already-parsed JSON object."""

    if not isinstance(payload, dict):
        raise EventDecodeError("frame must be a JSON object")

    sender = _as_dict(payload, "sender")
    return Event(
        self_id=_as_int(payload, "self_id"),
        user_id=_as_int(payload, "user_id"),
        message_type=_as_str(payload, "message_type"),
        raw_message=_as_str(payload, "raw_message"),
        post_type=_as_str(payload, "post_type"),
        sub_type=_as_str(payload, "sub_type"),
        target_id=_as_int(payload, "target_id"),
        sender=Sender(
            user_id=_as_int(sender, "user_id"),
            nickname=_as_str(sender, "nickname"),
            card=_as_str(sender, "card"),
        ),
        message=_segments(payload),
        raw_elements=_raw_elements(payload),
        group_id=_as_optional_int(payload, "group_id"),
    )


def decode_event(frame: str | bytes) -> Event:
    """Decode one text frame into a core Event."""

    try:
        payload = json.loads(frame)
    except ValueError as exc:
        raise EventDecodeError(f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        # Deeply nested arrays/objects exhaust the decoder's stack.
        raise EventDecodeError("frame nested too deeply") from exc
    return event_from_payload(payload)
