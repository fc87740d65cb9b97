"""Input text extraction for accepted events."""

from __future__ import annotations

from core.models import Event


def extract_input(event: Event) -> str:
    """Return the text to send to the backend, or "" when there is none.

    Order: raw_message, then the first message segment's text, then the first
    raw element's content. Only the first segment/element is consulted.
    """

    text = event.raw_message
    if not text and event.message:
        text = event.message[0].text
    if not text and event.raw_elements:
        text = event.raw_elements[0].content
    return text
