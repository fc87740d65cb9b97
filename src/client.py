"""Adapter factories for chatrelay.

The app layer builds every external collaborator here, from a loaded Settings
object, so the core only ever sees ports.
"""

from __future__ import annotations

import logging

from google import genai

from adapters.gemini_backend import GeminiBackend
from adapters.http_delivery import HttpDeliveryClient
from adapters.websocket_source import WebSocketFrameSource
from settings import Settings


def build_backend(settings: Settings) -> GeminiBackend:
    """Create the Gemini backend with one client shared by every conversation."""

    # Fail fast on a missing key to avoid a confusing error on the first message.
    if not settings.gemini_api_key:
        raise RuntimeError("Missing gemini apiKey in config.ini or GEMINI_API_KEY")

    logging.getLogger(__name__).info("Initializing Gemini client (model %s)", settings.gemini_model)
    client = genai.Client(api_key=settings.gemini_api_key)
    return GeminiBackend(client, settings.gemini_model)


def build_delivery(settings: Settings) -> HttpDeliveryClient:
    return HttpDeliveryClient(
        base_url=settings.http_url,
        token=settings.http_token,
        timeout=settings.delivery_timeout,
    )


def build_frame_source(settings: Settings) -> WebSocketFrameSource:
    return WebSocketFrameSource(settings.ws_url, settings.ws_token)
