"""WebSocket frame source adapter.

Wraps a websockets client connection behind the core FrameSource port. A lost
connection surfaces as FrameReadError and is re-established on the next read,
so the ingestion loop's retry delay doubles as the reconnect delay.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlencode

import websockets

from core.errors import FrameReadError

LOGGER = logging.getLogger(__name__)


def build_ws_url(base_url: str, token: str) -> str:
    """Append the access token as a query parameter."""

    if not token:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'access_token': token})}"


class WebSocketFrameSource:
    """FrameSource backed by a long-lived WebSocket client connection."""

    def __init__(self, url: str, token: str) -> None:
        self._url = build_ws_url(url, token)
        self._ws: Optional[websockets.ClientConnection] = None

    async def connect(self) -> None:
        """Open the connection; errors propagate so startup can fail fast."""

        self._ws = await websockets.connect(self._url)
        LOGGER.info("WebSocket connected")

    async def recv(self) -> str:
        if self._ws is None:
            try:
                await self.connect()
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
                raise FrameReadError(f"reconnect failed: {exc}") from exc

        try:
            frame = await self._ws.recv()
        except websockets.ConnectionClosed as exc:
            self._ws = None
            raise FrameReadError(f"connection closed: {exc}") from exc
        if isinstance(frame, bytes):
            return frame.decode("utf-8", errors="replace")
        return frame

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
