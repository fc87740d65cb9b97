"""HTTP reply delivery adapter.

Posts replies to the OneBot HTTP API's send_private_msg endpoint.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request

from core.errors import DeliveryError

LOGGER = logging.getLogger(__name__)


class HttpDeliveryClient:
    """Delivery adapter that sends private messages over HTTP."""

    def __init__(self, base_url: str, token: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout

    def _endpoint(self) -> str:
        return f"{self._base_url}/send_private_msg"

    def _build_request(self, user_id: int, text: str) -> urllib.request.Request:
        payload = {"user_id": user_id, "message": text}
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        request.add_header("Authorization", f"Bearer {self._token}")
        return request

    def _post(self, request: urllib.request.Request) -> None:
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                status = response.status
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise DeliveryError(f"HTTP {e.code}: {body}") from e
        except OSError as e:
            raise DeliveryError(f"request to {self._endpoint()} failed: {e}") from e
        if status != 200:
            raise DeliveryError(f"unexpected status {status}")

    async def deliver(self, user_id: int, text: str) -> None:
        """Send one reply; raise DeliveryError on network errors or non-200."""

        request = self._build_request(user_id, text)
        # urllib blocks, so the call runs in a thread to keep other workers moving.
        await asyncio.to_thread(self._post, request)
        LOGGER.debug("Delivered private message to %s", user_id)
