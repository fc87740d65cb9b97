"""Gemini conversational backend adapter.

Implements the core BackendPort on top of google-genai's async chats API.
Each conversation handle is a genai AsyncChat, which keeps its own history.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from google.genai import types

from core.errors import BackendError

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"


class GeminiBackend:
    """Backend adapter that talks to Gemini through a shared genai client."""

    def __init__(self, client: Any, model: str = DEFAULT_MODEL) -> None:
        self._client = client
        self._model = model

    async def create_conversation(self, system_prompt: str) -> Any:
        """Open a chat whose system instruction is fixed for its lifetime."""

        config = types.GenerateContentConfig(system_instruction=system_prompt)
        try:
            return self._client.aio.chats.create(model=self._model, config=config)
        except Exception as exc:
            raise BackendError(f"failed to create chat: {exc}") from exc

    async def send(self, conversation: Any, text: str) -> Optional[str]:
        """Send one user turn and return the reply text, or None if empty."""

        try:
            response = await conversation.send_message(text)
        except Exception as exc:
            raise BackendError(f"Gemini request failed: {exc}") from exc
        if response is None:
            LOGGER.info("Gemini returned no response")
            return None
        return response.text
