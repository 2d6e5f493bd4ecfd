"""Gemini chat conversations for video descriptions.

Each conversation is a `google-genai` async chat created with the fixed
system instruction. The first turn carries the video with the user
instruction; follow-up turns are plain text and reuse the same chat, so the
model keeps the video in context.

Videos up to the inline request limit are sent as inline bytes. Larger ones
go through the Files API first and are referenced by URI once Gemini has
finished processing them (uploaded files expire on Gemini's side after 48h).
"""

from __future__ import annotations

import asyncio
import io
import logging
import time
from typing import Any, Dict
from uuid import uuid4

from google import genai
from google.genai import types

from services.conversation import TurnContent, VideoPrompt
from services.errors import RemoteGenerationError

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-pro"
INLINE_LIMIT_BYTES = 20 * 1000 * 1000
FILE_POLL_SECONDS = 2.0


def _file_state(uploaded: Any) -> str:
    state = getattr(uploaded, "state", None)
    return str(getattr(state, "name", state) or "").upper()


class GeminiConversationBackend:
    """Keep open Gemini chats keyed by opaque handles."""

    def __init__(
        self,
        client: genai.Client,
        model: str = DEFAULT_MODEL,
        *,
        inline_limit: int = INLINE_LIMIT_BYTES,
        poll_interval: float = FILE_POLL_SECONDS,
    ) -> None:
        if client is None:
            raise ValueError("google-genai Client is required.")
        self.client = client
        self.model = model
        self.inline_limit = inline_limit
        self.poll_interval = poll_interval
        self._chats: Dict[str, Any] = {}

    async def create_conversation(self, system_instruction: str) -> str:
        try:
            chat = self.client.aio.chats.create(
                model=self.model,
                config=types.GenerateContentConfig(system_instruction=system_instruction),
            )
        except Exception as exc:
            raise RemoteGenerationError(f"Failed to open Gemini chat: {exc}") from exc
        handle = uuid4().hex
        self._chats[handle] = chat
        return handle

    async def send_turn(self, handle: str, content: TurnContent) -> str:
        chat = self._chats.get(handle)
        if chat is None:
            raise RemoteGenerationError(f"Conversation {handle} is not open")

        start = time.time()
        try:
            response = await chat.send_message(await self._to_message(content))
        except RemoteGenerationError:
            raise
        except Exception as exc:
            LOGGER.error("Gemini send_message failed: %s", exc)
            raise RemoteGenerationError(str(exc)) from exc

        text = getattr(response, "text", None)
        if not text:
            raise RemoteGenerationError("Gemini response did not include text.")

        LOGGER.info("Gemini turn latency: %.3fs", time.time() - start)
        return text

    def close_conversation(self, handle: str) -> None:
        self._chats.pop(handle, None)

    async def _to_message(self, content: TurnContent) -> Any:
        """Convert turn content into a chat message payload."""
        if not isinstance(content, VideoPrompt):
            return content
        if len(content.data) <= self.inline_limit:
            video = types.Part.from_bytes(data=content.data, mime_type=content.mime_type)
        else:
            uploaded = await self._upload(content)
            video = types.Part.from_uri(file_uri=uploaded.uri, mime_type=content.mime_type)
        return [video, types.Part.from_text(text=content.text)]

    async def _upload(self, content: VideoPrompt) -> Any:
        """Upload a large video and wait until Gemini marks it ACTIVE."""
        uploaded = await self.client.aio.files.upload(
            file=io.BytesIO(content.data),
            config=types.UploadFileConfig(mime_type=content.mime_type),
        )
        LOGGER.info("Uploaded %d byte video as %s", len(content.data), uploaded.name)
        while _file_state(uploaded) == "PROCESSING":
            await asyncio.sleep(self.poll_interval)
            uploaded = await self.client.aio.files.get(name=uploaded.name)
        if _file_state(uploaded) == "FAILED":
            raise RemoteGenerationError(f"Gemini could not process uploaded video {uploaded.name}")
        return uploaded
