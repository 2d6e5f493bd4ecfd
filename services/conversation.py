"""Interface to a stateful remote model conversation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True)
class VideoPrompt:
    """First-turn content: the video itself plus the user instruction."""

    data: bytes
    mime_type: str
    text: str


TurnContent = Union[VideoPrompt, str]


class ConversationBackend(Protocol):
    """Capability used by a generation session.

    Implementations raise `RemoteGenerationError` for transport and model
    failures.
    """

    async def create_conversation(self, system_instruction: str) -> str:
        """Open a conversation and return its opaque handle."""
        ...

    async def send_turn(self, handle: str, content: TurnContent) -> str:
        """Send one turn on an open conversation and return the response text."""
        ...

    def close_conversation(self, handle: str) -> None:
        """Forget a conversation. Unknown handles are ignored."""
        ...
