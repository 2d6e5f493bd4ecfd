"""Exception types shared by the describer services."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories a session can run into."""

    INVALID_INPUT = "invalid_input"
    GENERATION_FAILURE = "generation_failure"
    REFINEMENT_FAILURE = "refinement_failure"


class VideoDescriberError(Exception):
    """Base class for errors raised by this application."""


class InvalidInputError(VideoDescriberError):
    """The selected media failed the type or size checks."""


class RemoteGenerationError(VideoDescriberError):
    """The generation backend failed to create a conversation or answer a turn."""


class CommandRejectedError(VideoDescriberError):
    """A session command is not allowed in the current state."""

    def __init__(self, message: str, status_code: int = 409) -> None:
        super().__init__(message)
        self.status_code = status_code
