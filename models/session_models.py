"""Session domain models for video description workflows."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from services.errors import ErrorKind


class DetailLevel(str, Enum):
	"""How verbose the requested description should be."""

	BRIEF = "brief"
	AVERAGE = "average"
	DETAILED = "detailed"


class TurnRole(str, Enum):
	USER = "user"
	MODEL = "model"


class SessionStatus(str, Enum):
	IDLE = "idle"
	FILE_SELECTED = "file-selected"
	PROCESSING = "processing"
	REFINING = "refining"
	SUCCESS = "success"
	ERROR = "error"


@dataclass(frozen=True)
class Turn:
	"""One message exchanged with the generation model."""

	role: TurnRole
	text: str
	created_at: float = field(default_factory=lambda: time.time(), compare=False)


@dataclass(frozen=True)
class VideoRef:
	"""Handle to a selected video stored on local disk."""

	filename: str
	mime_type: str
	size: int
	path: Path


@dataclass(frozen=True)
class Idle:
	status = SessionStatus.IDLE


@dataclass(frozen=True)
class FileSelected:
	video: VideoRef
	status = SessionStatus.FILE_SELECTED


@dataclass(frozen=True)
class Processing:
	video: VideoRef
	status = SessionStatus.PROCESSING


@dataclass(frozen=True)
class Success:
	video: VideoRef
	conversation: str
	status = SessionStatus.SUCCESS


@dataclass(frozen=True)
class Refining:
	video: VideoRef
	conversation: str
	pending: Turn
	status = SessionStatus.REFINING


@dataclass(frozen=True)
class Failed:
	message: str
	kind: ErrorKind
	status = SessionStatus.ERROR


SessionState = Union[Idle, FileSelected, Processing, Success, Refining, Failed]


def state_video(state: SessionState) -> Optional[VideoRef]:
	"""Return the video owned by a state, if that state owns one."""
	if isinstance(state, (FileSelected, Processing, Success, Refining)):
		return state.video
	return None


def state_conversation(state: SessionState) -> Optional[str]:
	"""Return the open conversation handle, present only after a generation succeeded."""
	if isinstance(state, (Success, Refining)):
		return state.conversation
	return None
