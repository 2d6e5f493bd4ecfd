"""State machine driving one video description conversation.

The session moves between the variants in `models.session_models`:

    idle -> file-selected -> processing -> success <-> refining
                 |               |
                 +-> error <-----+

`reset()` returns to idle from any state. Remote failures never escape:
a failed first generation becomes an `error` state, while a failed
refinement is rolled back out of the transcript and the session stays in
`success` with a non-blocking notice.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from models.session_models import (
	Failed,
	FileSelected,
	Idle,
	Processing,
	Refining,
	SessionState,
	SessionStatus,
	Success,
	TurnRole,
	VideoRef,
	state_conversation,
	state_video,
)
from services.conversation import ConversationBackend, VideoPrompt
from services.errors import CommandRejectedError, ErrorKind, InvalidInputError
from services.prompts import AssembledPrompt
from services.transcript import Transcript
from services.video_store import VideoStore
from utils.media_validation import validate_video

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

GENERATION_PLACEHOLDER = "Generate the description for the provided video."
GENERATION_FAILED_MESSAGE = (
	"Failed to generate description. The video format may not be supported or an API error occurred. "
	"Please try again."
)
REFINEMENT_FAILED_NOTICE = "Your last request could not be applied. The description was left unchanged."


class GenerationSession:
	"""Own the selected video, the remote conversation, and the transcript."""

	def __init__(
		self,
		backend: ConversationBackend,
		videos: VideoStore,
		*,
		timeout: Optional[float] = None,
	) -> None:
		self.backend = backend
		self.videos = videos
		self.timeout = timeout
		self.transcript = Transcript()
		self.notice: Optional[str] = None
		self._state: SessionState = Idle()

	@property
	def state(self) -> SessionState:
		return self._state

	@property
	def status(self) -> SessionStatus:
		return self._state.status

	@property
	def video(self) -> Optional[VideoRef]:
		return state_video(self._state)

	@property
	def conversation_handle(self) -> Optional[str]:
		return state_conversation(self._state)

	@property
	def last_error(self) -> Optional[str]:
		return self._state.message if isinstance(self._state, Failed) else None

	@property
	def latest_description(self) -> Optional[str]:
		return self.transcript.latest_model_text()

	@property
	def busy(self) -> bool:
		return isinstance(self._state, (Processing, Refining))

	async def select_file(self, video: VideoRef) -> SessionState:
		"""Take ownership of `video`, replacing any previous one.

		An invalid video is released and the session moves to `error`.
		"""
		self._require_idle_call("select a video")
		try:
			validate_video(video.mime_type, video.size)
		except InvalidInputError as exc:
			await self.videos.release(video)
			return await self.reject_file(str(exc))

		await self._discard()
		self._state = FileSelected(video)
		LOGGER.info("Video selected: %s (%d bytes)", video.filename, video.size)
		return self._state

	async def reject_file(self, message: str) -> SessionState:
		"""Record a selection that failed validation at the upload boundary."""
		self._require_idle_call("select a video")
		await self._discard()
		self._state = Failed(message=message, kind=ErrorKind.INVALID_INPUT)
		LOGGER.info("Video rejected: %s", message)
		return self._state

	async def generate(self, prompt: AssembledPrompt) -> SessionState:
		"""Open a fresh conversation and request the first description."""
		current = self._state
		if not isinstance(current, FileSelected):
			raise CommandRejectedError(f"Cannot generate a description while {current.status.value}.")

		video = current.video
		self.transcript.clear()
		self.notice = None
		processing = Processing(video)
		self._state = processing

		handle: Optional[str] = None
		try:
			data = await self.videos.read(video)
			handle = await self._call(self.backend.create_conversation(prompt.system_instruction))
			text = await self._call(
				self.backend.send_turn(handle, VideoPrompt(data, video.mime_type, prompt.user_instruction))
			)
		except Exception as exc:
			LOGGER.error("Description generation failed for %s: %r", video.filename, exc, exc_info=True)
			if handle is not None:
				self.backend.close_conversation(handle)
			if self._state is processing:
				await self.videos.release(video)
				self._state = Failed(message=GENERATION_FAILED_MESSAGE, kind=ErrorKind.GENERATION_FAILURE)
			return self._state
		except BaseException:
			# Cancelled mid-call: back to file-selected, video still owned.
			if handle is not None:
				self.backend.close_conversation(handle)
			if self._state is processing:
				self._state = FileSelected(video)
			raise

		if self._state is not processing:
			# Reset while the call was in flight; the reply belongs to nobody.
			self.backend.close_conversation(handle)
			return self._state

		self.transcript.append(TurnRole.USER, GENERATION_PLACEHOLDER)
		self.transcript.append(TurnRole.MODEL, text)
		self._state = Success(video=video, conversation=handle)
		LOGGER.info("Description generated for %s", video.filename)
		return self._state

	async def refine(self, text: str) -> SessionState:
		"""Send a follow-up instruction on the open conversation."""
		current = self._state
		if not isinstance(current, Success):
			raise CommandRejectedError(f"Cannot refine a description while {current.status.value}.")
		if not text or not text.strip():
			raise CommandRejectedError("Refinement text is required.", status_code=422)

		self.notice = None
		pending = self.transcript.append(TurnRole.USER, text)
		refining = Refining(video=current.video, conversation=current.conversation, pending=pending)
		self._state = refining

		try:
			reply = await self._call(self.backend.send_turn(current.conversation, text))
		except Exception as exc:
			LOGGER.warning("Refinement failed, rolling back: %r", exc, exc_info=True)
			if self._state is refining:
				self.transcript.rollback(pending)
				self.notice = REFINEMENT_FAILED_NOTICE
				self._state = Success(video=current.video, conversation=current.conversation)
			return self._state
		except BaseException:
			if self._state is refining:
				self.transcript.rollback(pending)
				self._state = Success(video=current.video, conversation=current.conversation)
			raise

		if self._state is refining:
			self.transcript.append(TurnRole.MODEL, reply)
			self._state = Success(video=current.video, conversation=current.conversation)
		return self._state

	async def reset(self) -> SessionState:
		"""Release everything the session owns and return to idle."""
		await self._discard()
		self._state = Idle()
		return self._state

	async def _discard(self) -> None:
		video = self.video
		handle = self.conversation_handle
		if handle is not None:
			self.backend.close_conversation(handle)
		self.transcript.clear()
		self.notice = None
		self._state = Idle()
		await self.videos.release(video)

	def _require_idle_call(self, action: str) -> None:
		if self.busy:
			raise CommandRejectedError(f"Cannot {action} while {self.status.value}.")

	async def _call(self, awaitable: Awaitable[T]) -> T:
		return await asyncio.wait_for(awaitable, timeout=self.timeout)
