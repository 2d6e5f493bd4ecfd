"""Simple in-memory store for describer sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import uuid4

from models.profile import Profile
from models.session_models import DetailLevel
from services.conversation import ConversationBackend
from services.focus_list import FocusList
from services.generation_session import GenerationSession
from services.prompts import AssembledPrompt, assemble
from services.video_store import VideoStore


@dataclass
class SessionContext:
	"""One user interaction context: a generation session plus its settings."""

	session_id: str
	session: GenerationSession
	detail_level: DetailLevel = DetailLevel.AVERAGE
	focuses: FocusList = field(default_factory=FocusList)
	selected_profile_ids: Set[str] = field(default_factory=set)

	def selected_profiles(self, profiles: Iterable[Profile]) -> List[Profile]:
		"""Return the selected profiles in store order."""
		return [p for p in profiles if p.id in self.selected_profile_ids]

	def prompt(self, profiles: Iterable[Profile]) -> AssembledPrompt:
		return assemble(self.detail_level, self.focuses, self.selected_profiles(profiles))

	async def reset(self) -> None:
		"""Reset the session and restore default settings."""
		await self.session.reset()
		self.detail_level = DetailLevel.AVERAGE
		self.focuses.clear()
		self.selected_profile_ids.clear()

	def snapshot(self) -> Dict[str, Any]:
		"""Return the JSON view rendered by the front end."""
		session = self.session
		video = session.video
		return {
			"session_id": self.session_id,
			"status": session.status.value,
			"video": (
				{"filename": video.filename, "mime_type": video.mime_type, "size": video.size}
				if video is not None
				else None
			),
			"transcript": session.transcript.replay(),
			"latest_description": session.latest_description,
			"error": session.last_error,
			"notice": session.notice,
			"settings": {
				"detail_level": self.detail_level.value,
				"focuses": list(self.focuses),
				"selected_profile_ids": sorted(self.selected_profile_ids),
			},
		}


class SessionStore:
	"""Manage live session contexts keyed by opaque ids."""

	def __init__(self, backend: ConversationBackend, videos: VideoStore, timeout: Optional[float] = None) -> None:
		self._backend = backend
		self._videos = videos
		self._timeout = timeout
		self._sessions: Dict[str, SessionContext] = {}

	def create(self) -> SessionContext:
		"""Create a new idle session context."""
		session_id = uuid4().hex
		session = GenerationSession(self._backend, self._videos, timeout=self._timeout)
		context = SessionContext(session_id=session_id, session=session)
		self._sessions[session_id] = context
		return context

	def get(self, session_id: str) -> SessionContext:
		"""Return a session context or raise KeyError if missing."""
		context = self._sessions.get(session_id)
		if context is None:
			raise KeyError(f"Session {session_id} not found")
		return context

	async def discard(self, session_id: str) -> None:
		"""Drop a context, releasing its video and conversation."""
		context = self.get(session_id)
		del self._sessions[session_id]
		await context.session.reset()

	def forget_profile(self, profile_id: str) -> None:
		for context in self._sessions.values():
			context.selected_profile_ids.discard(profile_id)

	async def close_all(self) -> None:
		for session_id in list(self._sessions):
			await self.discard(session_id)

	def __len__(self) -> int:
		return len(self._sessions)
