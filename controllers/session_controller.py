"""Session lifecycle helpers for video description workflows."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request, UploadFile

from models.session_models import DetailLevel
from services.errors import CommandRejectedError, InvalidInputError
from services.profile_store import ProfileStore
from services.session_store import SessionContext, SessionStore
from services.video_store import VideoStore


def _context(request: Request, session_id: str) -> SessionContext:
	store: SessionStore = request.app.state.session_store
	try:
		return store.get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc


def _rejected(exc: CommandRejectedError) -> HTTPException:
	return HTTPException(status_code=exc.status_code, detail=str(exc))


async def start_session(request: Request) -> Dict[str, Any]:
	"""Create a new session context in the idle state."""
	store: SessionStore = request.app.state.session_store
	return store.create().snapshot()


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	return _context(request, session_id).snapshot()


async def end_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Discard a session context and everything it owns."""
	store: SessionStore = request.app.state.session_store
	try:
		await store.discard(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "closed": True}


async def select_video(request: Request, session_id: str, file: UploadFile) -> Dict[str, Any]:
	"""Validate an uploaded video and hand it to the session.

	Invalid uploads never reach the session as a video: they are rejected
	here and the session is placed in the error state with the reason.
	"""
	context = _context(request, session_id)
	if context.session.busy:
		raise HTTPException(status_code=409, detail=f"Cannot select a video while {context.session.status.value}.")

	videos: VideoStore = request.app.state.video_store
	try:
		video = await videos.save_upload(file)
	except InvalidInputError as exc:
		video = None
		message = str(exc)

	try:
		if video is None:
			await context.session.reject_file(message)
		else:
			await context.session.select_file(video)
	except CommandRejectedError as exc:
		# A generation started while the upload was streaming.
		await videos.release(video)
		raise _rejected(exc) from exc
	return context.snapshot()


async def update_settings(
	request: Request,
	session_id: str,
	detail_level: Optional[DetailLevel] = None,
	focuses: Optional[List[str]] = None,
	selected_profile_ids: Optional[List[str]] = None,
) -> Dict[str, Any]:
	"""Replace the provided session-scoped settings; omitted ones are kept."""
	context = _context(request, session_id)
	profiles: ProfileStore = request.app.state.profile_store

	if selected_profile_ids is not None:
		unknown = [pid for pid in selected_profile_ids if profiles.get(pid) is None]
		if unknown:
			raise HTTPException(status_code=404, detail=f"Unknown profile ids: {', '.join(unknown)}")
		context.selected_profile_ids = set(selected_profile_ids)
	if detail_level is not None:
		context.detail_level = DetailLevel(detail_level)
	if focuses is not None:
		context.focuses.clear()
		for label in focuses:
			context.focuses.add(label)
	return context.snapshot()


async def add_focus(request: Request, session_id: str, label: str) -> Dict[str, Any]:
	context = _context(request, session_id)
	context.focuses.add(label)
	return context.snapshot()


async def remove_focus(request: Request, session_id: str, label: str) -> Dict[str, Any]:
	context = _context(request, session_id)
	context.focuses.remove(label)
	return context.snapshot()


async def generate_description(request: Request, session_id: str) -> Dict[str, Any]:
	"""Assemble the prompt from the session settings and run the first generation."""
	context = _context(request, session_id)
	profiles: ProfileStore = request.app.state.profile_store
	try:
		await context.session.generate(context.prompt(profiles.list()))
	except CommandRejectedError as exc:
		raise _rejected(exc) from exc
	return context.snapshot()


async def refine_description(request: Request, session_id: str, text: str) -> Dict[str, Any]:
	context = _context(request, session_id)
	try:
		await context.session.refine(text)
	except CommandRejectedError as exc:
		raise _rejected(exc) from exc
	return context.snapshot()


async def reset_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return the session to idle and restore default settings."""
	context = _context(request, session_id)
	await context.reset()
	return context.snapshot()
