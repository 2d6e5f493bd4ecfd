"""FastAPI routes for video description sessions."""

from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.session_controller import (
	add_focus,
	end_session,
	generate_description,
	get_session,
	refine_description,
	remove_focus,
	reset_session,
	select_video,
	start_session,
	update_settings,
)
from models.session_models import DetailLevel

router = APIRouter(prefix="/sessions")


class SettingsPayload(BaseModel):
	detail_level: Optional[DetailLevel] = None
	focuses: Optional[List[str]] = None
	selected_profile_ids: Optional[List[str]] = None


class FocusPayload(BaseModel):
	label: str


class RefinePayload(BaseModel):
	text: str


@router.post("", status_code=201)
async def start_session_route(request: Request):
	try:
		return await start_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def end_session_route(request: Request, session_id: str):
	try:
		return await end_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/video")
async def select_video_route(request: Request, session_id: str, file: UploadFile = File(...)):
	"""Upload the video to describe. Rejections are reported through the session error state."""
	try:
		return await select_video(request, session_id, file)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{session_id}/settings")
async def update_settings_route(request: Request, session_id: str, payload: SettingsPayload):
	try:
		return await update_settings(
			request,
			session_id,
			detail_level=payload.detail_level,
			focuses=payload.focuses,
			selected_profile_ids=payload.selected_profile_ids,
		)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/focuses")
async def add_focus_route(request: Request, session_id: str, payload: FocusPayload):
	try:
		return await add_focus(request, session_id, payload.label)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}/focuses/{label:path}")
async def remove_focus_route(request: Request, session_id: str, label: str):
	try:
		return await remove_focus(request, session_id, label)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/generate")
async def generate_route(request: Request, session_id: str):
	try:
		return await generate_description(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/refine")
async def refine_route(request: Request, session_id: str, payload: RefinePayload):
	try:
		return await refine_description(request, session_id, payload.text)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/reset")
async def reset_route(request: Request, session_id: str):
	try:
		return await reset_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
