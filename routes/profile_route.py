from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.profile_controller import delete_profile, list_profiles, save_profile

router = APIRouter(prefix="/profiles")


class ProfilePayload(BaseModel):
	name: str = ""
	description: str = ""
	pronouns: Optional[str] = None


@router.get("")
async def list_profiles_route(request: Request):
	try:
		return await list_profiles(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("", status_code=201)
async def create_profile_route(request: Request, payload: ProfilePayload):
	try:
		return await save_profile(request, payload.name, payload.description, payload.pronouns)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{profile_id}")
async def update_profile_route(request: Request, profile_id: str, payload: ProfilePayload):
	try:
		return await save_profile(
			request, payload.name, payload.description, payload.pronouns, profile_id=profile_id
		)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{profile_id}")
async def delete_profile_route(request: Request, profile_id: str):
	try:
		return await delete_profile(request, profile_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
