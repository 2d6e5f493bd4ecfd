from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel

from controllers.preference_controller import focus_suggestions, get_theme, set_theme

router = APIRouter()


class ThemePayload(BaseModel):
    theme: str


@router.get("/preferences/theme")
async def get_theme_route(request: Request):
    try:
        return await get_theme(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.put("/preferences/theme")
async def put_theme_route(request: Request, payload: ThemePayload):
    """Store the light/dark theme preference."""
    try:
        return await set_theme(request, payload.theme)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/focus-suggestions")
async def focus_suggestions_route():
    return await focus_suggestions()
