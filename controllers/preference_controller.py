from fastapi import Request, HTTPException
from typing import Any, Dict

from services.focus_list import SUGGESTED_FOCUSES
from services.preferences import PreferenceService


async def get_theme(request: Request) -> Dict[str, Any]:
    preferences: PreferenceService = request.app.state.preferences
    return {"theme": await preferences.get_theme()}


async def set_theme(request: Request, theme: str) -> Dict[str, Any]:
    """Persist the theme preference, rejecting unknown values with 422."""
    preferences: PreferenceService = request.app.state.preferences
    try:
        stored = await preferences.set_theme(theme)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"theme": stored}


async def focus_suggestions() -> Dict[str, Any]:
    return {"suggestions": list(SUGGESTED_FOCUSES)}
