from fastapi import Request, HTTPException
from typing import Any, Dict, Optional

from models.profile import Profile
from services.profile_store import ProfileStore


def _store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


async def list_profiles(request: Request) -> Dict[str, Any]:
    return {"profiles": [p.to_dict() for p in _store(request).list()]}


async def save_profile(
    request: Request,
    name: str,
    description: str,
    pronouns: Optional[str] = None,
    profile_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a profile, or replace the one with `profile_id`.

    Args:
        request: FastAPI Request (used to access the shared profile store).
        name: Display name; surrounding whitespace is trimmed.
        description: Visual description; surrounding whitespace is trimmed.
        pronouns: Optional pronouns.
        profile_id: Id of the profile being edited, or None to create one.

    Returns:
        The stored profile as a dict.

    Raises:
        HTTPException(404) when editing an unknown profile.
        HTTPException(422) when the name or description is blank.
    """
    store = _store(request)
    if profile_id is not None and store.get(profile_id) is None:
        raise HTTPException(status_code=404, detail=f"Profile {profile_id} not found")

    stored = await store.upsert(
        Profile(id=profile_id, name=name, description=description, pronouns=pronouns)
    )
    if stored is None:
        raise HTTPException(status_code=422, detail="Profile name and description are required.")
    return stored.to_dict()


async def delete_profile(request: Request, profile_id: str) -> Dict[str, Any]:
    """Remove a profile and deselect it from every live session."""
    removed = await _store(request).remove(profile_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Profile {profile_id} not found")
    request.app.state.session_store.forget_profile(profile_id)
    return {"id": profile_id, "deleted": True}
