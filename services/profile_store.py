"""Durable store of person profiles used to enrich description prompts."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional
from uuid import uuid4

from dal.kv_dal import KeyValueDAL
from models.profile import Profile

LOGGER = logging.getLogger(__name__)

PROFILES_KEY = "profiles"


class ProfileStore:
    """Keep profiles in insertion order and persist the full list on every change."""

    def __init__(self, kv: KeyValueDAL) -> None:
        self._kv = kv
        self._profiles: List[Profile] = []
        # Held across each change and its write so saves persist in order.
        self._lock = asyncio.Lock()

    async def load(self) -> "ProfileStore":
        """Replace the in-memory list with the persisted one.

        An absent or malformed record falls back to an empty store; malformed
        entries inside a valid list are skipped.
        """
        raw = await self._kv.get(PROFILES_KEY)
        profiles: List[Profile] = []
        if isinstance(raw, list):
            for entry in raw:
                try:
                    profiles.append(Profile.from_dict(entry))
                except (KeyError, TypeError, AttributeError):
                    LOGGER.warning("Skipping malformed stored profile: %r", entry)
        elif raw is not None:
            LOGGER.warning("Ignoring stored profiles with unexpected shape: %r", type(raw).__name__)
        self._profiles = profiles
        return self

    def list(self) -> List[Profile]:
        return list(self._profiles)

    def get(self, profile_id: str) -> Optional[Profile]:
        return next((p for p in self._profiles if p.id == profile_id), None)

    async def upsert(self, profile: Profile) -> Optional[Profile]:
        """Create or replace a profile.

        Returns the stored profile, or None when the name or description is
        blank after trimming (the store is left unchanged).
        """
        name = (profile.name or "").strip()
        description = (profile.description or "").strip()
        if not name or not description:
            return None

        pronouns = (profile.pronouns or "").strip() or None
        stored = Profile(
            id=profile.id or uuid4().hex,
            name=name,
            description=description,
            pronouns=pronouns,
        )

        async with self._lock:
            for index, existing in enumerate(self._profiles):
                if existing.id == stored.id:
                    self._profiles[index] = stored
                    break
            else:
                self._profiles.append(stored)
            await self._persist()
        return stored

    async def remove(self, profile_id: str) -> bool:
        """Remove a profile by id. Returns True if one was removed."""
        async with self._lock:
            remaining = [p for p in self._profiles if p.id != profile_id]
            if len(remaining) == len(self._profiles):
                return False
            self._profiles = remaining
            await self._persist()
        return True

    async def _persist(self) -> None:
        await self._kv.set(PROFILES_KEY, [p.to_dict() for p in self._profiles])
