"""The single local user profile."""
from __future__ import annotations

import logging

from pydantic import ValidationError

from wellsync.schemas.profile import UserProfile
from wellsync.services.record_store import RecordStore, safe_read

logger = logging.getLogger(__name__)

PROFILE_KEY = "profile"


class ProfileRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def get_profile(self) -> UserProfile | None:
        raw = await safe_read(lambda: self.store.get(PROFILE_KEY), None, "user profile")
        if raw is None:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Stored profile does not decode: %s", e)
            return None

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        await self.store.put(PROFILE_KEY, profile.model_dump_json())
        return profile
