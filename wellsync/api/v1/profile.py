"""Profile API: the single local profile used for the assistant's context."""

from fastapi import APIRouter, HTTPException

from wellsync.api.deps import Services
from wellsync.schemas.profile import UserProfile
from wellsync.services.record_store import RecordStoreError

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserProfile, summary="Get profile")
async def get_profile(services: Services) -> UserProfile:
    profile = await services.profiles.get_profile()
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("", response_model=UserProfile, summary="Create or replace profile")
async def put_profile(services: Services, body: UserProfile) -> UserProfile:
    try:
        return await services.profiles.save_profile(body)
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not save profile")
