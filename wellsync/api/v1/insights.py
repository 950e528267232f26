"""AI suggestions from the recent wellness history."""

from dataclasses import asdict

from fastapi import APIRouter

from wellsync.api.deps import Services

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("/suggestions", summary="Generate suggestions")
async def get_suggestions(services: Services) -> dict:
    await services.suggestions.load_user_name()
    return asdict(await services.suggestions.generate())
