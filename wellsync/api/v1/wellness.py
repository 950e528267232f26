"""Wellness API: the phone's entry form and history."""

from fastapi import APIRouter, HTTPException

from wellsync.api.deps import Services
from wellsync.schemas.wellness import WellnessEntry, WellnessEntryBody
from wellsync.services.entry_form import EntryNotFound, FormValidationError
from wellsync.services.record_store import RecordStoreError
from wellsync.services.units import display_weight

router = APIRouter(prefix="/wellness", tags=["wellness"])


def _entry_to_response(entry: WellnessEntry, unit: str) -> dict:
    data = entry.model_dump()
    data["weight_kg"] = data.pop("weight")
    data["display_weight"] = display_weight(entry.weight, unit)
    data["weight_unit"] = unit
    return data


@router.get("", summary="List wellness entries, newest first")
async def list_entries(services: Services) -> list[dict]:
    unit = await services.preferences.weight_unit()
    return [_entry_to_response(e, unit) for e in await services.wellness.list_entries()]


@router.post("", summary="Create wellness entry", responses={422: {"description": "Invalid input"}})
async def create_entry(services: Services, body: WellnessEntryBody) -> dict:
    try:
        entry = await services.entry_form.create(body.weight, body.ratings, body.date)
    except FormValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not save entry")
    return _entry_to_response(entry, await services.preferences.weight_unit())


@router.get("/average-weight", summary="Average weight of the last 30 entries")
async def average_weight(services: Services) -> dict:
    unit = await services.preferences.weight_unit()
    average = await services.wellness.average_weight()
    return {
        "average_weight": display_weight(average, unit) if average is not None else None,
        "weight_unit": unit,
    }


@router.get("/by-date/{day}", summary="Entry for a calendar day")
async def get_by_date(services: Services, day: str) -> dict:
    entry = await services.wellness.get_by_date(day)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return _entry_to_response(entry, await services.preferences.weight_unit())


@router.get("/{entry_id}", summary="Entry as shown in the edit form")
async def get_entry(services: Services, entry_id: str) -> dict:
    form = await services.entry_form.load_for_display(entry_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return form


@router.put("/{entry_id}", summary="Replace wellness entry")
async def edit_entry(services: Services, entry_id: str, body: WellnessEntryBody) -> dict:
    try:
        entry = await services.entry_form.edit(entry_id, body.weight, body.ratings)
    except EntryNotFound:
        raise HTTPException(status_code=404, detail="Entry not found")
    except FormValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not save entry")
    return _entry_to_response(entry, await services.preferences.weight_unit())


@router.delete("/{entry_id}", summary="Delete wellness entry")
async def delete_entry(services: Services, entry_id: str) -> dict:
    try:
        await services.entry_form.delete(entry_id)
    except EntryNotFound:
        raise HTTPException(status_code=404, detail="Entry not found")
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not delete entry")
    return {"status": "deleted"}


@router.delete("", summary="Delete all wellness entries")
async def clear_entries(services: Services) -> dict:
    try:
        await services.wellness.clear_all()
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not clear entries")
    return {"status": "cleared"}
