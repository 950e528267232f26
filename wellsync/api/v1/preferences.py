"""Preferences API. Saving the questions pushes the new selection to the watch."""

from fastapi import APIRouter, HTTPException

from wellsync.api.deps import Services
from wellsync.schemas.preferences import QuestionSelectionBody, WeightUnitBody
from wellsync.schemas.questions import ordered
from wellsync.services.record_store import RecordStoreError

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/questions", summary="Selected questions")
async def get_questions(services: Services) -> dict:
    selection = await services.preferences.selected_questions()
    return {"questions": [q.value for q in ordered(selection)]}


@router.put("/questions", summary="Save selected questions and push them to the watch")
async def put_questions(services: Services, body: QuestionSelectionBody) -> dict:
    try:
        selection = await services.save_selected_questions(body.questions)
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not save questions")
    return {"questions": [q.value for q in ordered(selection)]}


@router.get("/weight-unit", summary="Preferred weight unit")
async def get_weight_unit(services: Services) -> dict:
    return {"weight_unit": await services.preferences.weight_unit()}


@router.put("/weight-unit", summary="Save preferred weight unit")
async def put_weight_unit(services: Services, body: WeightUnitBody) -> dict:
    try:
        await services.save_weight_unit(body.weight_unit)
    except RecordStoreError:
        raise HTTPException(status_code=503, detail="Could not save weight unit")
    return {"weight_unit": body.weight_unit}
